"""Dial geometry: time to angle to canvas coordinates."""

import copy
import datetime
import math
from typing import Optional, Protocol, Union

from .draw_ops import Paint, Point, Text, Typeface

DEGREES_PER_HOUR = 15.0
DEGREES_PER_MINUTE = 0.25

# Gap kept free along the rim
RIM_RESERVE = 7.0
# Label and hour digit sizes relative to the outer radius
LABEL_SIZE_RATIO = 30.0 / 195.0
DIGIT_SIZE_RATIO = 1.0


class TextMeasurer(Protocol):
    def measure(
        self, text: str, size: float, typeface: Typeface
    ) -> tuple[float, float]:
        """Width and height of ``text`` rendered at ``size``."""
        ...

    def ink_height(self, text: str, size: float, typeface: Typeface) -> float:
        """Height of the inked pixels of ``text``."""
        ...


def degrees_from_north(when: Union[datetime.datetime, datetime.time]) -> float:
    """Angle of a time of day on the 24-hour dial, 0 at the top."""
    return when.hour * DEGREES_PER_HOUR + when.minute * DEGREES_PER_MINUTE


def project(angle: float, radius: float, center: Point) -> Point:
    """Point at ``radius`` from ``center``, ``angle`` degrees clockwise from the top."""
    radians = math.radians(angle - 90.0)
    return (
        center[0] + radius * math.cos(radians),
        center[1] + radius * math.sin(radians),
    )


def angle_of(point: Point, center: Point) -> float:
    """Inverse of project(): clockwise degrees from the top, in [0, 360)."""
    dx = point[0] - center[0]
    dy = point[1] - center[1]
    return (math.degrees(math.atan2(dy, dx)) + 90.0) % 360.0


class DialGeometry:
    """
    Radii and projections for a round dial on a width x height surface.

    All lengths are recomputed from min(width, height) / 2 on resize.
    """

    def __init__(
        self,
        width: int,
        height: int,
        measurer: TextMeasurer,
        rotation: int = 0,
    ):
        self.measurer = measurer
        self.rotation = rotation
        self.on_resize(width, height)

    def on_resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.center_x = width / 2.0
        self.center_y = height / 2.0
        self.outer_radius = min(width, height) / 2.0
        self.hour_text_distance = self.outer_radius * 0.9
        self.hour_hand_length = self.outer_radius - 2 * RIM_RESERVE
        self.button_radius = self.outer_radius / 3 * 2
        self.label_size = self.outer_radius * LABEL_SIZE_RATIO
        self.digit_size = self.outer_radius * DIGIT_SIZE_RATIO

    @property
    def center(self) -> Point:
        return (self.center_x, self.center_y)

    def point(self, angle: float, radius: float, fixed: bool = False) -> Point:
        """Project onto the dial, applying the dial rotation unless ``fixed``."""
        if not fixed:
            angle += self.rotation
        return project(angle, radius, self.center)

    def measure(self, text: str, paint: Paint) -> tuple[float, float]:
        return self.measurer.measure(text, paint.text_size, paint.typeface)

    def upright_text(
        self,
        angle: float,
        radius: float,
        text: str,
        paint: Paint,
        typeface: Optional[Typeface] = None,
        fixed: bool = False,
    ) -> Text:
        """
        Text centered on a dial position but never rotated itself.

        Args:
            angle: Degrees clockwise from the top
            radius: Distance of the text center from the dial center
            text: Label to draw
            paint: Paint to draw with
            typeface: Overrides the paint's typeface
            fixed: Ignore the dial rotation (screen-anchored affordances)
        """
        if typeface is not None:
            paint = paint.with_(typeface=typeface)
        width, height = self.measure(text, paint)
        x, y = self.point(angle, radius, fixed)
        return Text(origin=(x - width / 2, y - height / 2), text=text, paint=paint)

    def rotated(self, rotation: int) -> "DialGeometry":
        """Same dial turned by ``rotation`` degrees."""
        if rotation == self.rotation:
            return self
        turned = copy.copy(self)
        turned.rotation = rotation
        return turned
