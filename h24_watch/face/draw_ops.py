"""Draw operations emitted by the renderer."""

import dataclasses
from dataclasses import dataclass
from typing import Literal, Union

Point = tuple[float, float]
Typeface = Literal["light", "normal", "bold"]
Style = Literal["fill", "stroke"]


@dataclass(frozen=True)
class Paint:
    """Color, alpha and typeface descriptor shared by all draw ops."""

    color: tuple[int, int, int] = (255, 255, 255)
    alpha: int = 255
    style: Style = "fill"
    stroke_width: float = 1.0
    typeface: Typeface = "normal"
    text_size: float = 30.0

    def with_(self, **changes) -> "Paint":
        """Copy with some attributes replaced."""
        return dataclasses.replace(self, **changes)

    @property
    def rgba(self) -> tuple[int, int, int, int]:
        alpha = max(0, min(255, int(self.alpha)))
        return (*self.color, alpha)


@dataclass(frozen=True)
class Circle:
    center: Point
    radius: float
    paint: Paint


@dataclass(frozen=True)
class Line:
    start: Point
    end: Point
    paint: Paint


@dataclass(frozen=True)
class Text:
    """Upright text; ``origin`` is the top-left of its measured box."""

    origin: Point
    text: str
    paint: Paint


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given as (left, top, right, bottom)."""

    box: tuple[float, float, float, float]
    paint: Paint


DrawOp = Union[Circle, Line, Text, Rect]
