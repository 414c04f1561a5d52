"""Watch face renderer: one FrameContext in, an ordered list of draw ops out."""

import datetime
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from ..data.alarm import alarm_in_window
from ..dimming import DEFAULT_MIN_LUMINANCE, VERY_DARK
from .color_wheel import color_at, hand_color, hour_alpha
from .colors import BLACK, RED
from .draw_ops import Circle, DrawOp, Line, Paint, Rect
from .geometry import RIM_RESERVE, DialGeometry, degrees_from_north
from .meeting_fill import plan_fill

if TYPE_CHECKING:
    from ..config import DimmingConfig, FaceConfig
    from ..dimming import DimmingController, DimmingState
    from .context import FrameContext

logger = logging.getLogger(__name__)

STROKE_WIDTH = 2.0
HOUR_MARKER_RADIUS = 4.0
EVENT_MARKER_RADIUS = 6.5
EVENT_MARKER_RADIUS_MINIMAL = 1.0
LINE_SPACING = 1.1
NO_TITLE = "(no title)"

DARK_TOGGLE_ON = "●"
DARK_TOGGLE_OFF = "○"
ROTATE_GLYPH = "↷"
ALARM_GLYPH = "A"
MORE_STATUS_GLYPH = "+"


@dataclass
class Frame:
    """Draw ops of one frame and the light factor they were drawn with."""

    ops: list[DrawOp] = field(default_factory=list)
    light_factor: float = 1.0


def format_steps(steps: int) -> str:
    """Group thousands with an apostrophe, e.g. 12'345."""
    return f"{steps:,}".replace(",", "'")


def _minutes(delta: datetime.timedelta) -> int:
    return int(delta.total_seconds() / 60)


class WatchFaceRenderer:
    """
    Draws the 24-hour face.

    ``render`` is a pure function of the frame context and the dimming
    snapshot; ``draw`` additionally commits the frame's light factor back
    into the dimming controller.
    """

    def __init__(
        self,
        geometry: DialGeometry,
        face: "FaceConfig",
        dimming: "DimmingConfig",
    ):
        self.geometry = geometry
        self.face = face
        self.dimming = dimming

    def on_resize(self, width: int, height: int) -> None:
        self.geometry.on_resize(width, height)

    def draw(self, ctx: "FrameContext", controller: "DimmingController") -> Frame:
        """
        Render with the controller's state and commit the light factor.

        A frame that fails to render is replaced by the static time-only
        face so the screen never stays blank.
        """
        try:
            frame = self.render(ctx, controller.state)
        except Exception as e:
            logger.exception(f"Frame render failed, drawing fallback face: {e}")
            frame = self.render_fallback(ctx)
        controller.commit(frame.light_factor)
        return frame

    def render_fallback(self, ctx: "FrameContext") -> Frame:
        """Full-brightness face showing only the time."""
        geo = self.geometry
        hand = Paint(text_size=geo.label_size)
        ops: list[DrawOp] = [
            Rect((0, 0, geo.width, geo.height), Paint(color=BLACK)),
            geo.upright_text(
                0, 0, str(ctx.hour), hand.with_(text_size=geo.digit_size), fixed=True
            ),
            geo.upright_text(
                180, geo.center_y / 3 * 2, f"{ctx.minute:02d}", hand, fixed=True
            ),
        ]
        return Frame(ops=ops, light_factor=1.0)

    def render(
        self, ctx: "FrameContext", dimming: Optional["DimmingState"] = None
    ) -> Frame:
        """
        Render one frame.

        Args:
            ctx: Frame context
            dimming: Dimming snapshot; overrides the factor stored in ctx

        Returns:
            Frame with ordered draw ops
        """
        factor = ctx.brightness_factor
        min_luminance = ctx.min_luminance
        if dimming is not None:
            factor = dimming.current_factor
            min_luminance = dimming.min_luminance
        committed = factor

        geo = self.geometry.rotated(ctx.rotation)
        ops: list[DrawOp] = []
        background = Paint(color=BLACK)
        ops.append(Rect((0, 0, geo.width, geo.height), background))

        # Counteract too much automatic dimming in very low light
        if (
            not ctx.is_ambient
            and ctx.auto_brightness
            and factor <= 2 * min_luminance
        ):
            factor += self.dimming.low_light_boost

        dark = ctx.is_dark_mode
        readable = dark and factor <= VERY_DARK
        hand = Paint(
            color=hand_color(dark, factor),
            stroke_width=STROKE_WIDTH * (2 if readable else 1),
            typeface="normal" if (not dark or readable) else "light",
            text_size=geo.label_size,
        )
        hours_rotation = degrees_from_north(ctx.now)
        wheel = color_at(hours_rotation)

        battery = ctx.status.battery_percent
        if battery is not None and battery <= self.face.low_battery_threshold:
            ops.append(
                geo.upright_text(
                    0, 0, f"Battery: {battery}% !", hand.with_(color=RED), fixed=True
                )
            )

        if not ctx.is_minimal_mode:
            ops.extend(self._hour_digit(ctx, geo, factor, hand, background))

        ops.extend(self._hand(ctx, geo, hours_rotation, wheel, factor, hand))

        if not ctx.is_ambient:
            ops.extend(self._affordances(ctx, geo, hand, min_luminance))

        glyphs = ctx.status.glyphs
        ops.extend(self._hour_markers(ctx, geo, factor, hand, background, glyphs))

        if alarm_in_window(ctx.next_alarm, ctx.now, self.face.alarm_window_hours):
            alarm = ctx.next_alarm
            if alarm.tzinfo is not None and ctx.now.tzinfo is not None:
                alarm = alarm.astimezone(ctx.now.tzinfo)
            ops.append(
                geo.upright_text(
                    degrees_from_north(alarm), geo.hour_hand_length, ALARM_GLYPH, hand
                )
            )

        ops.extend(self._text_lines(ctx, geo, hand, glyphs))

        top_indicator = ("", glyphs, MORE_STATUS_GLYPH)[min(2, len(glyphs))]
        if top_indicator:
            ops.append(
                geo.upright_text(
                    0,
                    geo.outer_radius - geo.label_size * 0.55,
                    top_indicator,
                    hand,
                    fixed=True,
                )
            )

        return Frame(ops=ops, light_factor=committed)

    # -- parts ----------------------------------------------------------

    def _hour_digit(
        self,
        ctx: "FrameContext",
        geo: DialGeometry,
        factor: float,
        hand: Paint,
        background: Paint,
    ) -> list[DrawOp]:
        """Filled digit, hourglass/meeting fill, outline, steps and minutes."""
        dark = ctx.is_dark_mode
        stroke_width = 6.0
        typeface = "bold"
        if dark:
            stroke_width = max(factor * 3, 1.5)
            typeface = "light" if factor < VERY_DARK else "normal"

        hour_text = str(ctx.hour)
        digit = Paint(
            color=color_at(degrees_from_north(ctx.now)),
            alpha=int(hour_alpha(dark, factor) * (factor if dark else 1.0)),
            stroke_width=stroke_width,
            typeface=typeface,
            text_size=geo.digit_size,
        )
        ops: list[DrawOp] = [geo.upright_text(0, 0, hour_text, digit, fixed=True)]

        text_size = geo.measurer.ink_height(hour_text, digit.text_size, typeface)
        glyph_top = geo.center_y - text_size / 2
        left = geo.center_x - text_size
        right = geo.center_x + text_size
        plan = plan_fill(
            ctx.now, ctx.events, text_size, self.face.pre_announce_minutes
        )
        for line in plan.preview_lines:
            y = glyph_top + line.offset
            ops.append(
                Line((left, y), (right, y), background.with_(stroke_width=line.thickness))
            )
        for band in plan.bands:
            top = glyph_top + band.top
            ops.append(Rect((left, top, right, top + band.height), background))

        if not ctx.is_ambient and ctx.steps is not None:
            correction = 1.6 if ctx.show_details else 0.85
            third = geo.center_y / 3
            ops.append(
                geo.upright_text(
                    180, third * (0.1 + correction), format_steps(ctx.steps.total), hand
                )
            )
            ops.append(
                geo.upright_text(
                    180, third * (0.65 + correction), format_steps(ctx.steps.today), hand
                )
            )

        # Outline again so the digit stays legible over the fill
        outline = digit.with_(color=hand.color, alpha=255, style="stroke")
        ops.append(geo.upright_text(0, 0, hour_text, outline, fixed=True))

        if ctx.show_details:
            minutes_paint = hand.with_(stroke_width=min(4.0, stroke_width))
            ops.append(
                geo.upright_text(
                    180,
                    geo.center_y / 3 * 1.01,
                    f"{ctx.minute:02d}",
                    minutes_paint,
                    typeface="light" if dark else None,
                )
            )
        return ops

    def _hand(
        self,
        ctx: "FrameContext",
        geo: DialGeometry,
        hours_rotation: float,
        wheel: tuple[int, int, int],
        factor: float,
        hand: Paint,
    ) -> list[DrawOp]:
        """Hour hand: colored dot, outline ring and a line to the rim."""
        dot_center = geo.hour_hand_length + 2 * RIM_RESERVE
        dot_radius = RIM_RESERVE * 2
        ring_radius = RIM_RESERVE * 3.5
        dot_alpha = int(255 * (factor if ctx.is_dark_mode else 1.0))

        ops: list[DrawOp] = [
            Circle(
                geo.point(hours_rotation, dot_center),
                dot_radius,
                hand.with_(color=wheel, alpha=dot_alpha),
            ),
            Line(
                geo.point(hours_rotation, dot_center - ring_radius),
                geo.point(hours_rotation, geo.outer_radius + RIM_RESERVE),
                hand,
            ),
            Circle(
                geo.point(hours_rotation, dot_center),
                ring_radius,
                hand.with_(style="stroke"),
            ),
        ]
        if ctx.is_minimal_mode:
            # Reduced crosshair: center ring and a short tick towards the hour
            tick_start = geo.outer_radius / 75
            ops.append(Circle(geo.center, tick_start, hand.with_(style="stroke")))
            ops.append(
                Line(
                    geo.point(hours_rotation, tick_start),
                    geo.point(hours_rotation, geo.outer_radius / 6.5),
                    hand,
                )
            )
        return ops

    def _affordances(
        self,
        ctx: "FrameContext",
        geo: DialGeometry,
        hand: Paint,
        min_luminance: float,
    ) -> list[DrawOp]:
        """Buttons shown while interactive."""
        ops: list[DrawOp] = []
        if ctx.is_dark_mode:
            ops.append(
                geo.upright_text(
                    0, geo.button_radius, DARK_TOGGLE_OFF, hand, "light", fixed=True
                )
            )
        else:
            ops.append(
                geo.upright_text(
                    0, geo.button_radius, DARK_TOGGLE_ON, hand, "bold", fixed=True
                )
            )
        ops.append(
            geo.upright_text(90, geo.button_radius, ROTATE_GLYPH, hand, "bold", fixed=True)
        )
        if not ctx.is_minimal_mode and not ctx.show_details:
            ops.append(
                geo.upright_text(180, geo.center_y / 3 * 2, f"{ctx.minute:02d}", hand)
            )
        if abs(min_luminance - DEFAULT_MIN_LUMINANCE) >= 0.0001:
            ops.append(
                geo.upright_text(
                    80,
                    geo.hour_hand_length - geo.outer_radius * 0.2,
                    f"{min_luminance:.2f}",
                    hand,
                )
            )
        return ops

    def _hour_marker(
        self,
        geo: DialGeometry,
        hour: int,
        paint: Paint,
        background: Paint,
        inner_radius: float,
    ) -> list[DrawOp]:
        position = geo.point(hour * 15.0, geo.hour_hand_length)
        return [
            Circle(position, HOUR_MARKER_RADIUS, paint),
            Circle(position, inner_radius, background),
        ]

    def _hour_markers(
        self,
        ctx: "FrameContext",
        geo: DialGeometry,
        factor: float,
        hand: Paint,
        background: Paint,
        glyphs: str,
    ) -> list[DrawOp]:
        """Hour dots and even-hour numbers; the top slot yields to status glyphs."""
        active = not (ctx.is_ambient or ctx.is_dark_mode)
        inner = 3.0 if ctx.is_dark_mode and factor < VERY_DARK else 2.0
        ops: list[DrawOp] = []

        if not active:
            if ctx.is_minimal_mode:
                noon = hand.with_(color=color_at(12 * 15.0))
                ops.extend(self._hour_marker(geo, 12, noon, background, inner))
            return ops

        last_hour = 24 - min(1, len(glyphs))
        for hour in range(1, last_hour + 1):
            write_number = (
                ctx.show_hour_numbers
                and hour % 2 == 0
                and (ctx.is_minimal_mode or 3 <= hour <= 21)
            )
            if write_number:
                ops.append(
                    geo.upright_text(hour * 15.0, geo.hour_text_distance, str(hour), hand)
                )
            else:
                ops.extend(self._hour_marker(geo, hour, hand, background, inner))
        return ops

    def _text_lines(
        self,
        ctx: "FrameContext",
        geo: DialGeometry,
        hand: Paint,
        glyphs: str,
    ) -> list[DrawOp]:
        """Countdown, date, status and upcoming meetings, top down."""
        ops: list[DrawOp] = []
        spacing = LINE_SPACING * geo.label_size
        y = geo.center_y - geo.outer_radius * 0.8

        def line(text: str, typeface: Optional[str] = None) -> None:
            nonlocal y
            ops.append(
                geo.upright_text(
                    0, geo.center_y - y, text, hand, typeface=typeface, fixed=True
                )
            )
            y += spacing

        if ctx.countdown is not None:
            label = ctx.countdown.label(ctx.now)
            if label is not None:
                line(label)

        if ctx.is_ambient and not ctx.show_details:
            return ops

        line("" if ctx.is_minimal_mode else f"{ctx.now:%a %Y-%m-%d}")
        if not ctx.is_minimal_mode and len(glyphs) > 1:
            line(glyphs)

        window = datetime.timedelta(minutes=self.face.pre_announce_minutes)
        for event in ctx.events:
            if ctx.show_details:
                begin = event.begin
                if begin.tzinfo is not None and ctx.now.tzinfo is not None:
                    begin = begin.astimezone(ctx.now.tzinfo)
                radius = (
                    EVENT_MARKER_RADIUS_MINIMAL
                    if ctx.is_minimal_mode
                    else EVENT_MARKER_RADIUS
                )
                ops.append(
                    Circle(
                        geo.point(degrees_from_north(begin), geo.hour_hand_length),
                        radius,
                        hand.with_(style="stroke"),
                    )
                )

            until_start = event.begin - ctx.now
            if ctx.is_minimal_mode or until_start > window:
                continue
            title = event.title if event.title and event.title.strip() else NO_TITLE
            ongoing = until_start < datetime.timedelta(0)
            if ongoing:
                label = f"-{_minutes(event.end - ctx.now)} {title}"
            else:
                label = f"{_minutes(until_start)} {title}"
            typeface = "light" if ongoing else None
            first_length = min(self.face.title_max_length_line_1, len(label))
            line(label[:first_length], typeface)
            if len(label) > first_length:
                line(label[first_length : self.face.title_max_length], typeface)
        return ops
