"""Per-frame context and the collaborators it is built from."""

import datetime
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional, TypeVar

from ..data.calendar import sort_events
from ..data.protocol import CalendarEvent, StatusSnapshot, StepCount

if TYPE_CHECKING:
    from ..data.countdown import Countdown
    from ..data.protocol import (
        AlarmProvider,
        CalendarProvider,
        CountdownProvider,
        StatusProvider,
        StepProvider,
    )
    from ..dimming import DimmingState

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class FaceSettings:
    """User toggles that persist between frames (not across restarts)."""

    is_dark_mode: bool = True
    is_ambient: bool = False
    is_minimal_mode: bool = False
    show_details: bool = True
    show_hour_numbers: bool = True
    rotation: int = 0
    auto_brightness: bool = True

    def rotate(self) -> int:
        self.rotation = (self.rotation + 180) % 360
        return self.rotation


class DataProviders:
    """Container for collaborator feeds."""

    def __init__(
        self,
        calendar: Optional["CalendarProvider"] = None,
        status: Optional["StatusProvider"] = None,
        steps: Optional["StepProvider"] = None,
        alarm: Optional["AlarmProvider"] = None,
        countdown: Optional["CountdownProvider"] = None,
    ):
        self.calendar = calendar
        self.status = status
        self.steps = steps
        self.alarm = alarm
        self.countdown = countdown


@dataclass(frozen=True)
class FrameContext:
    """Everything one frame is drawn from."""

    now: datetime.datetime
    brightness_factor: float = 1.0
    min_luminance: float = 0.08
    is_dark_mode: bool = False
    is_ambient: bool = False
    is_minimal_mode: bool = False
    rotation: int = 0
    show_details: bool = True
    show_hour_numbers: bool = True
    auto_brightness: bool = True
    events: tuple[CalendarEvent, ...] = ()
    status: StatusSnapshot = field(default_factory=StatusSnapshot)
    steps: Optional[StepCount] = None
    next_alarm: Optional[datetime.datetime] = None
    countdown: Optional["Countdown"] = None

    @property
    def hour(self) -> int:
        return self.now.hour

    @property
    def minute(self) -> int:
        return self.now.minute


def _safe(what: str, call: Callable[[], T], default: T) -> T:
    """Call a collaborator, substituting ``default`` on failure."""
    try:
        value = call()
    except Exception as e:
        logger.warning(f"{what} unavailable: {e}")
        return default
    return default if value is None else value


def _valid_events(events: list[CalendarEvent]) -> tuple[CalendarEvent, ...]:
    kept = [e for e in events if e.end >= e.begin]
    if len(kept) != len(events):
        logger.debug(f"Dropped {len(events) - len(kept)} events ending before they begin")
    return tuple(sort_events(kept))


def build_frame_context(
    now: datetime.datetime,
    settings: FaceSettings,
    dimming: "DimmingState",
    providers: DataProviders,
    calendar_window_hours: int = 18,
) -> FrameContext:
    """
    Assemble a FrameContext, degrading every failing feed to a neutral value.

    Args:
        now: Frame time
        settings: Current user toggles
        dimming: Dimming snapshot for this frame
        providers: Collaborator feeds (any may be None)
        calendar_window_hours: How far ahead to ask the calendar

    Returns:
        FrameContext ready for the renderer
    """
    events: tuple[CalendarEvent, ...] = ()
    if providers.calendar is not None and not settings.is_minimal_mode:
        raw = _safe(
            "Calendar",
            lambda: providers.calendar.get_events(calendar_window_hours),
            [],
        )
        events = _valid_events(list(raw))

    status = StatusSnapshot()
    if providers.status is not None:
        status = _safe("Status", providers.status.get_status, StatusSnapshot())

    steps = None
    if providers.steps is not None:
        steps = _safe(
            "Steps",
            lambda: StepCount(
                total=providers.steps.get_steps(),
                today=providers.steps.get_steps_today(),
            ),
            None,
        )

    next_alarm = None
    if providers.alarm is not None:
        next_alarm = _safe("Alarm", providers.alarm.get_next_alarm, None)

    countdown = None
    if providers.countdown is not None:
        countdown = _safe("Countdown", providers.countdown.get_countdown, None)

    return FrameContext(
        now=now,
        brightness_factor=dimming.current_factor,
        min_luminance=dimming.min_luminance,
        is_dark_mode=settings.is_dark_mode,
        is_ambient=settings.is_ambient,
        is_minimal_mode=settings.is_minimal_mode,
        rotation=settings.rotation,
        show_details=settings.show_details,
        show_hour_numbers=settings.show_hour_numbers,
        auto_brightness=settings.auto_brightness,
        events=events,
        status=status,
        steps=steps,
        next_alarm=next_alarm,
        countdown=countdown,
    )
