"""Collaborator protocols and the value types they deliver."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .countdown import Countdown


@dataclass(frozen=True)
class LightSample:
    """A single ambient light reading."""

    illuminance: float  # lux
    timestamp: float  # time.monotonic() seconds


@dataclass(frozen=True)
class CalendarEvent:
    """A calendar entry as delivered by the calendar feed."""

    begin: datetime.datetime
    end: datetime.datetime
    title: Optional[str] = None
    is_all_day: bool = False
    is_busy: bool = True

    @property
    def duration(self) -> datetime.timedelta:
        return self.end - self.begin


@dataclass(frozen=True)
class StatusSnapshot:
    """System status as seen by the face.

    ``glyphs`` holds one character per active indicator and is treated as
    opaque by the renderer; only its length drives layout.
    """

    glyphs: str = ""
    battery_percent: Optional[int] = None
    charging: bool = False


@dataclass(frozen=True)
class StepCount:
    """Step totals since boot and since local midnight."""

    total: int = 0
    today: int = 0


SampleCallback = Callable[[LightSample], None]


@runtime_checkable
class SensorFeed(Protocol):
    """Push-based ambient light sensor."""

    def register(self, callback: SampleCallback) -> bool:
        """Start delivering samples to ``callback``. Returns success."""
        ...

    def unregister(self, callback: SampleCallback) -> None:
        """Stop delivering samples. Must be idempotent."""
        ...


@runtime_checkable
class WakeResource(Protocol):
    """A resource that forces full display brightness while held."""

    def acquire(self, timeout: float) -> None:
        """Acquire for at most ``timeout`` seconds. Raises OSError on failure."""
        ...

    def release(self) -> None:
        """Release if held. Must be idempotent."""
        ...


class CalendarProvider(Protocol):
    def get_events(self, window_hours: int) -> list[CalendarEvent]: ...


class StatusProvider(Protocol):
    def get_status(self) -> StatusSnapshot: ...


class StepProvider(Protocol):
    def get_steps(self) -> int: ...

    def get_steps_today(self) -> int: ...


class AlarmProvider(Protocol):
    def get_next_alarm(self) -> Optional[datetime.datetime]: ...


class CountdownProvider(Protocol):
    def get_countdown(self) -> Optional[Countdown]: ...
