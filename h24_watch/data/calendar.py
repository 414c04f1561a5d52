"""Calendar event feed backed by a JSON file."""

import datetime
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .protocol import CalendarEvent

logger = logging.getLogger(__name__)

# Anything this long is shown like an all-day entry
ALL_DAY_DURATION = datetime.timedelta(hours=24) - datetime.timedelta(minutes=1)


@dataclass(frozen=True)
class EventFilter:
    """Decides which calendar entries reach the face."""

    exclude_all_day: bool = True
    require_busy: bool = True
    max_duration: datetime.timedelta = ALL_DAY_DURATION

    def accepts(self, event: CalendarEvent) -> bool:
        if event.end < event.begin:
            return False
        all_day = event.is_all_day or event.duration >= self.max_duration
        if self.exclude_all_day and all_day:
            return False
        if self.require_busy and not event.is_busy:
            return False
        return True


def sort_events(events: list[CalendarEvent]) -> list[CalendarEvent]:
    """Order events by begin time."""
    return sorted(events, key=lambda e: e.begin)


def _parse_time(value: str, tz: Optional[datetime.tzinfo]) -> datetime.datetime:
    parsed = datetime.datetime.fromisoformat(value)
    if parsed.tzinfo is None and tz is not None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def event_from_dict(
    data: dict, tz: Optional[datetime.tzinfo] = None
) -> CalendarEvent:
    """
    Build an event from a JSON object.

    Expected keys: ``begin`` and ``end`` (ISO 8601), optional ``title``,
    ``all_day`` and ``busy``.

    Raises:
        KeyError: If begin or end is missing
        ValueError: If a timestamp cannot be parsed
    """
    return CalendarEvent(
        title=data.get("title"),
        begin=_parse_time(data["begin"], tz),
        end=_parse_time(data["end"], tz),
        is_all_day=bool(data.get("all_day", False)),
        is_busy=bool(data.get("busy", True)),
    )


class JsonCalendarProvider:
    """
    Reads calendar events from a JSON file.

    The file holds a list of event objects. Malformed entries are skipped,
    an unreadable file yields no events.
    """

    def __init__(
        self,
        path: Path,
        event_filter: Optional[EventFilter] = None,
        tz: Optional[datetime.tzinfo] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None,
    ):
        """
        Initialize calendar provider.

        Args:
            path: JSON file with the event list
            event_filter: Filter applied to every event
            tz: Timezone for timestamps without offset
            clock: Returns the current time (default: now in tz)
        """
        self.path = path
        self.event_filter = event_filter or EventFilter()
        self.tz = tz
        self._clock = clock or (lambda: datetime.datetime.now(self.tz))

    def _load(self) -> list[dict]:
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug(f"Calendar file not found: {self.path}")
            return []
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read calendar {self.path}: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Calendar {self.path} is not a list of events")
            return []
        return data

    def get_events(self, window_hours: int) -> list[CalendarEvent]:
        """
        Get events overlapping the next ``window_hours`` hours.

        Returns:
            Filtered events ordered by begin time
        """
        now = self._clock()
        window_end = now + datetime.timedelta(hours=window_hours)

        events = []
        for entry in self._load():
            try:
                event = event_from_dict(entry, self.tz)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed calendar entry {entry!r}: {e}")
                continue
            if event.end < now or event.begin > window_end:
                continue
            if self.event_filter.accepts(event):
                events.append(event)
        return sort_events(events)
