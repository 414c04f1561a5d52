"""Alarm feed."""

import datetime
import threading
from typing import Optional


class StaticAlarmProvider:
    """Alarm feed holding a single, externally set trigger time."""

    def __init__(self, next_alarm: Optional[datetime.datetime] = None):
        self._lock = threading.Lock()
        self._next_alarm = next_alarm

    def set_next_alarm(self, when: Optional[datetime.datetime]) -> None:
        with self._lock:
            self._next_alarm = when

    def get_next_alarm(self) -> Optional[datetime.datetime]:
        with self._lock:
            return self._next_alarm


def alarm_in_window(
    alarm: Optional[datetime.datetime],
    now: datetime.datetime,
    window_hours: int,
) -> bool:
    """True if ``alarm`` is still ahead and within ``window_hours`` of now."""
    if alarm is None:
        return False
    return now <= alarm < now + datetime.timedelta(hours=window_hours)
