"""Step counter with midnight rollover."""

import datetime
import threading
from typing import Callable, Optional

from .protocol import StepCount


class StepCounter:
    """
    Accumulates a cumulative step sensor into total and today's steps.

    The sensor reports steps since boot. The last count seen before a
    date change becomes the baseline for "today"; before any date change
    all steps since boot count as today's.
    """

    def __init__(self, clock: Optional[Callable[[], datetime.datetime]] = None):
        self._clock = clock or datetime.datetime.now
        self._lock = threading.Lock()
        self._steps = 0
        self._steps_at_midnight = 0
        self._last_date: Optional[datetime.date] = None

    def update(self, total_steps: int) -> None:
        """Record a new cumulative step count."""
        today = self._clock().date()
        with self._lock:
            if self._last_date is None or today != self._last_date:
                self._steps_at_midnight = self._steps if self._last_date else 0
            self._steps = total_steps
            self._last_date = today

    def get_steps(self) -> int:
        with self._lock:
            return self._steps

    def get_steps_today(self) -> int:
        with self._lock:
            return max(0, self._steps - self._steps_at_midnight)

    def snapshot(self) -> StepCount:
        with self._lock:
            return StepCount(
                total=self._steps,
                today=max(0, self._steps - self._steps_at_midnight),
            )
