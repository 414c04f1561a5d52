"""Countdown timer feed with a typed duration parser."""

import datetime
import logging
import re
import threading
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


class CountdownParseError(ValueError):
    """Raised when countdown text is not a valid H:MM[:SS] duration."""


def parse_duration(text: str) -> datetime.timedelta:
    """
    Parse countdown text such as ``"1:05"`` or ``"00:04:30"``.

    Args:
        text: Hours and minutes, optionally followed by seconds

    Returns:
        The duration as a timedelta

    Raises:
        CountdownParseError: If the text is malformed or out of range
    """
    if text is None:
        raise CountdownParseError("Countdown text is missing")
    match = _DURATION_RE.match(text)
    if match is None:
        raise CountdownParseError(f"Not a H:MM[:SS] duration: {text!r}")

    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = int(match.group(3) or 0)
    if minutes >= 60 or seconds >= 60:
        raise CountdownParseError(f"Minutes and seconds must be below 60: {text!r}")
    return datetime.timedelta(hours=hours, minutes=minutes, seconds=seconds)


@dataclass(frozen=True)
class Countdown:
    """A countdown reading plus the time it was taken."""

    remaining: datetime.timedelta
    as_of: datetime.datetime

    def remaining_at(self, now: datetime.datetime) -> datetime.timedelta:
        """Extrapolate the remaining time to ``now``."""
        return self.remaining - (now - self.as_of)

    def label(self, now: datetime.datetime) -> Optional[str]:
        """
        Short label like ``T-2h``, ``T-5'`` or ``T-<30s``.

        Returns None once the countdown has expired.
        """
        left = self.remaining_at(now)
        if left < datetime.timedelta(0):
            return None
        total = int(left.total_seconds())
        hours, rest = divmod(total, 3600)
        minutes, seconds = divmod(rest, 60)
        if hours >= 1:
            return f"T-{hours}h"
        if minutes >= 1:
            return f"T-{minutes}'"
        return f"T-<{seconds}s"


class CountdownTimer:
    """Holds the active countdown, set from text or a duration."""

    def __init__(self, clock: Optional[Callable[[], datetime.datetime]] = None):
        self._clock = clock or datetime.datetime.now
        self._lock = threading.Lock()
        self._countdown: Optional[Countdown] = None

    def start(self, duration: datetime.timedelta) -> Countdown:
        countdown = Countdown(remaining=duration, as_of=self._clock())
        with self._lock:
            self._countdown = countdown
        logger.info(f"Countdown started: {duration}")
        return countdown

    def start_from_text(self, text: str) -> Countdown:
        """Start from ``H:MM[:SS]`` text. Raises CountdownParseError."""
        return self.start(parse_duration(text))

    def cancel(self) -> None:
        with self._lock:
            self._countdown = None

    def get_countdown(self) -> Optional[Countdown]:
        """Active countdown, or None once it has run out."""
        with self._lock:
            countdown = self._countdown
        if countdown is None:
            return None
        if countdown.remaining_at(self._clock()) < datetime.timedelta(0):
            with self._lock:
                if self._countdown is countdown:
                    self._countdown = None
            return None
        return countdown
