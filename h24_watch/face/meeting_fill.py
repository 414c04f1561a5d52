"""Meeting-aware fill of the central hour digit.

The digit drains like an hourglass: the part of the hour still to come is
painted over in the background color. Meetings that start within the
pre-announce window are cut into that fill as one-minute visible lines
(this hour) or thin preview lines (next hour).
"""

import datetime
from dataclasses import dataclass, field
from typing import Iterable

from ..data.protocol import CalendarEvent

DEFAULT_PRE_ANNOUNCE_MINUTES = 50
MINUTE = 1 / 60


@dataclass(frozen=True)
class FillBand:
    """Blanked slice of the digit, offsets measured from the glyph top."""

    top: float
    height: float


@dataclass(frozen=True)
class PreviewLine:
    """One-minute marker for a meeting starting in the next hour."""

    offset: float
    thickness: float


@dataclass(frozen=True)
class FillPlan:
    bands: list[FillBand] = field(default_factory=list)
    preview_lines: list[PreviewLine] = field(default_factory=list)

    @property
    def remaining_band(self) -> FillBand:
        """The closing band covering what is left of the hour."""
        return self.bands[-1]


def _qualifies(
    event: CalendarEvent, now: datetime.datetime, window: datetime.timedelta
) -> bool:
    if event.is_all_day:
        return False
    if event.duration >= datetime.timedelta(hours=24):
        return False
    until = event.begin - now
    return datetime.timedelta(0) < until <= window


def plan_fill(
    now: datetime.datetime,
    events: Iterable[CalendarEvent],
    text_size: float,
    pre_announce_minutes: int = DEFAULT_PRE_ANNOUNCE_MINUTES,
) -> FillPlan:
    """
    Plan the blanked bands of the hour digit.

    Events must be ordered by begin time. Overlapping meetings are not
    merged: each band starts where the previous one left off.

    Args:
        now: Current time
        events: Calendar events ordered by begin
        text_size: Height of the digit glyph in pixels
        pre_announce_minutes: How far ahead meetings are shown

    Returns:
        FillPlan whose last band is the remaining part of the hour
    """
    minutes = now.minute
    window = datetime.timedelta(minutes=pre_announce_minutes)
    remaining = 1 - minutes / 60
    last_minutes = minutes
    plan = FillPlan()

    for event in events:
        if not _qualifies(event, now, window):
            continue
        minutes_until = int((event.begin - now).total_seconds() // 60)
        minutes_of_event = minutes + minutes_until
        if minutes_of_event >= 60:
            relative = (minutes_of_event - 60) / 60
            plan.preview_lines.append(
                PreviewLine(offset=text_size * relative, thickness=text_size * MINUTE)
            )
        else:
            to_blank = (minutes_of_event - last_minutes) / 60 - MINUTE
            plan.bands.append(
                FillBand(top=text_size * (1 - remaining), height=text_size * to_blank)
            )
            last_minutes = minutes_of_event + 1
            remaining = remaining - to_blank - MINUTE

    plan.bands.append(
        FillBand(top=text_size * (1 - remaining), height=text_size * remaining)
    )
    return plan
