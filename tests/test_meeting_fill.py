"""Tests for the meeting-aware hour digit fill."""

import datetime

import pytest

from h24_watch.data.protocol import CalendarEvent
from h24_watch.face.meeting_fill import FillBand, plan_fill

TEXT_SIZE = 120.0


@pytest.fixture
def at_minute(now):
    def _at(minute):
        return now.replace(minute=minute)

    return _at


class TestPlanFill:
    """Tests for plan_fill."""

    def test_no_events_single_band(self, at_minute):
        """Test the plain hourglass: one band for the rest of the hour."""
        plan = plan_fill(at_minute(15), [], TEXT_SIZE)
        assert plan.preview_lines == []
        assert plan.bands == [
            FillBand(top=TEXT_SIZE * 15 / 60, height=TEXT_SIZE * 45 / 60)
        ]

    def test_top_of_hour_blanks_everything(self, at_minute):
        plan = plan_fill(at_minute(0), [], TEXT_SIZE)
        assert plan.remaining_band.top == 0
        assert plan.remaining_band.height == TEXT_SIZE

    def test_meeting_this_hour_leaves_gap(self, now, make_event):
        """Test a meeting at :30 splits the fill with a one-minute line."""
        plan = plan_fill(now, [make_event(15, 30, title="Review")], TEXT_SIZE)

        first, rest = plan.bands
        assert first.top == pytest.approx(TEXT_SIZE * 15 / 60)
        assert first.height == pytest.approx(TEXT_SIZE * 14 / 60)
        # One visible minute between the bands
        assert rest.top == pytest.approx(TEXT_SIZE * 30 / 60)
        assert rest.height == pytest.approx(TEXT_SIZE * 30 / 60)
        assert plan.preview_lines == []

    def test_meeting_next_hour_gives_preview_line(self, at_minute):
        """Test minute 55 with a meeting in 10 minutes marks minute 5."""
        now = at_minute(55)
        event = CalendarEvent(
            begin=now + datetime.timedelta(minutes=10),
            end=now + datetime.timedelta(minutes=40),
        )
        plan = plan_fill(now, [event], TEXT_SIZE)

        assert len(plan.preview_lines) == 1
        line = plan.preview_lines[0]
        assert line.offset == pytest.approx(TEXT_SIZE * 5 / 60)
        assert line.thickness == pytest.approx(TEXT_SIZE / 60)
        assert len(plan.bands) == 1
        assert plan.remaining_band.top == pytest.approx(TEXT_SIZE * 55 / 60)
        assert plan.remaining_band.height == pytest.approx(TEXT_SIZE * 5 / 60)

    def test_events_outside_window_ignored(self, now, make_event):
        plan = plan_fill(now, [make_event(51)], TEXT_SIZE)
        assert len(plan.bands) == 1
        assert plan.preview_lines == []

    def test_custom_window(self, now, make_event):
        plan = plan_fill(now, [make_event(55)], TEXT_SIZE, 60)
        assert len(plan.preview_lines) == 1

    def test_ongoing_and_all_day_ignored(self, now, make_event):
        events = [
            make_event(-10, 30),
            make_event(10, 30, is_all_day=True),
            make_event(10, 24 * 60),
        ]
        plan = plan_fill(now, events, TEXT_SIZE)
        assert len(plan.bands) == 1

    def test_overlapping_meetings_planned_in_order(self, at_minute):
        """Test overlaps are not merged, the second band follows the first."""

        now = at_minute(0)
        events = [
            CalendarEvent(
                begin=now + datetime.timedelta(minutes=20),
                end=now + datetime.timedelta(minutes=50),
            ),
            CalendarEvent(
                begin=now + datetime.timedelta(minutes=20),
                end=now + datetime.timedelta(minutes=30),
            ),
        ]
        plan = plan_fill(now, events, TEXT_SIZE)

        assert len(plan.bands) == 3
        # Second band starts where the first left off and comes out inverted
        assert plan.bands[1].height < 0
        total = sum(band.height for band in plan.bands)
        assert total < TEXT_SIZE
