"""Tests for the JSON calendar feed and event filtering."""

import datetime
import json

import pytest

from h24_watch.data.calendar import (
    EventFilter,
    JsonCalendarProvider,
    event_from_dict,
    sort_events,
)
from h24_watch.data.protocol import CalendarEvent


class TestEventFilter:
    """Tests for EventFilter."""

    def test_regular_meeting_accepted(self, make_event):
        assert EventFilter().accepts(make_event(10, 30)) is True

    def test_all_day_flag_excluded(self, make_event):
        assert EventFilter().accepts(make_event(10, 30, is_all_day=True)) is False

    def test_day_long_event_excluded(self, make_event):
        """Test events of 24h minus one minute count as all-day."""
        assert EventFilter().accepts(make_event(0, 24 * 60 - 1)) is False
        assert EventFilter().accepts(make_event(0, 24 * 60 - 2)) is True

    def test_free_event_excluded(self, make_event):
        assert EventFilter().accepts(make_event(10, 30, is_busy=False)) is False

    def test_filters_can_be_disabled(self, make_event):
        event_filter = EventFilter(exclude_all_day=False, require_busy=False)
        assert event_filter.accepts(make_event(10, 30, is_all_day=True)) is True
        assert event_filter.accepts(make_event(10, 30, is_busy=False)) is True

    def test_inverted_event_rejected(self, now):
        event = CalendarEvent(begin=now, end=now - datetime.timedelta(minutes=5))
        assert EventFilter().accepts(event) is False


class TestEventFromDict:
    """Tests for event_from_dict."""

    def test_naive_times_get_timezone(self, tz):
        event = event_from_dict(
            {"title": "Lunch", "begin": "2024-03-14T12:00", "end": "2024-03-14T13:00"},
            tz,
        )
        assert event.title == "Lunch"
        assert event.begin.tzinfo == tz
        assert event.duration == datetime.timedelta(hours=1)
        assert event.is_busy is True

    def test_missing_key(self):
        with pytest.raises(KeyError):
            event_from_dict({"begin": "2024-03-14T12:00"})


class TestJsonCalendarProvider:
    """Tests for the JsonCalendarProvider class."""

    @pytest.fixture
    def write_events(self, tmp_path):
        path = tmp_path / "events.json"

        def _write(entries):
            path.write_text(json.dumps(entries))
            return path

        return _write

    def _entry(self, now, start_minutes, length_minutes=30, **extra):
        begin = now + datetime.timedelta(minutes=start_minutes)
        end = begin + datetime.timedelta(minutes=length_minutes)
        return {"begin": begin.isoformat(), "end": end.isoformat(), **extra}

    def test_events_sorted_and_windowed(self, write_events, now, tz):
        path = write_events(
            [
                self._entry(now, 120, title="Later"),
                self._entry(now, 10, title="Soon"),
                self._entry(now, 30 * 60, title="Tomorrow"),
                self._entry(now, -90, title="Over"),
            ]
        )
        provider = JsonCalendarProvider(path, tz=tz, clock=lambda: now)
        titles = [e.title for e in provider.get_events(18)]
        assert titles == ["Soon", "Later"]

    def test_ongoing_event_kept(self, write_events, now, tz):
        path = write_events([self._entry(now, -10, 30, title="Running")])
        provider = JsonCalendarProvider(path, tz=tz, clock=lambda: now)
        assert [e.title for e in provider.get_events(18)] == ["Running"]

    def test_malformed_entries_skipped(self, write_events, now, tz):
        path = write_events(
            [{"begin": "yesterday"}, {"title": "x"}, self._entry(now, 5, title="Ok")]
        )
        provider = JsonCalendarProvider(path, tz=tz, clock=lambda: now)
        assert [e.title for e in provider.get_events(18)] == ["Ok"]

    def test_missing_file_no_events(self, tmp_path, now):
        provider = JsonCalendarProvider(tmp_path / "nope.json", clock=lambda: now)
        assert provider.get_events(18) == []

    def test_invalid_json_no_events(self, tmp_path, now):
        path = tmp_path / "events.json"
        path.write_text("[{")
        provider = JsonCalendarProvider(path, clock=lambda: now)
        assert provider.get_events(18) == []

    def test_not_a_list(self, write_events, now):
        path = write_events({"events": []})
        provider = JsonCalendarProvider(path, clock=lambda: now)
        assert provider.get_events(18) == []


def test_sort_events(make_event):
    late, early = make_event(60), make_event(5)
    assert sort_events([late, early]) == [early, late]
