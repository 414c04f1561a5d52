"""Pytest fixtures for H24 watch face tests."""

import datetime
import json
import sys
from pathlib import Path
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from h24_watch.config import DimmingConfig, FaceConfig  # noqa: E402
from h24_watch.data.protocol import CalendarEvent, StatusSnapshot  # noqa: E402
from h24_watch.face.context import DataProviders  # noqa: E402
from h24_watch.face.geometry import DialGeometry  # noqa: E402

TZ = ZoneInfo("Europe/Zurich")


class FakeMeasurer:
    """Deterministic text metrics: 0.6 em per character, one em high."""

    def measure(self, text, size, typeface="normal"):
        return (len(text) * size * 0.6, size)

    def ink_height(self, text, size, typeface="normal"):
        return size * 0.7


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def tz():
    return TZ


@pytest.fixture
def now():
    """A fixed wall-clock time: 10:15 local."""
    return datetime.datetime(2024, 3, 14, 10, 15, tzinfo=TZ)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def measurer():
    return FakeMeasurer()


@pytest.fixture
def geometry(measurer):
    return DialGeometry(390, 390, measurer)


@pytest.fixture
def dimming_config():
    return DimmingConfig()


@pytest.fixture
def face_config():
    return FaceConfig()


@pytest.fixture
def make_event(now):
    """Factory for events relative to the ``now`` fixture."""

    def _make(start_minutes: float, length_minutes: float = 30, title="Standup", **kw):
        begin = now + datetime.timedelta(minutes=start_minutes)
        return CalendarEvent(
            begin=begin,
            end=begin + datetime.timedelta(minutes=length_minutes),
            title=title,
            **kw,
        )

    return _make


@pytest.fixture
def sample_config_dict():
    """Sample configuration dictionary."""
    return {
        "location": {
            "name": "Zurich",
            "region": "Switzerland",
            "timezone": "Europe/Zurich",
            "latitude": 47.3769,
            "longitude": 8.5417,
        },
        "display": {
            "width": 390,
            "height": 390,
            "framebuffer": "/dev/fb1",
            "update_interval_seconds": 60,
        },
        "dimming": {"min_luminance": 0.1, "boost_timeout_seconds": 3},
        "face": {"dark_mode": "on", "rotation": 180, "show_details": False},
        "calendar": {"path": "/tmp/events.json", "window_hours": 12},
        "sensor": {"enabled": False},
        "http_server": {"enabled": True, "port": 8080, "bind_address": "127.0.0.1"},
        "touch": {
            "enabled": True,
            "device": "/dev/input/event0",
            "tap_threshold": 30,
            "tap_timeout": 0.4,
        },
    }


@pytest.fixture
def temp_config_file(tmp_path, sample_config_dict):
    """Create a temporary config file."""
    config_path = tmp_path / "config.json"
    with open(config_path, "w") as f:
        json.dump(sample_config_dict, f)
    return config_path


@pytest.fixture
def sample_config(sample_config_dict):
    """Create a Config object from sample data."""
    from h24_watch.config import _dict_to_config

    return _dict_to_config(sample_config_dict)


@pytest.fixture
def mock_providers(now):
    """Create mock collaborator feeds."""
    calendar = MagicMock()
    calendar.get_events.return_value = []

    status = MagicMock()
    status.get_status.return_value = StatusSnapshot(glyphs="", battery_percent=80)

    steps = MagicMock()
    steps.get_steps.return_value = 12345
    steps.get_steps_today.return_value = 2345

    alarm = MagicMock()
    alarm.get_next_alarm.return_value = None

    countdown = MagicMock()
    countdown.get_countdown.return_value = None

    return DataProviders(
        calendar=calendar,
        status=status,
        steps=steps,
        alarm=alarm,
        countdown=countdown,
    )
