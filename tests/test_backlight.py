"""Tests for the sysfs backlight boost lock."""

import time

import pytest

from h24_watch.data.backlight import BacklightBoostLock, find_backlight
from h24_watch.data.protocol import WakeResource


@pytest.fixture
def backlight(tmp_path):
    device = tmp_path / "backlight" / "panel0"
    device.mkdir(parents=True)
    (device / "brightness").write_text("40\n")
    (device / "max_brightness").write_text("255\n")
    return device


class TestBacklightBoostLock:
    """Tests for the BacklightBoostLock class."""

    def test_is_wake_resource(self, backlight):
        assert isinstance(BacklightBoostLock(backlight), WakeResource)

    def test_find_backlight(self, backlight):
        assert find_backlight(backlight.parent) == backlight
        assert find_backlight(backlight.parent / "none") is None

    def test_acquire_and_release(self, backlight):
        lock = BacklightBoostLock(backlight)
        lock.acquire(5.0)
        assert lock.held is True
        assert (backlight / "brightness").read_text() == "255"

        lock.release()
        assert lock.held is False
        assert (backlight / "brightness").read_text() == "40"

    def test_release_idempotent(self, backlight):
        lock = BacklightBoostLock(backlight)
        lock.release()
        lock.acquire(5.0)
        lock.release()
        lock.release()
        assert (backlight / "brightness").read_text() == "40"

    def test_reacquire_keeps_original_brightness(self, backlight):
        lock = BacklightBoostLock(backlight)
        lock.acquire(5.0)
        lock.acquire(5.0)
        lock.release()
        assert (backlight / "brightness").read_text() == "40"

    def test_released_after_timeout(self, backlight):
        """Test the lease ends by itself even if nobody releases it."""
        lock = BacklightBoostLock(backlight)
        lock.acquire(0.05)
        deadline = time.time() + 2.0
        while lock.held and time.time() < deadline:
            time.sleep(0.01)
        assert lock.held is False
        assert (backlight / "brightness").read_text() == "40"

    def test_acquire_failure_raises_oserror(self, tmp_path):
        lock = BacklightBoostLock(tmp_path / "missing")
        with pytest.raises(OSError):
            lock.acquire(3.0)
        assert lock.held is False
