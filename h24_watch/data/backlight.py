"""Sysfs backlight wake lock used for brightness boosts."""

import logging
import threading
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

BACKLIGHT_ROOT = Path("/sys/class/backlight")


def find_backlight(root: Path = BACKLIGHT_ROOT) -> Optional[Path]:
    """Find the first sysfs backlight device directory."""
    if not root.exists():
        return None
    for device in sorted(root.iterdir()):
        if (device / "max_brightness").exists():
            return device
    return None


class BacklightBoostLock:
    """
    Forces the backlight to maximum brightness for a bounded time.

    Implements the WakeResource protocol. The previous brightness is
    restored on release, which also happens automatically when the
    timeout elapses even if nobody calls release().
    """

    def __init__(self, device: Path):
        self.device = device
        self._lock = threading.Lock()
        self._saved: Optional[str] = None
        self._timer: Optional[threading.Timer] = None

    @property
    def held(self) -> bool:
        with self._lock:
            return self._saved is not None

    def acquire(self, timeout: float) -> None:
        """
        Boost to max brightness.

        Args:
            timeout: Seconds after which the boost is released automatically

        Raises:
            OSError: If the backlight cannot be read or written
        """
        with self._lock:
            if self._saved is None:
                brightness = self.device / "brightness"
                self._saved = brightness.read_text().strip()
                maximum = (self.device / "max_brightness").read_text().strip()
                try:
                    brightness.write_text(maximum)
                except OSError:
                    self._saved = None
                    raise
                logger.debug(f"Backlight boosted from {self._saved} to {maximum}")
            self._restart_timer(timeout)

    def release(self) -> None:
        """Restore the saved brightness. Safe to call repeatedly."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._saved is None:
                return
            saved, self._saved = self._saved, None
        try:
            (self.device / "brightness").write_text(saved)
            logger.debug(f"Backlight restored to {saved}")
        except OSError as e:
            logger.warning(f"Failed to restore backlight: {e}")

    def _restart_timer(self, timeout: float) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = threading.Timer(timeout, self.release)
        self._timer.daemon = True
        self._timer.start()
