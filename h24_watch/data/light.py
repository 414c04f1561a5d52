"""Ambient light sampling and the Linux IIO light sensor feed."""

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from .protocol import LightSample, SampleCallback

logger = logging.getLogger(__name__)

IIO_DEVICES = Path("/sys/bus/iio/devices")


class LightSampler:
    """
    Single-slot mailbox holding the most recent light sample.

    Written from the sensor thread, read from the frame path.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._latest: Optional[LightSample] = None

    def put(self, sample: LightSample) -> LightSample:
        """Store a sample, clamping negative illuminance to zero."""
        if sample.illuminance < 0:
            sample = LightSample(0.0, sample.timestamp)
        with self._lock:
            self._latest = sample
        return sample

    @property
    def latest(self) -> Optional[LightSample]:
        with self._lock:
            return self._latest

    def seconds_since_sample(self) -> Optional[float]:
        """Seconds since the last sample, or None if nothing arrived yet."""
        latest = self.latest
        if latest is None:
            return None
        return self._clock() - latest.timestamp


def find_iio_light_device(root: Path = IIO_DEVICES) -> Optional[Path]:
    """Find the first IIO ambient light sensor device directory."""
    if not root.exists():
        return None
    matches = sorted(root.glob("*/in_illuminance_raw"))
    if not matches:
        matches = sorted(root.glob("*/in_illuminance_input"))
    if matches:
        return matches[0].parent
    return None


def read_iio_lux(device: Path) -> float:
    """Read current illuminance in lux from an IIO device directory."""
    direct = device / "in_illuminance_input"
    if direct.exists():
        return float(direct.read_text().strip())

    raw = float((device / "in_illuminance_raw").read_text().strip())
    try:
        scale = float((device / "in_illuminance_scale").read_text().strip())
    except (FileNotFoundError, ValueError):
        scale = 1.0
    try:
        offset = float((device / "in_illuminance_offset").read_text().strip())
    except (FileNotFoundError, ValueError):
        offset = 0.0
    return (raw + offset) * scale


class IioLightSensor:
    """
    Polls a Linux IIO ambient light sensor and pushes samples.

    Implements the SensorFeed protocol. Read failures are logged and
    skipped, they never reach the callback.
    """

    def __init__(
        self,
        device: Optional[Path] = None,
        poll_interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize sensor poller.

        Args:
            device: IIO device directory (autodetected when None)
            poll_interval: Seconds between reads
            clock: Monotonic clock used for sample timestamps
        """
        self.device = device if device is not None else find_iio_light_device()
        self.poll_interval = poll_interval
        self._clock = clock
        self._callback: Optional[SampleCallback] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def available(self) -> bool:
        return self.device is not None

    @property
    def registered(self) -> bool:
        return self._thread is not None

    def register(self, callback: SampleCallback) -> bool:
        """Start polling and delivering samples to callback."""
        if self.device is None:
            logger.warning("No ambient light sensor found")
            return False

        self._callback = callback
        if self._thread is not None and self._thread.is_alive():
            return True

        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        logger.info(f"Light sensor registered: {self.device}")
        return True

    def unregister(self, callback: SampleCallback) -> None:
        """Stop polling. Safe to call repeatedly."""
        self._callback = None
        self._stop.set()
        if self._thread is not None:
            if self._thread is not threading.current_thread():
                self._thread.join(timeout=self.poll_interval + 1.0)
            self._thread = None
            logger.info("Light sensor unregistered")

    def read_sample(self) -> Optional[LightSample]:
        """Take one reading, returning None on failure."""
        if self.device is None:
            return None
        try:
            lux = read_iio_lux(self.device)
        except (OSError, ValueError) as e:
            logger.debug(f"Light sensor read failed: {e}")
            return None
        return LightSample(illuminance=lux, timestamp=self._clock())

    def _run(self) -> None:
        """Poll loop (runs in thread)."""
        while not self._stop.is_set():
            sample = self.read_sample()
            callback = self._callback
            if sample is not None and callback is not None:
                try:
                    callback(sample)
                except Exception as e:
                    logger.error(f"Light sample callback failed: {e}", exc_info=True)
            self._stop.wait(self.poll_interval)
