"""Touch input: taps on screen regions toggle face settings."""

import enum
import logging
import threading
import time
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from .config import TouchConfig

logger = logging.getLogger(__name__)

# evdev is only available on the device (``touch`` extra)
try:
    from evdev import InputDevice, ecodes

    EVDEV_AVAILABLE = True
except ImportError:
    EVDEV_AVAILABLE = False
    logger.info("evdev not available - touch input disabled")


class TapAction(enum.Enum):
    TOGGLE_DARK_MODE = "dark"
    ROTATE = "rotate"
    DIMMER = "dimmer"
    BRIGHTER = "brighter"
    TOGGLE_DETAILS = "details"


def classify_tap(x: float, y: float, width: int, height: int) -> Optional[TapAction]:
    """
    Map a tap position to a face action.

    Top quarter toggles dark mode; the rotate button sits right of center;
    the left and right quarters nudge the minimum luminance; the bottom
    quarter toggles the details. The middle does nothing.
    """
    cx = width / 2
    cy = height / 2
    if y <= cy / 2:
        return TapAction.TOGGLE_DARK_MODE
    if x >= 1.5 * cx and abs(y - cy) <= cy / 4:
        return TapAction.ROTATE
    if x <= cx / 2:
        return TapAction.DIMMER
    if x >= 1.5 * cx:
        return TapAction.BRIGHTER
    if y >= 1.5 * cy:
        return TapAction.TOGGLE_DETAILS
    return None


class TouchHandler:
    """Reads an evdev touchscreen and reports classified taps."""

    def __init__(
        self,
        config: "TouchConfig",
        on_tap: Callable[[TapAction], None],
        display_width: int = 390,
        display_height: int = 390,
    ):
        """
        Initialize touch handler.

        Args:
            config: Touch configuration
            on_tap: Called with the action of every recognized tap
            display_width: Display width in pixels
            display_height: Display height in pixels
        """
        self.config = config
        self.on_tap = on_tap
        self.display_width = display_width
        self.display_height = display_height

        self.touch_start_x: Optional[int] = None
        self.touch_start_y: Optional[int] = None
        self.touch_start_time: Optional[float] = None
        self.current_x: int = 0
        self.current_y: int = 0

        # Minimum time between taps (seconds)
        self.last_tap_time: float = 0.0
        self.tap_cooldown: float = 0.15

        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._device: Optional["InputDevice"] = None

        self.raw_min = 0
        self.raw_max = 4095

    def start(self) -> bool:
        """
        Start the touch input thread.

        Returns:
            True if started successfully, False otherwise
        """
        if not EVDEV_AVAILABLE:
            logger.warning("Touch input not available (evdev not installed)")
            return False

        if not self.config.enabled:
            logger.info("Touch input disabled in config")
            return False

        try:
            self._device = InputDevice(self.config.device)
            logger.info(f"Touch device: {self._device.name}")
        except FileNotFoundError:
            logger.error(f"Touch device not found: {self.config.device}")
            return False
        except PermissionError:
            logger.error(
                f"Permission denied for {self.config.device}. "
                "Run as root or add user to 'input' group."
            )
            return False

        self._running = True
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        logger.info("Touch handler started")
        return True

    def stop(self) -> None:
        self._running = False
        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self._device:
            self._device.close()
            self._device = None
        logger.info("Touch handler stopped")

    def _run(self) -> None:
        if self._device is None:
            return

        try:
            for event in self._device.read_loop():
                if not self._running:
                    break
                self._process_event(event)
        except OSError as e:
            if self._running:
                logger.error(f"Touch device error: {e}")

    def _process_event(self, event) -> None:
        if event.type == ecodes.EV_ABS:
            if event.code == ecodes.ABS_X:
                self.current_x = self._scale(event.value, self.display_width)
            elif event.code == ecodes.ABS_Y:
                self.current_y = self._scale(event.value, self.display_height)

        elif event.type == ecodes.EV_KEY and event.code == ecodes.BTN_TOUCH:
            if event.value == 1:
                self._on_touch_down()
            elif event.value == 0:
                self._on_touch_up()

    def _scale(self, raw_value: int, extent: int) -> int:
        normalized = (raw_value - self.raw_min) / (self.raw_max - self.raw_min)
        return int(normalized * extent)

    def _on_touch_down(self) -> None:
        self.touch_start_x = self.current_x
        self.touch_start_y = self.current_y
        self.touch_start_time = time.time()

    def _reset(self) -> None:
        self.touch_start_x = None
        self.touch_start_y = None
        self.touch_start_time = None

    def _on_touch_up(self) -> None:
        """Report a tap if the touch was short and barely moved."""
        if self.touch_start_x is None or self.touch_start_time is None:
            return

        now = time.time()
        since_last = now - self.last_tap_time
        if since_last < self.tap_cooldown:
            logger.debug(f"Ignoring tap (debounce: {since_last:.3f}s)")
            self._reset()
            return

        dx = abs(self.current_x - self.touch_start_x)
        dy = abs(self.current_y - (self.touch_start_y or 0))
        elapsed = now - self.touch_start_time
        self._reset()

        if max(dx, dy) >= self.config.tap_threshold or elapsed >= self.config.tap_timeout:
            logger.debug(f"Not a tap (dx={dx}, dy={dy}, elapsed={elapsed:.2f}s)")
            return

        action = classify_tap(
            self.current_x, self.current_y, self.display_width, self.display_height
        )
        self.last_tap_time = now
        if action is None:
            return
        logger.debug(f"Tap at ({self.current_x}, {self.current_y}) -> {action.value}")
        self.on_tap(action)
