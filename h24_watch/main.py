"""Main entry point for the H24 watch face."""

import argparse
import datetime
import logging
import queue
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from PIL import Image

from .config import Config, load_config
from .data import (
    BacklightBoostLock,
    CountdownTimer,
    EventFilter,
    IioLightSensor,
    JsonCalendarProvider,
    LinuxStatusProvider,
    StaticAlarmProvider,
    StepCounter,
)
from .data.backlight import find_backlight
from .dimming import DimmingController
from .display import Display, PngDisplay
from .face import (
    Canvas,
    DarkModeScheduler,
    DataProviders,
    DialGeometry,
    FaceSettings,
    WatchFaceRenderer,
    build_frame_context,
    get_font_manager,
)
from .http_server import create_server, start_server_thread
from .touch_handler import TapAction, TouchHandler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)

logger = logging.getLogger(__name__)

MIN_LUMINANCE_STEP = 0.01

# Queue item that ends the main loop
_STOP = object()


class WatchFaceApp:
    """
    Main watch face application.

    Minute ticks, light-change invalidations, taps and HTTP commands all end
    up on one queue; frames are only ever rendered by the loop in ``run``.
    """

    def __init__(
        self,
        config: Config,
        display: Optional[Display] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None,
    ):
        """
        Initialize the watch face application.

        Args:
            config: Application configuration
            display: Frame output (framebuffer by default)
            clock: Wall clock, timezone aware
        """
        self.config = config
        self.running = False
        self.tz = ZoneInfo(config.location.timezone)
        self._clock = clock or (lambda: datetime.datetime.now(self.tz))

        self._queue: queue.Queue = queue.Queue()
        self._settings_lock = threading.Lock()
        self._redraw_timer: Optional[threading.Timer] = None
        self._last_frame: Optional[Image.Image] = None

        face = config.face
        self.settings = FaceSettings(
            is_minimal_mode=face.minimal_mode,
            show_details=face.show_details,
            show_hour_numbers=face.show_hour_numbers,
            rotation=face.rotation,
            auto_brightness=config.dimming.auto_brightness,
        )
        self.dark_mode = DarkModeScheduler(config.location, face.dark_mode)

        # Collaborator feeds
        self.countdown = CountdownTimer(self._clock)
        self.step_counter = StepCounter(self._clock)
        self.alarm = StaticAlarmProvider()
        calendar = None
        if config.calendar.path:
            calendar = JsonCalendarProvider(
                Path(config.calendar.path),
                EventFilter(
                    exclude_all_day=config.calendar.exclude_all_day,
                    require_busy=config.calendar.require_busy,
                ),
                tz=self.tz,
                clock=self._clock,
            )
        self.providers = DataProviders(
            calendar=calendar,
            status=LinuxStatusProvider(),
            steps=self.step_counter,
            alarm=self.alarm,
            countdown=self.countdown,
        )

        # Ambient light
        sensor = None
        if config.sensor.enabled:
            sensor = IioLightSensor(
                Path(config.sensor.device) if config.sensor.device else None,
                poll_interval=config.sensor.poll_interval_seconds,
            )
        backlight = (
            Path(config.dimming.backlight)
            if config.dimming.backlight
            else find_backlight()
        )
        self.dimming = DimmingController(
            config.dimming,
            sensor=sensor,
            wake_resource=BacklightBoostLock(backlight) if backlight else None,
            on_redraw=self._on_light_change,
        )

        # Drawing
        width, height = config.display.width, config.display.height
        fonts = get_font_manager()
        self.geometry = DialGeometry(width, height, fonts)
        self.renderer = WatchFaceRenderer(self.geometry, face, config.dimming)
        self.canvas = Canvas(width, height, fonts=fonts)
        self.display = display or Display(config.display)

        self.http_server = create_server(config.http_server, self)
        self.http_thread = None

        self.touch_handler = TouchHandler(
            config=config.touch,
            on_tap=self.handle_tap,
            display_width=width,
            display_height=height,
        )

    # -- frame loop -----------------------------------------------------

    def get_last_frame(self) -> Optional[Image.Image]:
        """Get the last rendered frame (for HTTP screenshots)."""
        return self._last_frame

    def render_screenshot(self) -> Optional[Image.Image]:
        """Last frame; rendering stays on the loop thread."""
        return self.get_last_frame()

    def request_redraw(self) -> None:
        self._queue.put(None)

    def _on_light_change(self) -> None:
        """Schedule one frame after the debounce delay."""
        with self._settings_lock:
            if self._redraw_timer is not None and self._redraw_timer.is_alive():
                return
            self._redraw_timer = threading.Timer(
                self.config.dimming.min_frame_interval_seconds, self.request_redraw
            )
            self._redraw_timer.daemon = True
            self._redraw_timer.start()

    def render_frame(self) -> Image.Image:
        """Render one frame of the face."""
        now = self._clock()
        with self._settings_lock:
            self.settings.is_dark_mode = self.dark_mode.is_dark(now)
            settings = FaceSettings(**vars(self.settings))
        ctx = build_frame_context(
            now,
            settings,
            self.dimming.state,
            self.providers,
            self.config.calendar.window_hours,
        )
        frame = self.renderer.draw(ctx, self.dimming)
        image = self.canvas.paint(frame.ops)
        self._last_frame = image
        return image

    def _seconds_to_next_tick(self) -> float:
        interval = self.config.display.update_interval_seconds
        return interval - (time.time() % interval)

    def _drain(self) -> bool:
        """Coalesce pending redraw requests. Returns False on stop."""
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return True
            if item is _STOP:
                return False

    def run_once(self) -> bool:
        """Render and write a single frame."""
        if not self.display.is_open and not self.display.open():
            logger.error("Failed to open display")
            return False
        try:
            return self.display.write_frame(self.render_frame())
        finally:
            self.display.close()

    def run(self) -> None:
        """Run the main application loop."""
        logger.info("Starting H24 watch face...")

        if not self.display.open():
            logger.error("Failed to open display")
            return

        if self.http_server:
            self.http_thread = start_server_thread(self.http_server)
            logger.info(f"HTTP server running on port {self.config.http_server.port}")

        self.touch_handler.start()
        if not self.dimming.register():
            logger.info("No ambient light sensor, face stays fully lit")

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        self.running = True
        logger.info("H24 watch face running. Press Ctrl+C to stop.")

        try:
            while self.running:
                self.display.write_frame(self.render_frame())
                try:
                    item = self._queue.get(timeout=self._seconds_to_next_tick())
                except queue.Empty:
                    continue
                if item is _STOP or not self._drain():
                    break
        except Exception as e:
            logger.error(f"Error in main loop: {e}", exc_info=True)
        finally:
            self._cleanup()

    def stop(self) -> None:
        self.running = False
        self._queue.put(_STOP)

    def _signal_handler(self, signum, frame) -> None:
        logger.info(f"Received signal {signum}, shutting down...")
        self.stop()

    def _cleanup(self) -> None:
        """Clean up resources on shutdown."""
        logger.info("Cleaning up...")

        with self._settings_lock:
            if self._redraw_timer is not None:
                self._redraw_timer.cancel()
                self._redraw_timer = None

        self.touch_handler.stop()

        if self.http_server:
            self.http_server.shutdown()

        # Unregisters the sensor and releases any boost
        self.dimming.close()

        self.display.close()

        logger.info("Cleanup complete")

    # -- commands (touch and HTTP threads) ------------------------------

    def toggle_dark_mode(self) -> str:
        with self._settings_lock:
            mode = self.dark_mode.toggle(self._clock())
        self.request_redraw()
        return mode

    def rotate(self) -> int:
        with self._settings_lock:
            rotation = self.settings.rotate()
        self.request_redraw()
        return rotation

    def toggle_details(self) -> bool:
        with self._settings_lock:
            self.settings.show_details = not self.settings.show_details
            shown = self.settings.show_details
        self.request_redraw()
        return shown

    def set_ambient(self, ambient: bool) -> bool:
        with self._settings_lock:
            self.settings.is_ambient = ambient
        self.request_redraw()
        return ambient

    def toggle_ambient(self) -> bool:
        with self._settings_lock:
            ambient = not self.settings.is_ambient
        return self.set_ambient(ambient)

    def adjust_min_luminance(self, delta: float) -> float:
        value = self.dimming.set_min_luminance(self.dimming.min_luminance + delta)
        self.request_redraw()
        return value

    def start_countdown(self, text: str) -> str:
        """
        Start a countdown from "H:MM" or "H:MM:SS".

        Raises:
            CountdownParseError: If the text is not a valid duration
        """
        countdown = self.countdown.start_from_text(text)
        self.request_redraw()
        return countdown.label(self._clock()) or ""

    def cancel_countdown(self) -> None:
        self.countdown.cancel()
        self.request_redraw()

    def update_steps(self, total: int) -> None:
        self.step_counter.update(total)
        self.request_redraw()

    def handle_tap(self, action: TapAction) -> None:
        if action is TapAction.TOGGLE_DARK_MODE:
            self.toggle_dark_mode()
        elif action is TapAction.ROTATE:
            self.rotate()
        elif action is TapAction.DIMMER:
            self.adjust_min_luminance(-MIN_LUMINANCE_STEP)
        elif action is TapAction.BRIGHTER:
            self.adjust_min_luminance(MIN_LUMINANCE_STEP)
        elif action is TapAction.TOGGLE_DETAILS:
            self.toggle_details()

    def status(self) -> dict:
        """Snapshot of the face state for the HTTP status endpoint."""
        state = self.dimming.state
        with self._settings_lock:
            settings = FaceSettings(**vars(self.settings))
            dark_mode = self.dark_mode.mode
        countdown = self.countdown.get_countdown()
        now = self._clock()
        return {
            "time": now.isoformat(timespec="seconds"),
            "dark_mode": dark_mode,
            "is_dark": settings.is_dark_mode,
            "ambient": settings.is_ambient,
            "minimal": settings.is_minimal_mode,
            "details": settings.show_details,
            "rotation": settings.rotation,
            "brightness_factor": round(state.current_factor, 3),
            "min_luminance": round(state.min_luminance, 3),
            "illuminance": state.illuminance,
            "boosting": self.dimming.boosting,
            "sensor_registered": self.dimming.registered,
            "countdown": countdown.label(now) if countdown else None,
            "steps": self.step_counter.get_steps(),
            "steps_today": self.step_counter.get_steps_today(),
        }


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="H24 watch face - 24-hour single-hand dial with ambient dimming"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to config.json file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--bind-all",
        action="store_true",
        help="Bind HTTP server to all interfaces (0.0.0.0) instead of localhost",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Write frames to this PNG file instead of the framebuffer",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Render a single frame and exit",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        logger.error(f"Config file not found: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    if args.bind_all:
        config.http_server.bind_address = "0.0.0.0"
        logger.warning("HTTP server will bind to all interfaces (0.0.0.0)")

    display = PngDisplay(config.display, args.output) if args.output else None
    if args.once:
        # No server or touch input for a single frame
        config.http_server.enabled = False
        config.touch.enabled = False

    app = WatchFaceApp(config, display=display)
    if args.once:
        return 0 if app.run_once() else 1
    app.run()

    return 0


if __name__ == "__main__":
    sys.exit(main())
