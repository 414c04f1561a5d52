"""Ambient light dimming control loop."""

import dataclasses
import enum
import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from .data.light import LightSampler
from .data.protocol import LightSample

if TYPE_CHECKING:
    from .config import DimmingConfig
    from .data.protocol import SensorFeed, WakeResource

logger = logging.getLogger(__name__)

DEFAULT_MIN_LUMINANCE = 0.08
MIN_LUMINANCE_FLOOR = 0.01
VERY_DARK = 0.3


class BoostState(enum.Enum):
    """Whether a full-brightness lease is currently held."""

    IDLE = "idle"
    ACTIVE = "active"


@dataclass(frozen=True)
class DimmingState:
    """Snapshot of the dimming loop. Replaced, never mutated."""

    current_factor: float = 1.0
    previous_factor: float = 1.0
    min_luminance: float = DEFAULT_MIN_LUMINANCE
    illuminance: Optional[float] = None
    last_sample_time: Optional[float] = None
    last_commit_time: Optional[float] = None
    boost: BoostState = BoostState.IDLE
    boost_expiry: Optional[float] = None
    redraw_signalled: bool = False
    boost_spent: bool = False

    @property
    def change(self) -> float:
        return abs(self.current_factor - self.previous_factor)


def dim_factor(
    lux: float,
    min_luminance: float,
    lux_divider: float = 20.0,
    max_factor: float = 1.0,
) -> float:
    """Map illuminance to a brightness factor in [min_luminance, max_factor]."""
    return min(max_factor, max(0.0, lux) / lux_divider + min_luminance)


def ingest_sample(
    state: DimmingState, sample: LightSample, config: "DimmingConfig"
) -> DimmingState:
    """Return the state after taking ``sample`` into account."""
    lux = max(0.0, sample.illuminance)
    return dataclasses.replace(
        state,
        current_factor=dim_factor(lux, state.min_luminance, config.lux_divider),
        illuminance=lux,
        last_sample_time=sample.timestamp,
    )


def needs_redraw(state: DimmingState, now: float, config: "DimmingConfig") -> bool:
    """
    Decide whether the light change warrants an out-of-band frame.

    Requires the minimum frame interval to have passed since the last
    commit, and a large change, or a small one when it is very dark.
    """
    if state.last_commit_time is not None:
        if now - state.last_commit_time <= config.min_frame_interval_seconds:
            return False
    if state.change >= config.redraw_threshold:
        return True
    return (
        state.current_factor < config.very_dark
        and state.change >= config.dark_redraw_threshold
    )


def needs_boost(state: DimmingState, config: "DimmingConfig") -> bool:
    """True when light jumped while bright enough to outrun auto-brightness."""
    if state.illuminance is None:
        return False
    return (
        state.change >= config.boost_threshold
        and state.illuminance > config.boost_min_lux
    )


class DimmingController:
    """
    Stateful dimming loop fed by an ambient light sensor.

    ``ingest`` may be called from the sensor thread while ``commit``,
    ``needs_redraw`` and the factor accessors run on the frame path; all
    state lives in one DimmingState swapped under a lock.
    """

    def __init__(
        self,
        config: "DimmingConfig",
        sensor: Optional["SensorFeed"] = None,
        wake_resource: Optional["WakeResource"] = None,
        on_redraw: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize dimming controller.

        Args:
            config: Dimming configuration
            sensor: Light sensor feed (None keeps the face fully lit)
            wake_resource: Brightness boost resource (None disables boosting)
            on_redraw: Called once per detected light jump
            clock: Monotonic clock in seconds
        """
        self.config = config
        self.sensor = sensor
        self.wake_resource = wake_resource
        self.on_redraw = on_redraw
        self._clock = clock
        self.sampler = LightSampler(clock)

        self._lock = threading.Lock()
        self._state = DimmingState(min_luminance=self._clamp(config.min_luminance))
        self._registered = False
        self._registered_at: Optional[float] = None

    @staticmethod
    def _clamp(value: float) -> float:
        return min(1.0, max(MIN_LUMINANCE_FLOOR, value))

    # -- state access ---------------------------------------------------

    @property
    def state(self) -> DimmingState:
        """Current state, after lazy sensor and lease housekeeping."""
        self.check_sensor()
        self.expire_boost()
        with self._lock:
            return self._state

    @property
    def current_factor(self) -> float:
        return self.state.current_factor

    @property
    def previous_factor(self) -> float:
        return self.state.previous_factor

    @property
    def min_luminance(self) -> float:
        with self._lock:
            return self._state.min_luminance

    @property
    def boosting(self) -> bool:
        return self.state.boost is BoostState.ACTIVE

    def set_min_luminance(self, value: float) -> float:
        """Set the brightness floor, never below MIN_LUMINANCE_FLOOR."""
        value = self._clamp(value)
        with self._lock:
            state = dataclasses.replace(self._state, min_luminance=value)
            if state.illuminance is not None:
                state = dataclasses.replace(
                    state,
                    current_factor=dim_factor(
                        state.illuminance, value, self.config.lux_divider
                    ),
                )
            self._state = state
        logger.info(f"Minimum luminance set to {value:.2f}")
        return value

    # -- control loop ---------------------------------------------------

    def ingest(self, sample: LightSample) -> None:
        """Take a new light sample. Never raises."""
        sample = self.sampler.put(sample)
        now = self._clock()
        with self._lock:
            state = ingest_sample(self._state, sample, self.config)
            signal = needs_redraw(state, now, self.config) and not state.redraw_signalled
            if signal:
                state = dataclasses.replace(state, redraw_signalled=True)
            self._state = state

        self._update_boost()

        if signal and self.on_redraw is not None:
            logger.debug(
                f"Light jump to factor {state.current_factor:.2f}, requesting redraw"
            )
            try:
                self.on_redraw()
            except Exception as e:
                logger.error(f"Redraw request failed: {e}", exc_info=True)

    def needs_redraw(self) -> bool:
        state = self.state
        return needs_redraw(state, self._clock(), self.config)

    def needs_boost(self) -> bool:
        return needs_boost(self.state, self.config)

    def commit(self, factor: float) -> None:
        """Record the factor a frame was drawn with as the new baseline."""
        with self._lock:
            self._state = dataclasses.replace(
                self._state,
                previous_factor=factor,
                last_commit_time=self._clock(),
                redraw_signalled=False,
                boost_spent=False,
            )
        self._update_boost()

    # -- boost lease ----------------------------------------------------

    def _update_boost(self) -> None:
        now = self._clock()
        timeout = self.config.boost_timeout_seconds
        start = end = spent = False
        with self._lock:
            state = self._state
            wanted = needs_boost(state, self.config)
            if state.boost is BoostState.ACTIVE:
                expired = state.boost_expiry is not None and now >= state.boost_expiry
                end = not wanted or expired
                spent = wanted and expired
            elif not wanted:
                if state.boost_spent:
                    self._state = dataclasses.replace(state, boost_spent=False)
            elif not state.boost_spent and self.wake_resource is not None:
                # Claim the lease before acquiring so only one caller does.
                self._state = dataclasses.replace(
                    state, boost=BoostState.ACTIVE, boost_expiry=now + timeout
                )
                start = True
        if end:
            self._end_boost(spent=spent)
        elif start:
            self._start_boost(timeout)

    def _start_boost(self, timeout: float) -> None:
        try:
            self.wake_resource.acquire(timeout)
        except OSError as e:
            logger.warning(f"Brightness boost unavailable: {e}")
            with self._lock:
                self._state = dataclasses.replace(
                    self._state, boost=BoostState.IDLE, boost_expiry=None
                )
            return
        logger.info(f"Brightness boost acquired for {timeout:.1f}s")

    def _end_boost(self, spent: bool = False) -> None:
        with self._lock:
            if self._state.boost is BoostState.IDLE:
                return
            self._state = dataclasses.replace(
                self._state, boost=BoostState.IDLE, boost_expiry=None, boost_spent=spent
            )
        if self.wake_resource is not None:
            try:
                self.wake_resource.release()
            except OSError as e:
                logger.warning(f"Failed to release brightness boost: {e}")
        logger.info("Brightness boost released")

    def expire_boost(self) -> None:
        """End the boost if its lease ran out."""
        with self._lock:
            state = self._state
        if state.boost is BoostState.ACTIVE and state.boost_expiry is not None:
            if self._clock() >= state.boost_expiry:
                # Stays spent until the light settles or a frame commits.
                self._end_boost(spent=True)

    # -- sensor registration --------------------------------------------

    @property
    def registered(self) -> bool:
        return self._registered

    def register(self) -> bool:
        """Subscribe to the sensor feed. Idempotent."""
        if self._registered or self.sensor is None:
            return self._registered
        try:
            ok = self.sensor.register(self.ingest)
        except Exception as e:
            logger.warning(f"Light sensor registration failed: {e}")
            ok = False
        self._registered = bool(ok)
        self._registered_at = self._clock()
        return self._registered

    def _unregister_sensor(self) -> None:
        if self._registered and self.sensor is not None:
            try:
                self.sensor.unregister(self.ingest)
            except Exception as e:
                logger.warning(f"Light sensor unregistration failed: {e}")
        self._registered = False
        self._registered_at = None

    def unregister(self) -> None:
        """Unsubscribe and drop any boost. Idempotent."""
        self._unregister_sensor()
        self._end_boost()

    def check_sensor(self) -> None:
        """Re-register if the sensor went silent for too long."""
        if not self._registered or self.sensor is None:
            return
        silent = self._clock() - self._registered_at
        since_sample = self.sampler.seconds_since_sample()
        if since_sample is not None:
            silent = min(silent, since_sample)
        if silent > self.config.sensor_stale_seconds:
            logger.warning(
                f"No light sample for {silent:.0f}s, re-registering sensor"
            )
            self._unregister_sensor()
            self.register()

    def close(self) -> None:
        self.unregister()
