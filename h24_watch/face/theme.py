"""Dark mode selection: manual or following sunrise and sunset."""

import datetime
import logging
import time
from typing import TYPE_CHECKING, Literal, Optional
from zoneinfo import ZoneInfo

from astral import LocationInfo
from astral.sun import sun

if TYPE_CHECKING:
    from ..config import LocationConfig

logger = logging.getLogger(__name__)

DarkModeSetting = Literal["auto", "on", "off"]

# Fallback daytime window when sun times are unavailable
DAY_START_HOUR = 6
DAY_END_HOUR = 19


class DarkModeScheduler:
    """
    Decides whether the face is in dark mode.

    In "auto" mode dark mode follows sunset and sunrise at the configured
    location, cached for a minute to avoid repeated calculations.
    """

    def __init__(
        self,
        location: Optional["LocationConfig"] = None,
        mode: DarkModeSetting = "auto",
    ):
        """
        Initialize dark mode scheduler.

        Args:
            location: Location for sun times (None uses fixed hours)
            mode: "auto", "on" or "off"
        """
        self._location = None
        self._tz: Optional[ZoneInfo] = None
        if location is not None:
            self._location = LocationInfo(
                name=location.name,
                region=location.region,
                timezone=location.timezone,
                latitude=location.latitude,
                longitude=location.longitude,
            )
            self._tz = ZoneInfo(location.timezone)
        self._mode: DarkModeSetting = "auto"
        self.set_mode(mode)
        self._cached: Optional[bool] = None
        self._cache_time: float = 0
        self._cache_duration: float = 60.0

    @property
    def mode(self) -> DarkModeSetting:
        return self._mode

    def set_mode(self, mode: DarkModeSetting) -> None:
        if mode not in ("auto", "on", "off"):
            raise ValueError(f"Invalid dark mode: {mode}")
        self._mode = mode
        self._cached = None
        logger.info(f"Dark mode set to: {mode}")

    def toggle(self, now: Optional[datetime.datetime] = None) -> DarkModeSetting:
        """Flip the current appearance and pin it manually."""
        self.set_mode("off" if self.is_dark(now) else "on")
        return self._mode

    def _fallback_is_daytime(self, now: datetime.datetime) -> bool:
        return DAY_START_HOUR <= now.hour < DAY_END_HOUR

    def is_daytime(self, now: Optional[datetime.datetime] = None) -> bool:
        """
        Determine if it is daytime based on sunrise/sunset.

        Returns:
            True if between sunrise and sunset, False otherwise
        """
        if now is None:
            now = datetime.datetime.now(self._tz)
        if self._location is None:
            return self._fallback_is_daytime(now)

        try:
            local = now.astimezone(self._tz) if now.tzinfo else now.replace(tzinfo=self._tz)
            times = sun(
                self._location.observer, date=local.date(), tzinfo=self._tz
            )
            return times["sunrise"] <= local <= times["sunset"]
        except ValueError as e:
            # Polar day/night has no sunrise or sunset
            logger.debug(f"No sun times for {now.date()}: {e}")
            return self._fallback_is_daytime(now)

    def is_dark(self, now: Optional[datetime.datetime] = None) -> bool:
        if self._mode == "on":
            return True
        if self._mode == "off":
            return False

        if now is None:
            mono = time.monotonic()
            if self._cached is not None and mono - self._cache_time < self._cache_duration:
                return self._cached
            self._cached = not self.is_daytime()
            self._cache_time = mono
            return self._cached
        return not self.is_daytime(now)
