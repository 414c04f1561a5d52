"""Configuration loading and validation for the H24 watch face."""

import dataclasses
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

logger = logging.getLogger(__name__)

# Default paths to search for config
CONFIG_PATHS = [
    Path("config.json"),
    Path.home() / ".config" / "h24-watch" / "config.json",
    Path("/etc/h24-watch/config.json"),
]


@dataclass
class DisplayConfig:
    """Display settings."""

    width: int = 390
    height: int = 390
    framebuffer: str = "/dev/fb1"
    update_interval_seconds: int = 60

    def validate(self) -> list[str]:
        errors = []
        if self.width <= 0 or self.height <= 0:
            errors.append(f"Invalid display dimensions: {self.width}x{self.height}")
        if self.update_interval_seconds < 1:
            errors.append("Display update interval must be at least 1 second")
        return errors


@dataclass
class DimmingConfig:
    """Ambient light dimming settings."""

    min_luminance: float = 0.08
    lux_divider: float = 20.0
    redraw_threshold: float = 0.4
    very_dark: float = 0.3
    dark_redraw_threshold: float = 0.05
    boost_threshold: float = 0.05
    boost_min_lux: float = 100.0
    boost_timeout_seconds: float = 3.0
    min_frame_interval_seconds: float = 0.5
    sensor_stale_seconds: float = 65.0
    low_light_boost: float = 0.15
    auto_brightness: bool = True
    backlight: str = ""  # sysfs backlight dir, empty disables boost

    def validate(self) -> list[str]:
        errors = []
        if not 0 < self.min_luminance <= 1:
            errors.append(
                f"Invalid min_luminance {self.min_luminance}: must be in (0, 1]"
            )
        if self.lux_divider <= 0:
            errors.append("lux_divider must be positive")
        if not 2 <= self.boost_timeout_seconds <= 5:
            errors.append(
                f"Invalid boost_timeout_seconds {self.boost_timeout_seconds}: "
                "must be 2-5"
            )
        if self.min_frame_interval_seconds < 0:
            errors.append("min_frame_interval_seconds must not be negative")
        if self.sensor_stale_seconds <= 0:
            errors.append("sensor_stale_seconds must be positive")
        return errors


@dataclass
class FaceConfig:
    """Watch face behaviour and layout settings."""

    dark_mode: Literal["auto", "on", "off"] = "auto"
    minimal_mode: bool = False
    show_details: bool = True
    show_hour_numbers: bool = True
    rotation: int = 0
    pre_announce_minutes: int = 50
    alarm_window_hours: int = 18
    low_battery_threshold: int = 10
    title_max_length_line_1: int = 22
    title_max_length: int = 50

    def validate(self) -> list[str]:
        errors = []
        if self.dark_mode not in ("auto", "on", "off"):
            errors.append(
                f"Invalid dark_mode '{self.dark_mode}': must be 'auto', 'on', or 'off'"
            )
        if self.rotation not in (0, 180):
            errors.append(f"Invalid rotation {self.rotation}: must be 0 or 180")
        if self.pre_announce_minutes <= 0:
            errors.append("pre_announce_minutes must be positive")
        if self.alarm_window_hours <= 0:
            errors.append("alarm_window_hours must be positive")
        if self.title_max_length < self.title_max_length_line_1:
            errors.append("title_max_length must not be shorter than line 1")
        return errors


@dataclass
class LocationConfig:
    """Location settings for automatic dark mode."""

    name: str = "Unknown"
    region: str = "Unknown"
    timezone: str = "UTC"
    latitude: float = 0.0
    longitude: float = 0.0

    def validate(self) -> list[str]:
        """Return list of validation errors, empty if valid."""
        errors = []
        if not -90 <= self.latitude <= 90:
            errors.append(f"Invalid latitude {self.latitude}: must be -90 to 90")
        if not -180 <= self.longitude <= 180:
            errors.append(f"Invalid longitude {self.longitude}: must be -180 to 180")
        if not self.timezone:
            errors.append("Timezone must not be empty")
        return errors


@dataclass
class CalendarConfig:
    """Calendar feed settings."""

    path: str = ""  # JSON event file, empty disables the calendar
    window_hours: int = 18
    exclude_all_day: bool = True
    require_busy: bool = True

    def validate(self) -> list[str]:
        errors = []
        if self.window_hours <= 0:
            errors.append("Calendar window_hours must be positive")
        return errors


@dataclass
class SensorConfig:
    """Ambient light sensor settings."""

    enabled: bool = True
    device: str = ""  # IIO device dir, empty autodetects
    poll_interval_seconds: float = 2.0

    def validate(self) -> list[str]:
        errors = []
        if self.poll_interval_seconds <= 0:
            errors.append("Sensor poll interval must be positive")
        return errors


@dataclass
class HttpServerConfig:
    """HTTP preview server settings."""

    enabled: bool = True
    port: int = 8080
    bind_address: str = "127.0.0.1"  # Secure default: localhost only
    rate_limit_per_second: int = 10

    def validate(self) -> list[str]:
        errors = []
        if not 1 <= self.port <= 65535:
            errors.append(f"Invalid port {self.port}: must be 1-65535")
        return errors


@dataclass
class TouchConfig:
    """Touchscreen settings."""

    enabled: bool = True
    device: str = "/dev/input/event0"
    tap_threshold: int = 30
    tap_timeout: float = 0.4

    def validate(self) -> list[str]:
        errors = []
        if self.tap_threshold <= 0:
            errors.append("Tap threshold must be positive")
        if self.tap_timeout <= 0:
            errors.append("Tap timeout must be positive")
        return errors


@dataclass
class Config:
    """Main configuration container."""

    display: DisplayConfig = field(default_factory=DisplayConfig)
    dimming: DimmingConfig = field(default_factory=DimmingConfig)
    face: FaceConfig = field(default_factory=FaceConfig)
    location: LocationConfig = field(default_factory=LocationConfig)
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    sensor: SensorConfig = field(default_factory=SensorConfig)
    http_server: HttpServerConfig = field(default_factory=HttpServerConfig)
    touch: TouchConfig = field(default_factory=TouchConfig)

    def validate(self) -> list[str]:
        """Validate all configuration sections. Returns list of errors."""
        errors = []
        errors.extend(self.display.validate())
        errors.extend(self.dimming.validate())
        errors.extend(self.face.validate())
        errors.extend(self.location.validate())
        errors.extend(self.calendar.validate())
        errors.extend(self.sensor.validate())
        errors.extend(self.http_server.validate())
        errors.extend(self.touch.validate())
        return errors


def _dataclass_from_dict(cls, data: dict):
    """Create a dataclass instance from a dict, using field defaults for missing keys."""
    kwargs = {}
    for f in dataclasses.fields(cls):
        if f.name in data:
            kwargs[f.name] = data[f.name]
        elif f.default is not dataclasses.MISSING:
            kwargs[f.name] = f.default
        elif f.default_factory is not dataclasses.MISSING:
            kwargs[f.name] = f.default_factory()
    return cls(**kwargs)


# Mapping from config JSON keys to their dataclass types
_CONFIG_SECTIONS = {
    "display": ("display", DisplayConfig),
    "dimming": ("dimming", DimmingConfig),
    "face": ("face", FaceConfig),
    "location": ("location", LocationConfig),
    "calendar": ("calendar", CalendarConfig),
    "sensor": ("sensor", SensorConfig),
    "http_server": ("http_server", HttpServerConfig),
    "touch": ("touch", TouchConfig),
}


def _dict_to_config(data: dict) -> Config:
    """Convert a dictionary to a Config object."""
    config = Config()
    for key, (attr, cls) in _CONFIG_SECTIONS.items():
        if key in data:
            setattr(config, attr, _dataclass_from_dict(cls, data[key]))
    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from JSON file.

    Args:
        config_path: Explicit path to config file. If None, searches default paths.

    Returns:
        Config object with loaded settings.

    Raises:
        FileNotFoundError: If no config file found and config_path was explicit.
        ValueError: If config file has validation errors.
    """
    if config_path is not None:
        paths_to_try = [config_path]
    else:
        paths_to_try = CONFIG_PATHS

    found_path = None
    for path in paths_to_try:
        if path.exists():
            found_path = path
            break

    if found_path is None:
        if config_path is not None:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        logger.warning("No config file found, using defaults")
        return Config()

    logger.info(f"Loading config from {found_path}")
    try:
        with open(found_path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file {found_path}: {e}")

    config = _dict_to_config(data)

    errors = config.validate()
    if errors:
        error_msg = "Config validation errors:\n" + "\n".join(
            f"  - {e}" for e in errors
        )
        raise ValueError(error_msg)

    return config
