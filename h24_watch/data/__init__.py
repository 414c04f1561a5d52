"""Collaborator feeds for the H24 watch face."""

from .protocol import (
    CalendarEvent,
    LightSample,
    SensorFeed,
    StatusSnapshot,
    StepCount,
    WakeResource,
)
from .alarm import StaticAlarmProvider
from .backlight import BacklightBoostLock
from .calendar import EventFilter, JsonCalendarProvider
from .countdown import Countdown, CountdownParseError, CountdownTimer
from .light import IioLightSensor, LightSampler
from .status import LinuxStatusProvider, StatusFlags
from .steps import StepCounter

__all__ = [
    "CalendarEvent",
    "LightSample",
    "SensorFeed",
    "StatusSnapshot",
    "StepCount",
    "WakeResource",
    "StaticAlarmProvider",
    "BacklightBoostLock",
    "EventFilter",
    "JsonCalendarProvider",
    "Countdown",
    "CountdownParseError",
    "CountdownTimer",
    "IioLightSensor",
    "LightSampler",
    "LinuxStatusProvider",
    "StatusFlags",
    "StepCounter",
]
