"""System status indicators."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .protocol import StatusSnapshot

logger = logging.getLogger(__name__)

NET_ROOT = Path("/sys/class/net")
POWER_ROOT = Path("/sys/class/power_supply")
RFKILL_ROOT = Path("/sys/class/rfkill")


@dataclass
class StatusFlags:
    """Independent boolean indicators shown as single glyphs."""

    wifi: bool = False
    unread: bool = False
    interruptions_filtered: bool = False
    airplane: bool = False
    network: bool = True
    gps: bool = False

    def glyphs(self) -> str:
        """
        Render flags as a glyph string.

        - W: WiFi enabled
        - i: Unread notifications
        - <: Interruption filter active
        - >: Airplane mode
        - X: No active network (when not in airplane mode)
        - ⌖: GPS enabled
        """
        glyphs = ""
        if self.wifi:
            glyphs += "W"
        if self.unread:
            glyphs += "i"
        if self.interruptions_filtered:
            glyphs += "<"
        if self.airplane:
            glyphs += ">"
        elif not self.network:
            glyphs += "X"
        if self.gps:
            glyphs += "⌖"
        return glyphs


def _read(path: Path) -> Optional[str]:
    try:
        return path.read_text().strip()
    except OSError:
        return None


class LinuxStatusProvider:
    """
    Gathers status from sysfs: WiFi, network, airplane mode and battery.

    Indicators without a Linux source (unread, interruption filter, GPS)
    can be set on ``extra``.
    """

    def __init__(
        self,
        net_root: Path = NET_ROOT,
        power_root: Path = POWER_ROOT,
        rfkill_root: Path = RFKILL_ROOT,
    ):
        self.net_root = net_root
        self.power_root = power_root
        self.rfkill_root = rfkill_root
        self.extra = StatusFlags()

    def _interfaces(self) -> list[Path]:
        if not self.net_root.exists():
            return []
        return [p for p in sorted(self.net_root.iterdir()) if p.name != "lo"]

    def _airplane(self) -> bool:
        if not self.rfkill_root.exists():
            return False
        states = [_read(p / "soft") for p in self.rfkill_root.iterdir()]
        states = [s for s in states if s is not None]
        return bool(states) and all(s == "1" for s in states)

    def _battery(self) -> tuple[Optional[int], bool]:
        if not self.power_root.exists():
            return None, False
        for supply in sorted(self.power_root.iterdir()):
            if _read(supply / "type") != "Battery":
                continue
            capacity = _read(supply / "capacity")
            status = _read(supply / "status") or ""
            percent = int(capacity) if capacity and capacity.isdigit() else None
            return percent, status in ("Charging", "Full")
        return None, False

    def flags(self) -> StatusFlags:
        interfaces = self._interfaces()
        up = [p for p in interfaces if _read(p / "operstate") == "up"]
        return StatusFlags(
            wifi=any((p / "wireless").exists() for p in up),
            unread=self.extra.unread,
            interruptions_filtered=self.extra.interruptions_filtered,
            airplane=self._airplane(),
            network=bool(up),
            gps=self.extra.gps,
        )

    def get_status(self) -> StatusSnapshot:
        battery, charging = self._battery()
        return StatusSnapshot(
            glyphs=self.flags().glyphs(),
            battery_percent=battery,
            charging=charging,
        )
