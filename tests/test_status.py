"""Tests for status indicators and the sysfs status provider."""

import pytest

from h24_watch.data.status import LinuxStatusProvider, StatusFlags


class TestStatusFlags:
    """Tests for StatusFlags.glyphs."""

    def test_nothing_set(self):
        assert StatusFlags().glyphs() == ""

    def test_all_indicators(self):
        flags = StatusFlags(
            wifi=True, unread=True, interruptions_filtered=True, gps=True
        )
        assert flags.glyphs() == "Wi<⌖"

    def test_no_network(self):
        assert StatusFlags(network=False).glyphs() == "X"

    def test_airplane_hides_no_network(self):
        assert StatusFlags(airplane=True, network=False).glyphs() == ">"


class TestLinuxStatusProvider:
    """Tests for the LinuxStatusProvider class."""

    @pytest.fixture
    def sysfs(self, tmp_path):
        net = tmp_path / "net"
        power = tmp_path / "power_supply"
        rfkill = tmp_path / "rfkill"
        for d in (net, power, rfkill):
            d.mkdir()
        (net / "lo").mkdir()
        (net / "lo" / "operstate").write_text("unknown\n")
        return net, power, rfkill

    def _add_interface(self, net, name, state, wireless=False):
        iface = net / name
        iface.mkdir()
        (iface / "operstate").write_text(f"{state}\n")
        if wireless:
            (iface / "wireless").mkdir()

    def _add_battery(self, power, capacity, status):
        battery = power / "BAT0"
        battery.mkdir()
        (battery / "type").write_text("Battery\n")
        (battery / "capacity").write_text(f"{capacity}\n")
        (battery / "status").write_text(f"{status}\n")

    def test_wifi_up(self, sysfs):
        net, power, rfkill = sysfs
        self._add_interface(net, "wlan0", "up", wireless=True)
        provider = LinuxStatusProvider(net, power, rfkill)
        assert provider.get_status().glyphs == "W"

    def test_no_network(self, sysfs):
        net, power, rfkill = sysfs
        self._add_interface(net, "eth0", "down")
        provider = LinuxStatusProvider(net, power, rfkill)
        assert provider.get_status().glyphs == "X"

    def test_airplane_mode(self, sysfs):
        net, power, rfkill = sysfs
        (rfkill / "rfkill0").mkdir()
        (rfkill / "rfkill0" / "soft").write_text("1\n")
        provider = LinuxStatusProvider(net, power, rfkill)
        assert provider.get_status().glyphs == ">"

    def test_battery(self, sysfs):
        net, power, rfkill = sysfs
        self._add_interface(net, "eth0", "up")
        self._add_battery(power, 7, "Discharging")
        status = LinuxStatusProvider(net, power, rfkill).get_status()
        assert status.battery_percent == 7
        assert status.charging is False

    def test_charging(self, sysfs):
        net, power, rfkill = sysfs
        self._add_battery(power, 55, "Charging")
        status = LinuxStatusProvider(net, power, rfkill).get_status()
        assert status.charging is True

    def test_extra_flags(self, sysfs):
        net, power, rfkill = sysfs
        self._add_interface(net, "eth0", "up")
        provider = LinuxStatusProvider(net, power, rfkill)
        provider.extra.unread = True
        assert provider.get_status().glyphs == "i"

    def test_missing_sysfs(self, tmp_path):
        provider = LinuxStatusProvider(
            tmp_path / "a", tmp_path / "b", tmp_path / "c"
        )
        status = provider.get_status()
        assert status.battery_percent is None
        assert status.glyphs == "X"
