"""Tests for the ksysguardd command protocol."""
from __future__ import annotations

import io

import pytest

from conftest import make_zone, set_energy
from ksysguardd.api.protocol import CommandServer
from ksysguardd.core.config import Settings
from ksysguardd.drivers.powercap import PowercapSource
from ksysguardd.sensors.base import Sensor
from ksysguardd.sensors.powercap_energy_sensor import PowercapEnergySensor
from ksysguardd.services.registry import SensorRegistry


class StaticSensor(Sensor):
    def __init__(self, name: str, value: str) -> None:
        self._name = name
        self.value = value

    @property
    def name(self) -> str:
        return self._name

    def read_value(self) -> str:
        return self.value


@pytest.fixture
def server():
    registry = SensorRegistry(
        {"package-0": StaticSensor("package-0", "12.5"), "core": StaticSensor("core", "3")}
    )
    return CommandServer(registry, Settings())


class TestHandle:
    def test_monitors_lists_name_and_type(self, server):
        assert server.handle("monitors") == ["package-0\tfloat", "core\tfloat"]

    def test_value_lookup(self, server):
        assert server.handle("package-0") == ["12.5"]
        assert server.handle("core") == ["3"]

    def test_metadata_query(self, server):
        assert server.handle("core?") == ["core\t0\t0\t"]

    def test_metadata_query_unknown_sensor(self, server):
        assert server.handle("nope?") == []

    def test_unknown_command_twice_is_silent(self, server):
        before = [server.handle(name) for name in ("package-0", "core")]

        assert server.handle("bogus") == []
        assert server.handle("bogus") == []

        assert [server.handle(name) for name in ("package-0", "core")] == before
        assert len(server.handle("monitors")) == 2

    def test_lookup_is_case_sensitive(self, server):
        assert server.handle("Package-0") == []

    def test_power_sensor_metadata(self, powercap_root, clock):
        zone = make_zone(powercap_root, "intel-rapl:0", name="package-0", energy_uj=1_000_000)
        sensor = PowercapEnergySensor(PowercapSource(zone), "package-0", clock=clock)
        server = CommandServer(SensorRegistry({"package-0": sensor}), Settings())

        assert server.handle("package-0?") == ["package-0\t0\t0\tW"]
        assert server.handle("package-0") == ["0"]

        set_energy(zone, 3_500_000)
        clock.advance(2)
        sensor.refresh_once()
        assert server.handle("package-0") == ["1.25"]


class TestEmptyEnvironment:
    def test_nothing_answers(self):
        server = CommandServer(SensorRegistry(), Settings())

        assert server.handle("monitors") == []
        assert server.handle("package-0") == []
        assert server.handle("package-0?") == []


def test_banner_and_prompt():
    server = CommandServer(SensorRegistry(), Settings(daemon_name="ksysguardd", version="1.2.0"))

    assert server.banner == "ksysguardd 1.2.0"
    assert server.prompt == "ksysguardd> "


@pytest.mark.asyncio
class TestRun:
    async def test_session_until_end_of_input(self, server):
        stdin = io.StringIO("monitors\npackage-0 bogus\n\ncore\n")
        stdout = io.StringIO()

        await server.run(stdin, stdout)

        assert stdout.getvalue() == (
            "ksysguardd 1.2.0\n"
            "ksysguardd> package-0\tfloat\ncore\tfloat\n"
            "ksysguardd> 12.5\n"
            "ksysguardd> "
            "ksysguardd> 3\n"
            "ksysguardd> "
        )

    async def test_empty_input(self):
        server = CommandServer(SensorRegistry(), Settings())
        stdout = io.StringIO()

        await server.run(io.StringIO(""), stdout)

        assert stdout.getvalue() == "ksysguardd 1.2.0\nksysguardd> "
