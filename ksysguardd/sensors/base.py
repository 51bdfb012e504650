from __future__ import annotations

from abc import ABC, abstractmethod

from ..domain.models import SensorInfo, SensorType


def format_value(value: float) -> str:
    """Shortest decimal rendering: 1.25 -> "1.25", 0.0 -> "0"."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


class Sensor(ABC):
    """Protocol-facing sensor abstraction."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    def sensor_type(self) -> SensorType:
        return SensorType.FLOAT

    @property
    def unit(self) -> str:
        return ""

    def info(self) -> SensorInfo:
        return SensorInfo(description=self.name, unit=self.unit)

    @abstractmethod
    def read_value(self) -> str:
        """Return the current value as text. Must not block."""
        ...

    async def start(self) -> None:
        """Begin background refresh. Sensors without one have nothing to start."""

    async def stop(self) -> None:
        """Signal background refresh to end and wait for it."""
