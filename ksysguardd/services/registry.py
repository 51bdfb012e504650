from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType

from ..sensors.base import Sensor

logger = logging.getLogger(__name__)


class SensorRegistry(Mapping[str, Sensor]):
    """
    Display name -> Sensor, frozen at construction.
    Lookups are safe from any thread; the mapping itself is never mutated.
    """

    def __init__(self, sensors: Mapping[str, Sensor] | None = None) -> None:
        self._sensors = MappingProxyType(dict(sensors or {}))

    def __getitem__(self, name: str) -> Sensor:
        return self._sensors[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sensors)

    def __len__(self) -> int:
        return len(self._sensors)

    def __repr__(self) -> str:
        return f"SensorRegistry({list(self._sensors)!r})"

    async def start_all(self) -> None:
        for sensor in self._sensors.values():
            await sensor.start()
        logger.info("Started %d sensor refresh loop(s)", len(self._sensors))

    async def stop_all(self) -> None:
        await asyncio.gather(*(sensor.stop() for sensor in self._sensors.values()))
        logger.info("Stopped sensor refresh loops")
