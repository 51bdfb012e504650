from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from threading import Lock
from typing import Callable, Optional

from .base import Sensor, format_value
from ..core.config import settings
from ..core.timeutil import now_utc
from ..domain.models import EnergyReading
from ..drivers.powercap import PowercapSource

logger = logging.getLogger(__name__)

UJ_PER_J = 1_000_000


def energy_delta_uj(last_uj: int, new_uj: int, max_energy_range_uj: int | None = None) -> int | None:
    """
    Energy consumed between two counter values, or None when the counter
    went backwards and cannot be unwrapped (the caller re-baselines).
    """
    delta_uj = new_uj - last_uj
    if delta_uj >= 0:
        return delta_uj
    if max_energy_range_uj is None:
        return None
    delta_uj = (max_energy_range_uj - last_uj) + new_uj
    return delta_uj if delta_uj >= 0 else None


def calculate_power(
    last: EnergyReading,
    new: EnergyReading,
    max_energy_range_uj: int | None = None,
) -> float:
    """
    Average power in watts between two consecutive counter samples.

    Degenerate intervals (elapsed <= 0) yield 0.0. A counter that went
    backwards is unwrapped once when the zone's wrap point is known;
    otherwise the tick yields 0.0 and the new sample becomes the baseline.
    """
    elapsed = (new.ts_utc - last.ts_utc).total_seconds()
    if elapsed <= 0:
        return 0.0

    delta_uj = energy_delta_uj(last.energy_uj, new.energy_uj, max_energy_range_uj)
    if delta_uj is None:
        return 0.0

    return (delta_uj / UJ_PER_J) / elapsed


class PowercapEnergySensor(Sensor):
    """
    Instantaneous power draw of one powercap zone.

    The constructor takes a baseline counter sample and raises OSError /
    ValueError if the zone cannot be read. start() launches the refresh task;
    after that the task is the only writer of the published
    (last_reading, last_power) pair, and read_value() only observes it.
    Both fields are swapped together under a lock.
    """

    def __init__(
        self,
        source: PowercapSource,
        name: str,
        refresh_seconds: float | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._source = source
        self._name = name
        self._refresh_seconds = refresh_seconds if refresh_seconds is not None else settings.refresh_seconds
        self._clock = clock

        self._lock = Lock()
        self._max_energy_range_uj = source.read_max_energy_range_uj()
        self._last_reading = self._read_energy()
        self._last_power = 0.0

        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()

    @property
    def name(self) -> str:
        return self._name

    @property
    def unit(self) -> str:
        return "W"

    @property
    def source(self) -> PowercapSource:
        return self._source

    @property
    def last_reading(self) -> EnergyReading:
        with self._lock:
            return self._last_reading

    @property
    def last_power(self) -> float:
        with self._lock:
            return self._last_power

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def read_value(self) -> str:
        return format_value(self.last_power)

    def _read_energy(self) -> EnergyReading:
        energy_uj = self._source.read_energy_uj()
        return EnergyReading(energy_uj=energy_uj, ts_utc=self._clock())

    def refresh_once(self) -> float:
        """Take one sample and publish the power computed against the previous one."""
        new = self._read_energy()
        with self._lock:
            last = self._last_reading
            power = calculate_power(last, new, self._max_energy_range_uj)
            if new.energy_uj < last.energy_uj:
                unwrapped = energy_delta_uj(last.energy_uj, new.energy_uj, self._max_energy_range_uj)
                logger.info(
                    "Energy counter went backwards for %s (%d -> %d); %s",
                    self._name,
                    last.energy_uj,
                    new.energy_uj,
                    "re-baselined" if unwrapped is None else "unwrapped",
                )
            self._last_reading = new
            self._last_power = power
        return power

    async def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._run(), name=f"refresh:{self._name}")

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            await self._task
            self._task = None

    async def _run(self) -> None:
        logger.info(
            "Refresh loop started for %s (source=%s refresh_seconds=%s)",
            self._name,
            self._source.path,
            self._refresh_seconds,
        )

        while not self._stop.is_set():
            # sleep with cancellation awareness
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._refresh_seconds)
                break
            except asyncio.TimeoutError:
                pass

            try:
                loop = asyncio.get_running_loop()
                power = await loop.run_in_executor(None, self.refresh_once)
                logger.debug("Power %s: %.3f W", self._name, power)
            except (OSError, ValueError) as e:
                # Zone removed or counter unreadable; retry next tick
                logger.warning("Energy read FAILED for %s: %s", self._name, e)
            except Exception as e:
                logger.exception("Refresh loop error for %s: %s", self._name, e)

        logger.info("Refresh loop stopped for %s", self._name)
