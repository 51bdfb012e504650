"""Shared fixtures: fake powercap trees and a controllable clock."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from threading import Lock

import pytest


def make_zone(
    root: Path,
    dirname: str,
    name: str | None = None,
    energy_uj: int | str | None = None,
    max_energy_range_uj: int | None = None,
) -> Path:
    """Create one powercap zone directory; omitted files are not written."""
    zone = root / dirname
    zone.mkdir(parents=True, exist_ok=True)
    if name is not None:
        (zone / "name").write_text(f"{name}\n")
    if energy_uj is not None:
        (zone / "energy_uj").write_text(f"{energy_uj}\n")
    if max_energy_range_uj is not None:
        (zone / "max_energy_range_uj").write_text(f"{max_energy_range_uj}\n")
    return zone


def set_energy(zone: Path, energy_uj: int) -> None:
    (zone / "energy_uj").write_text(f"{energy_uj}\n")


class FakeClock:
    """Fixed time that moves only via advance(), or by `step` seconds after every call."""

    def __init__(self, start: datetime | None = None, step: float = 0.0) -> None:
        self._now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        self._step = timedelta(seconds=step)
        self._lock = Lock()

    def __call__(self) -> datetime:
        with self._lock:
            now = self._now
            self._now += self._step
            return now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += timedelta(seconds=seconds)


async def wait_until(predicate, timeout: float = 3.0) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return predicate()


@pytest.fixture
def powercap_root(tmp_path) -> Path:
    root = tmp_path / "powercap"
    root.mkdir()
    return root


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
