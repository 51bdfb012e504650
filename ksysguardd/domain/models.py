from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SensorType(str, Enum):
    FLOAT = "float"
    INTEGER = "integer"  # reserved, no sensor reports integers yet


@dataclass(frozen=True)
class EnergyReading:
    energy_uj: int
    ts_utc: datetime


@dataclass(frozen=True)
class SensorInfo:
    description: str
    min_value: float = 0
    max_value: float = 0
    unit: str = ""
