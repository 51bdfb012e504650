from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

ENERGY_UJ_FILENAME = "energy_uj"
NAME_FILENAME = "name"
MAX_ENERGY_RANGE_UJ_FILENAME = "max_energy_range_uj"


class PowercapSource:
    """
    One powercap zone directory, e.g. /sys/class/powercap/intel-rapl:0.
    Responsible for: raw file reads. Raises OSError / ValueError on failure.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"PowercapSource({str(self.path)!r})"

    @property
    def energy_path(self) -> Path:
        return self.path / ENERGY_UJ_FILENAME

    @property
    def name_path(self) -> Path:
        return self.path / NAME_FILENAME

    def is_energy_source(self) -> bool:
        """
        True when the zone exposes both a counter and a label.
        Control-only zones (e.g. the intel-rapl parent entry) do not.
        """
        return self.energy_path.exists() and self.name_path.exists()

    def read_name(self) -> str:
        return self.name_path.read_text().strip()

    def read_energy_uj(self) -> int:
        raw = self.energy_path.read_text().strip()
        value = int(raw)
        if value < 0:
            raise ValueError(f"Negative energy counter in {self.energy_path}: {raw}")
        return value

    def read_max_energy_range_uj(self) -> int | None:
        """
        Counter wrap point, if the zone reports one.
        Unreadable or malformed values are treated as unknown.
        """
        path = self.path / MAX_ENERGY_RANGE_UJ_FILENAME
        try:
            value = int(path.read_text().strip())
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.debug("Ignoring unreadable %s: %s", path, e)
            return None
        return value if value > 0 else None
