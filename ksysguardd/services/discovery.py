from __future__ import annotations

import logging
from pathlib import Path

from ..core.config import settings
from ..drivers.powercap import PowercapSource
from ..sensors.base import Sensor
from ..sensors.powercap_energy_sensor import PowercapEnergySensor

logger = logging.getLogger(__name__)


def discover(
    root: Path | str | None = None,
    refresh_seconds: float | None = None,
) -> dict[str, Sensor]:
    """Scan the powercap class directory for energy zones.

    Returns a dict keyed by each zone's display name. Zones without both an
    energy_uj and a name file are skipped. A missing or unreadable root
    yields {} and a warning; a zone whose files fail to read is left out and
    the scan continues. Duplicate names: last zone scanned wins.
    """
    root = Path(root if root is not None else settings.powercap_dir)
    sensors: dict[str, Sensor] = {}

    try:
        entries = sorted(root.iterdir())
    except OSError as e:
        logger.warning("Powercap directory %s unavailable, no sensors: %s", root, e)
        return sensors

    for entry in entries:
        if not entry.is_dir():
            continue

        source = PowercapSource(entry)
        if not source.is_energy_source():
            logger.debug("Skipping %s: not an energy source", entry)
            continue

        try:
            name = source.read_name()
            sensor = PowercapEnergySensor(source, name, refresh_seconds=refresh_seconds)
        except (OSError, ValueError) as e:
            logger.warning("Skipping %s: %s", entry, e)
            continue

        if name in sensors:
            logger.warning("Duplicate sensor name %r: %s replaces earlier source", name, entry)
        sensors[name] = sensor

    logger.info("Discovered %d powercap sensor(s) under %s", len(sensors), root)
    return sensors
