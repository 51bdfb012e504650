import logging
import sys
from logging.handlers import RotatingFileHandler

from .config import Settings, settings as default_settings


def configure_logging(settings: Settings = default_settings) -> None:
    logger = logging.getLogger()
    logger.setLevel(settings.log_level.upper())

    fmt = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s - %(message)s"
    )

    # Console (stderr, never stdout)
    ch = logging.StreamHandler(sys.stderr)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Optional rotating file
    if settings.log_file:
        fh = RotatingFileHandler(
            settings.log_file,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
        )
        fh.setFormatter(fmt)
        logger.addHandler(fh)
