from __future__ import annotations

import argparse
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from .api.protocol import CommandServer
from .core.config import Settings, settings
from .core.log import configure_logging
from .services.discovery import discover
from .services.registry import SensorRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(cfg: Settings) -> AsyncIterator[SensorRegistry]:
    logger.info("Starting %s %s (powercap_dir=%s)", cfg.daemon_name, cfg.version, cfg.powercap_dir)

    registry = SensorRegistry(discover(cfg.powercap_dir, refresh_seconds=cfg.refresh_seconds))
    await registry.start_all()

    try:
        yield registry
    finally:
        await registry.stop_all()
        logger.info("Shutdown complete")


async def serve(cfg: Settings) -> None:
    async with lifespan(cfg) as registry:
        await CommandServer(registry, cfg).run()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="ksysguardd serving powercap power draw over stdin/stdout")

    p.add_argument("--powercap-dir", default=None,
                   help=f"Powercap class directory (default: {settings.powercap_dir})")
    p.add_argument("--refresh-seconds", type=float, default=None,
                   help=f"Seconds between counter samples (default: {settings.refresh_seconds})")
    p.add_argument("--log-file", default=None, help="Also log to this rotating file")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    return p.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    overrides: dict = {}
    if args.powercap_dir is not None:
        overrides["powercap_dir"] = args.powercap_dir
    if args.refresh_seconds is not None:
        overrides["refresh_seconds"] = args.refresh_seconds
    if args.log_file is not None:
        overrides["log_file"] = args.log_file
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    # init kwargs take priority over env / .env values
    return Settings(**overrides)


def main(argv: list[str] | None = None) -> None:
    cfg = build_settings(parse_args(argv))
    configure_logging(cfg)

    try:
        asyncio.run(serve(cfg))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
