from __future__ import annotations

import asyncio
import logging
import sys
import threading
from collections import deque
from typing import Optional, TextIO

from ..core.config import Settings, settings as default_settings
from ..sensors.base import format_value
from ..services.registry import SensorRegistry

logger = logging.getLogger(__name__)

MONITORS = "monitors"
INFO_SUFFIX = "?"


class CommandServer:
    """
    ksysguardd line protocol over a pair of text streams.

      monitors   -> "<name>\\t<type>" per sensor
      <name>     -> current value
      <name>?    -> "<description>\\t<min>\\t<max>\\t<unit>"
      otherwise  -> nothing
    """

    def __init__(self, registry: SensorRegistry, settings: Settings = default_settings) -> None:
        self._registry = registry
        self._settings = settings
        self._pending: deque[str] = deque()

    @property
    def banner(self) -> str:
        return f"{self._settings.daemon_name} {self._settings.version}"

    @property
    def prompt(self) -> str:
        return f"{self._settings.daemon_name}> "

    def handle(self, command: str) -> list[str]:
        if command == MONITORS:
            return [f"{name}\t{sensor.sensor_type.value}" for name, sensor in self._registry.items()]

        sensor = self._registry.get(command)
        if sensor is not None:
            return [sensor.read_value()]

        if command.endswith(INFO_SUFFIX):
            sensor = self._registry.get(command[: -len(INFO_SUFFIX)])
            if sensor is not None:
                info = sensor.info()
                return [
                    "\t".join(
                        (
                            info.description,
                            format_value(info.min_value),
                            format_value(info.max_value),
                            info.unit,
                        )
                    )
                ]

        logger.debug("Ignoring unrecognized command %r", command)
        return []

    def _next_token(self, stdin: TextIO) -> Optional[str]:
        """Blocking: next whitespace-delimited token, or None at end of input."""
        while not self._pending:
            line = stdin.readline()
            if not line:
                return None
            self._pending.extend(line.split())
        return self._pending.popleft()

    def _read_tokens(
        self,
        stdin: TextIO,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[Optional[str]],
    ) -> None:
        """Reader thread body: push tokens into the loop's queue, then None at end of input."""
        while True:
            try:
                token = self._next_token(stdin)
            except (OSError, ValueError) as e:
                logger.warning("Command input unreadable, treating as end of input: %s", e)
                token = None
            try:
                loop.call_soon_threadsafe(queue.put_nowait, token)
            except RuntimeError:
                # loop already closed
                return
            if token is None:
                return

    async def run(self, stdin: TextIO = sys.stdin, stdout: TextIO = sys.stdout) -> None:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[Optional[str]] = asyncio.Queue()

        # Daemon thread, not the default executor: a read blocked in stdin
        # must not hold up loop shutdown on Ctrl-C.
        reader = threading.Thread(
            target=self._read_tokens,
            args=(stdin, loop, queue),
            name="ksysguardd-stdin",
            daemon=True,
        )
        reader.start()

        stdout.write(self.banner + "\n")
        while True:
            stdout.write(self.prompt)
            stdout.flush()

            command = await queue.get()
            if command is None:
                logger.info("End of input, leaving command loop")
                break

            for line in self.handle(command):
                stdout.write(line + "\n")
            stdout.flush()
