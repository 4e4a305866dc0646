"""Append-only startup diagnostics log.

Lines go through the non-propagating ``cra_client.startup`` logger with a
FileHandler in append mode. The file is never truncated or rotated here.
Only one FileStartupLog writes at a time: opening a new one detaches the
handler of the previous instance.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .config import Config

LOGGER_NAME = "cra_client.startup"
_FORMAT = "%(asctime)s %(message)s"

logger = logging.getLogger(__name__)


class FileStartupLog:
    """StartupLog port backed by ``logging``."""

    def __init__(self, path: Path | None = None):
        self.path = path or Config.STARTUP_LOG
        self._logger = logging.getLogger(LOGGER_NAME)
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._handler: logging.Handler | None = None
        _detach_handlers(self._logger)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        except OSError as e:
            # Diagnostics stay on the console when the data dir is not writable
            logger.warning("Startup log unavailable at %s: %s", self.path, e)
            return
        handler.setFormatter(logging.Formatter(_FORMAT))
        self._logger.addHandler(handler)
        self._handler = handler

    @property
    def available(self) -> bool:
        return self._handler is not None and self._handler in self._logger.handlers

    def record(self, entry: str) -> None:
        if self.available:
            self._logger.info("%s", entry)

    def close(self) -> None:
        handler, self._handler = self._handler, None
        if handler is not None:
            self._logger.removeHandler(handler)
            handler.close()


def _detach_handlers(startup_logger: logging.Logger) -> None:
    for handler in list(startup_logger.handlers):
        startup_logger.removeHandler(handler)
        handler.close()
