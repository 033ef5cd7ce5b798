"""Logging utilities for documentor commands and services."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

ProgressCallback = Callable[[str], None]

_LOGGER_NAME = "documentor"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the documentor hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the documentor logger with console output and optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated CLI invocations in one process do not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[documentor] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


def progress_to_log(
    logger: logging.Logger, level: int = logging.INFO
) -> ProgressCallback:
    """Return a progress sink that forwards pipeline status strings to ``logger``."""

    def _sink(status: str) -> None:
        logger.log(level, "%s", status)

    return _sink


def progress_sink(
    progress: Optional[ProgressCallback], logger: logging.Logger
) -> ProgressCallback:
    """Wrap an optional progress callback so its failures are logged, never raised."""

    def _emit(status: str) -> None:
        logger.debug("%s", status)
        if progress is None:
            return
        try:
            progress(status)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Progress callback failed: %s", exc)

    return _emit


__all__ = ["ProgressCallback", "configure_logging", "get_logger", "progress_sink", "progress_to_log"]
