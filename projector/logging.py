"""Logging for discovery runs: one ``projector`` hierarchy, one console sink."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "projector"

_CONSOLE_FORMAT = "[projector] %(levelname)s %(message)s"
_VERBOSE_FORMAT = "[projector:%(component)s] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(component)s: %(message)s"


class _ComponentFilter(logging.Filter):
    """Expose ``projector.discovery.scanner`` as ``component='discovery.scanner'``."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith(f"{_LOGGER_NAME}."):
            name = name[len(_LOGGER_NAME) + 1 :]
        record.component = name
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``projector.<name>``, e.g. ``get_logger("discovery.signals")``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route scan warnings to stderr, and per-directory decisions too when verbose.

    Unreadable directories, malformed workspace files and bad denylist
    entries surface at WARNING; classification and skip decisions are DEBUG.
    Calling this again replaces the previous handlers.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    component_filter = _ComponentFilter()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.addFilter(component_filter)
    stream_handler.setFormatter(
        logging.Formatter(_VERBOSE_FORMAT if verbose else _CONSOLE_FORMAT)
    )
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(component_filter)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
