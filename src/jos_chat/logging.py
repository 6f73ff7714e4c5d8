"""Logging configuration for jos-chat.

Attaches handlers to the ``jos_chat`` package logger. Library modules only
call ``logging.getLogger(__name__)``; the host (CLI, editor bridge) decides
where output goes.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "jos_chat"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Handlers installed by configure_logging(), removed on reconfigure
_handlers: list[logging.Handler] = []


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def configure_logging(
    level: int | str = logging.WARNING,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Configure jos-chat logging.

    Args:
        level: Level name or number for the package logger
        log_file: Optional file that also receives all records

    Returns:
        The ``jos_chat`` logger
    """
    numeric_level = _coerce_level(level)
    logger = logging.getLogger(LOGGER_NAME)
    close_logging()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    _handlers.append(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        _handlers.append(file_handler)

    for handler in _handlers:
        logger.addHandler(handler)
    logger.setLevel(numeric_level)
    return logger


def close_logging() -> None:
    """Remove and close handlers installed by configure_logging()."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in _handlers:
        logger.removeHandler(handler)
        handler.close()
    _handlers.clear()
