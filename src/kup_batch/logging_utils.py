"""Logging setup for batch runs: console plus a rolling log under ``logs_root``."""

from __future__ import annotations

import logging
from pathlib import Path


DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "kup_batch.log"

# Marks handlers installed here so reconfiguring replaces only our own.
_HANDLER_TAG = "_kup_batch_handler"


def _installed_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [handler for handler in logger.handlers if getattr(handler, _HANDLER_TAG, False)]


def configure_logging(logs_root: Path, level: int = logging.INFO) -> logging.Logger:
    """Attach console and file handlers to the ``kup_batch`` logger.

    Calling this again swaps the previous handlers out, so a second run in the
    same process writes each record once. Handlers owned by others (the root
    logger, test capture) are left in place.
    """

    log_file = logs_root / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("kup_batch")
    logger.setLevel(level)
    for handler in _installed_handlers(logger):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT)
    for handler in (logging.StreamHandler(), logging.FileHandler(log_file, encoding="utf-8")):
        handler.setFormatter(formatter)
        handler.setLevel(level)
        setattr(handler, _HANDLER_TAG, True)
        logger.addHandler(handler)

    return logger


def parse_log_level(value: str) -> int:
    """Map a level name such as ``debug`` to its logging constant."""

    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value}")
    return level
