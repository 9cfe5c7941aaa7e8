"""
Application logging for filewindow.

Diagnostics go to stderr and to a rotating ``filewindow.log``; stdout carries
query rows only. Modules log through children of the ``filewindow`` logger
obtained from get_logger(), e.g. ``get_logger("tables.challenge.gate")``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "filewindow"
LOG_FILE_NAME = "filewindow.log"

LINE_FORMAT = "%(asctime)sZ %(levelname)s %(name)s %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"

DEFAULT_MAX_BYTES = 50 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 10


class UtcFormatter(logging.Formatter):
    """Stamps records with second-precision UTC time regardless of host timezone."""

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return stamp.strftime(datefmt or TIMESTAMP_FORMAT)


def build_formatter() -> UtcFormatter:
    return UtcFormatter(fmt=LINE_FORMAT, datefmt=TIMESTAMP_FORMAT)


def rotating_file_handler(
    path: Path,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> RotatingFileHandler:
    """UTF-8 size-rotated handler used by both the application and access logs."""
    handler = RotatingFileHandler(
        path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(build_formatter())
    return handler


def configure_logging(
    log_dir: Path,
    level: int = logging.INFO,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> Logger:
    """
    Route the ``filewindow`` logger to ``log_dir/filewindow.log`` and stderr.

    Handlers installed by an earlier call are closed and replaced, so calling
    this twice in one process does not duplicate lines.

    Args:
        log_dir: Created if missing
        level: Threshold for the whole ``filewindow`` namespace
        max_bytes: Rotation size of filewindow.log
        backup_count: Rotated files kept next to it

    Returns:
        The ``filewindow`` logger
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME

    app_logger = logging.getLogger(ROOT_LOGGER_NAME)
    app_logger.setLevel(level)
    for handler in list(app_logger.handlers):
        handler.close()
        app_logger.removeHandler(handler)

    app_logger.addHandler(rotating_file_handler(log_path, max_bytes, backup_count))

    stderr_handler = logging.StreamHandler()
    stderr_handler.setFormatter(build_formatter())
    app_logger.addHandler(stderr_handler)

    app_logger.debug("Logging to %s (rotate at %d bytes, keep %d)", log_path, max_bytes, backup_count)
    return app_logger


def get_logger(name: Optional[str] = None) -> Logger:
    """``filewindow`` itself, or ``filewindow.<name>`` when a name is given."""
    app_logger = logging.getLogger(ROOT_LOGGER_NAME)
    return app_logger.getChild(name) if name else app_logger
