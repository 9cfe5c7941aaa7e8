"""
Access audit logging for virtual tables.

Provides:
- TableLoggerAdapter: Safe logging with default table field
- AccessAuditLogger: Records every ownership allow/deny decision to a
  dedicated rotating access.log

Key Design:
- propagate=False on the access logger so decisions are not duplicated into
  the application log (the table already logs denials there at INFO)
- One JSON object per line, so the file can be replayed or grepped
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .enums import AccessOutcome
from .logging import (
    DEFAULT_BACKUP_COUNT,
    DEFAULT_MAX_BYTES,
    ROOT_LOGGER_NAME,
    get_logger,
    rotating_file_handler,
)

LOGGER = get_logger("core.audit_logging")

ACCESS_LOG_FILE_NAME = "access.log"


def _access_logger_name(log_dir: Path) -> str:
    digest = hashlib.sha1(str(log_dir.resolve()).encode("utf-8")).hexdigest()[:12]
    return f"{ROOT_LOGGER_NAME}.access.{digest}"


class TableLoggerAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that provides a default 'table' field.

    Prevents KeyError when a formatter uses %(table)s but the caller
    doesn't provide extra={'table': ...}.

    Usage:
        logger = TableLoggerAdapter(base_logger, {"table": "challenge"})
        logger.info("message")  # Uses default table
        logger.info("message", extra={"table": "other"})  # Override
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(self.extra or {})
        if "extra" in kwargs:
            extra.update(kwargs["extra"])
        kwargs["extra"] = extra
        return msg, kwargs


class AccessAuditLogger:
    """
    Writes ownership decisions to a rotating access log.

    One instance is created at startup and shared by every table; it holds no
    per-query state. Each log directory gets its own logger, so instances
    writing to different directories are independent. A new instance on the
    same directory takes over that directory's file handler.
    """

    def __init__(
        self,
        log_dir: Path,
        max_bytes: int = DEFAULT_MAX_BYTES,
        backup_count: int = DEFAULT_BACKUP_COUNT,
    ) -> None:
        log_dir.mkdir(parents=True, exist_ok=True)
        self.log_path = log_dir / ACCESS_LOG_FILE_NAME

        self._logger = logging.getLogger(_access_logger_name(log_dir))
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._close_handlers()
        self._logger.addHandler(rotating_file_handler(self.log_path, max_bytes, backup_count))
        LOGGER.debug("Access audit log at %s", self.log_path)

    def record(
        self,
        table: str,
        path: str,
        outcome: AccessOutcome,
        caller_uid: str,
        owner_uid: Optional[str] = None,
    ) -> None:
        payload = {
            "ts_utc": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "table": table,
            "path": path,
            "decision": str(outcome),
            "caller_uid": caller_uid,
            "owner_uid": owner_uid,
        }
        self._logger.info(json.dumps(payload, sort_keys=True))

    def close(self) -> None:
        """Flush and detach the file handler. Safe to call more than once."""
        self._close_handlers()

    def _close_handlers(self) -> None:
        for handler in list(self._logger.handlers):
            handler.close()
            self._logger.removeHandler(handler)
