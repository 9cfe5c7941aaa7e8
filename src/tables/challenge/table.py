"""
The ``challenge`` table: ownership-gated, offset-windowed file reads.

    SELECT path, offset, bytes, size FROM challenge
    WHERE path LIKE '/tmp/%.txt' AND offset = 1024;

Per query:
    1. resolve the caller uid (exactly one osquery_info row, exactly one
       matching processes row), otherwise return no rows
    2. resolve paths (equality + LIKE expansion) and the offset
    3. for each path: ownership check, then read one window
    4. return the rows that were produced
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence

from core.config import DEFAULT_WINDOW_SIZE
from core.enums import ColumnOptions, ColumnType
from core.filesystem import LocalFS, QueryFS
from core.logging import get_logger

from ..base import Column, TablePlugin
from ..constraints import QueryContext
from ..exceptions import ConstraintError, IdentityResolutionError
from ..rows import ChunkRow
from .gate import authorize, resolve_caller_uid
from .reader import read_window
from .resolver import resolve

if TYPE_CHECKING:
    from core.audit_logging import AccessAuditLogger
    from metadata.provider import MetadataProvider

LOGGER = get_logger("tables.challenge.table")

CHALLENGE_COLUMNS = (
    Column("path", ColumnType.TEXT, ColumnOptions.REQUIRED),
    Column("offset", ColumnType.INTEGER, ColumnOptions.ADDITIONAL),
    Column("bytes", ColumnType.BLOB, ColumnOptions.DEFAULT),
    Column("size", ColumnType.INTEGER, ColumnOptions.DEFAULT),
)


class ChallengeTable(TablePlugin):
    name = "challenge"

    def __init__(
        self,
        provider: "MetadataProvider",
        fs: Optional[QueryFS] = None,
        *,
        window_size: int = DEFAULT_WINDOW_SIZE,
        audit: Optional["AccessAuditLogger"] = None,
    ) -> None:
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")
        self.provider = provider
        self.fs = fs or LocalFS()
        self.window_size = window_size
        self.audit = audit
        super().__init__()

    def columns(self) -> Sequence[Column]:
        return CHALLENGE_COLUMNS

    def generate(self, context: QueryContext) -> List[ChunkRow]:
        try:
            caller_uid = resolve_caller_uid(self.provider)
        except IdentityResolutionError as exc:
            LOGGER.error("Cannot resolve caller identity: %s", exc)
            return []

        try:
            resolved = resolve(context, self.fs)
        except ConstraintError as exc:
            LOGGER.error("Invalid constraints for %s: %s", self.name, exc)
            return []

        results: List[ChunkRow] = []
        for path in resolved.paths:
            decision = authorize(
                self.provider, path, caller_uid, table=self.name, audit=self.audit,
            )
            if not decision.allowed:
                continue
            row = read_window(self.fs, path, resolved.offset, self.window_size)
            if row is not None:
                results.append(row)

        LOGGER.debug(
            "%s returned %d row(s) for %d candidate path(s)",
            self.name, len(results), len(resolved.paths),
        )
        return results
