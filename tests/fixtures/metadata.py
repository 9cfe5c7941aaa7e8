"""Metadata provider fixtures for tests."""
from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

import pytest

from metadata.sqlite_provider import (
    SqliteMetadataProvider,
    init_metadata_db,
    insert_file,
    insert_osquery_info,
    insert_process,
)

CALLER_PID = "4242"
CALLER_UID = "1000"
OTHER_UID = "0"


@dataclass
class MetadataContext:
    conn: sqlite3.Connection
    provider: SqliteMetadataProvider
    pid: str
    uid: str

    def add_file(self, path: Path | str, uid: str | None = None, size: int | None = None) -> None:
        insert_file(self.conn, str(path), self.uid if uid is None else uid, size=size)


@pytest.fixture
def metadata_factory() -> Iterator[Callable[..., MetadataContext]]:
    """Create an in-memory metadata snapshot with one caller process."""
    connections: list[sqlite3.Connection] = []

    def _create(pid: str = CALLER_PID, uid: str = CALLER_UID) -> MetadataContext:
        conn = init_metadata_db(":memory:")
        connections.append(conn)
        insert_osquery_info(conn, pid, version="0.1.0")
        insert_process(conn, pid, uid, name="filewindow")
        return MetadataContext(conn, SqliteMetadataProvider(conn), pid, uid)

    yield _create

    for conn in connections:
        conn.close()


@pytest.fixture
def caller(metadata_factory) -> MetadataContext:
    return metadata_factory()
