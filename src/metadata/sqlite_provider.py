"""
SQLite-backed metadata provider.

Holds the same three tables as the live provider in a SQLite database, so a
captured snapshot of process/file metadata can be replayed against the table.

This module provides:
- init_metadata_db: Open/create a metadata database with its tables
- SqliteMetadataProvider: MetadataProvider over that database
- insert helpers used to populate a snapshot
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, List, Optional, Union

from core.logging import get_logger

from .provider import TABLE_COLUMNS, MetadataRow, check_lookup

LOGGER = get_logger("metadata.sqlite_provider")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS osquery_info (
    pid TEXT NOT NULL,
    version TEXT,
    start_time TEXT
);
CREATE TABLE IF NOT EXISTS processes (
    pid TEXT NOT NULL,
    name TEXT,
    uid TEXT,
    gid TEXT
);
CREATE INDEX IF NOT EXISTS idx_processes_pid ON processes(pid);
CREATE TABLE IF NOT EXISTS file (
    path TEXT NOT NULL,
    directory TEXT,
    filename TEXT,
    uid TEXT,
    gid TEXT,
    mode TEXT,
    size TEXT,
    type TEXT
);
CREATE INDEX IF NOT EXISTS idx_file_path ON file(path);
"""


def init_metadata_db(db_path: Union[Path, str]) -> sqlite3.Connection:
    """
    Open (or create) a metadata database and ensure its tables exist.

    Args:
        db_path: Database file, or ":memory:"

    Returns:
        SQLite connection with row_factory set to sqlite3.Row
    """
    if isinstance(db_path, Path):
        db_path.parent.mkdir(parents=True, exist_ok=True)
    LOGGER.debug("Opening metadata database at %s", db_path)
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA_SQL)
    return conn


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def insert_osquery_info(conn: sqlite3.Connection, pid: Any, version: str = "", start_time: Any = None) -> None:
    with conn:
        conn.execute(
            "INSERT INTO osquery_info (pid, version, start_time) VALUES (?, ?, ?)",
            (_text(pid), version, _text(start_time)),
        )


def insert_process(conn: sqlite3.Connection, pid: Any, uid: Any, name: str = "", gid: Any = None) -> None:
    with conn:
        conn.execute(
            "INSERT INTO processes (pid, name, uid, gid) VALUES (?, ?, ?, ?)",
            (_text(pid), name, _text(uid), _text(gid)),
        )


def insert_file(
    conn: sqlite3.Connection,
    path: str,
    uid: Any,
    *,
    gid: Any = None,
    mode: str = "",
    size: Any = None,
    file_type: str = "regular",
) -> None:
    directory, _, filename = path.rstrip("/").rpartition("/")
    with conn:
        conn.execute(
            """
            INSERT INTO file (path, directory, filename, uid, gid, mode, size, type)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (path, directory or "/", filename, _text(uid), _text(gid), mode, _text(size), file_type),
        )


class SqliteMetadataProvider:
    """MetadataProvider reading from a database created by init_metadata_db()."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    @classmethod
    def open(cls, db_path: Path) -> "SqliteMetadataProvider":
        if not db_path.exists():
            raise FileNotFoundError(f"Metadata database not found: {db_path}")
        return cls(init_metadata_db(db_path))

    def select_all_from(
        self,
        table: str,
        column: Optional[str] = None,
        value: Optional[str] = None,
    ) -> List[MetadataRow]:
        # Identifiers cannot be bound as parameters; check_lookup whitelists them.
        check_lookup(table, column)
        columns = ", ".join(TABLE_COLUMNS[table])
        sql = f"SELECT {columns} FROM {table}"
        params: tuple = ()
        if column is not None:
            sql += f" WHERE {column} = ?"
            params = (_text(value),)
        sql += " ORDER BY rowid"

        cursor = self.conn.execute(sql, params)
        return [
            {key: row[key] for key in row.keys() if row[key] is not None}
            for row in cursor.fetchall()
        ]

    def close(self) -> None:
        self.conn.close()
