"""
Metadata lookups the ownership gate depends on.

Three tables are exposed, mirroring what the host query engine offers:

    osquery_info   one row describing the running process (pid, version)
    processes      pid -> owning uid
    file           path -> owning uid

Values are returned as text, the way the engine hands column values across
the table boundary; callers compare them as opaque tokens.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Tuple

from tables.exceptions import UnknownTableError

MetadataRow = Dict[str, str]

TABLE_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "osquery_info": ("pid", "version", "start_time"),
    "processes": ("pid", "name", "uid", "gid"),
    "file": ("path", "directory", "filename", "uid", "gid", "mode", "size", "type"),
}


class MetadataProvider(Protocol):
    def select_all_from(
        self,
        table: str,
        column: Optional[str] = None,
        value: Optional[str] = None,
    ) -> List[MetadataRow]:
        """Return all rows of ``table``, or those where ``column`` equals ``value``."""
        ...


def check_lookup(table: str, column: Optional[str]) -> Tuple[str, ...]:
    """
    Validate a table/column pair against the known metadata tables.

    Returns:
        The table's column names

    Raises:
        UnknownTableError: If the table or column is not known
    """
    columns = TABLE_COLUMNS.get(table)
    if columns is None:
        raise UnknownTableError(f"Unknown metadata table: {table!r}")
    if column is not None and column not in columns:
        raise UnknownTableError(f"Unknown column {column!r} for table {table!r}")
    return columns


def filter_rows(
    rows: List[MetadataRow],
    column: Optional[str],
    value: Optional[str],
) -> List[MetadataRow]:
    if column is None:
        return rows
    wanted = str(value)
    return [row for row in rows if row.get(column) == wanted]
