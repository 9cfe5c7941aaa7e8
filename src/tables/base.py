"""
Base classes for virtual tables.

A table declares an ordered, immutable column schema and a generate()
callable. The host registers a TableDescriptor built from it; nothing is
registered at import time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from core.enums import ColumnOptions, ColumnType

from .constraints import QueryContext
from .exceptions import SchemaError

TABLE_KIND = "table"


@dataclass(frozen=True, slots=True)
class Column:
    name: str
    type: ColumnType
    options: ColumnOptions = ColumnOptions.DEFAULT

    @property
    def hidden(self) -> bool:
        return self.options is ColumnOptions.HIDDEN


def validate_schema(columns: Sequence[Column]) -> Tuple[Column, ...]:
    """
    Check a schema and return it as an immutable tuple.

    Raises:
        SchemaError: On duplicate column names or when the schema does not
            have exactly one REQUIRED column
    """
    names = [column.name for column in columns]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise SchemaError(f"Duplicate column names: {duplicates}")

    required = [column.name for column in columns if column.options is ColumnOptions.REQUIRED]
    if len(required) != 1:
        raise SchemaError(f"Schema must have exactly one REQUIRED column, found {required}")
    return tuple(columns)


def project_columns(
    columns: Sequence[Column],
    requested: Optional[Iterable[str]] = None,
) -> List[str]:
    """
    Resolve which columns appear in the output.

    With no explicit request every non-hidden column is returned in schema
    order. HIDDEN columns only appear when named in ``requested``.
    """
    if requested is None:
        return [column.name for column in columns if not column.hidden]

    known = {column.name for column in columns}
    requested = list(dict.fromkeys(requested))
    unknown = [name for name in requested if name not in known]
    if unknown:
        raise SchemaError(f"Unknown columns requested: {unknown}")
    return requested


@dataclass(frozen=True, slots=True)
class TableDescriptor:
    """What the host needs to serve a table: identity, schema and generator."""

    kind: str
    name: str
    columns: Tuple[Column, ...]
    generate: Callable[[QueryContext], List[Any]]
    query: Optional[Callable[[QueryContext], List[Dict[str, Any]]]] = None


class TablePlugin(ABC):
    """
    Base class for virtual tables.

    Subclasses provide a name, a column schema and generate(); the schema is
    validated once, at construction, and cached.
    """

    name: str = ""

    def __init__(self) -> None:
        if not self.name:
            raise SchemaError(f"{type(self).__name__} must define a table name")
        self._columns = validate_schema(self.columns())

    @abstractmethod
    def columns(self) -> Sequence[Column]:
        """Return the ordered column schema."""

    @abstractmethod
    def generate(self, context: QueryContext) -> List[Any]:
        """Produce the rows for one query."""

    @property
    def schema(self) -> Tuple[Column, ...]:
        return self._columns

    def routes(self) -> Dict[str, str]:
        """Column name to type name, in schema order."""
        return {column.name: str(column.type) for column in self._columns}

    def query(self, context: QueryContext) -> List[Dict[str, Any]]:
        """Run generate() and project rows onto the requested columns."""
        names = project_columns(self._columns, context.requested_columns)
        return [row.as_dict(names) for row in self.generate(context)]

    def descriptor(self) -> TableDescriptor:
        return TableDescriptor(
            kind=TABLE_KIND,
            name=self.name,
            columns=self._columns,
            generate=self.generate,
            query=self.query,
        )
