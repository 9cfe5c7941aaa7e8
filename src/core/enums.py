"""
Core Enumerations

Centralized enum definitions for the virtual-table layer.
Using StrEnum (Python 3.11+) for string-based enums that serialize naturally.
"""

from enum import StrEnum


class ColumnType(StrEnum):
    """Semantic type of a virtual-table column."""

    TEXT = "TEXT"
    INTEGER = "INTEGER"
    BLOB = "BLOB"


class ColumnOptions(StrEnum):
    """How a column participates in a query."""

    REQUIRED = "required"      # query must constrain it
    ADDITIONAL = "additional"  # optional constraint, default applied if absent
    DEFAULT = "default"        # ordinary output column
    HIDDEN = "hidden"          # only returned when explicitly requested


class Operator(StrEnum):
    """Constraint operators understood at the query boundary."""

    EQUALS = "="
    GREATER_THAN = ">"
    LESS_THAN = "<"
    GREATER_THAN_OR_EQUALS = ">="
    LESS_THAN_OR_EQUALS = "<="
    LIKE = "LIKE"
    GLOB = "GLOB"

    @classmethod
    def parse(cls, value: "str | Operator") -> "Operator":
        """Accept either the symbol or the member name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        try:
            return cls(text.upper())
        except ValueError:
            pass
        try:
            return cls[text.upper()]
        except KeyError:
            raise ValueError(f"Unsupported constraint operator: {value!r}") from None


class AccessOutcome(StrEnum):
    """Result of the ownership check for one path."""

    ALLOWED = "allowed"
    DENIED = "denied"
    MISSING = "missing"


class MetadataBackend(StrEnum):
    """Metadata provider selected by configuration."""

    LIVE = "live"
    SQLITE = "sqlite"
