"""
Exceptions for virtual tables.
"""


class TableError(Exception):
    """Base exception for table errors."""
    pass


class SchemaError(TableError):
    """Raised when a column schema or projection is invalid."""
    pass


class ConstraintError(TableError):
    """Raised when a query constraint cannot be interpreted."""
    pass


class RegistryError(TableError):
    """Raised on duplicate or unknown table registrations."""
    pass


class UnknownTableError(TableError):
    """Raised when a metadata lookup names a table or column that does not exist."""
    pass


class IdentityResolutionError(TableError):
    """Raised when the calling process identity cannot be resolved exactly."""

    def __init__(self, table: str, row_count: int):
        self.table = table
        self.row_count = row_count
        super().__init__(
            f"Expected exactly one row from '{table}' while resolving caller identity, got {row_count}"
        )
