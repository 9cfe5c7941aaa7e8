"""Process and file metadata providers backing the ownership check."""

from .live import LiveSystemProvider
from .provider import TABLE_COLUMNS, MetadataProvider, MetadataRow
from .sqlite_provider import SqliteMetadataProvider, init_metadata_db

__all__ = [
    'LiveSystemProvider',
    'MetadataProvider',
    'MetadataRow',
    'SqliteMetadataProvider',
    'TABLE_COLUMNS',
    'init_metadata_db',
]
