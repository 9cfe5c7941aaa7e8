"""
Virtual tables served to the host query engine.

Folder Structure:
- base.py          Column schema, TablePlugin, TableDescriptor
- constraints.py   QueryContext and typed constraint accessors
- rows.py          Typed output rows
- registry.py      Host-owned registry and explicit startup registration
- challenge/       Ownership-gated windowed file reads
"""

from .base import TABLE_KIND, Column, TableDescriptor, TablePlugin, project_columns, validate_schema
from .constraints import Constraint, ConstraintList, QueryContext
from .exceptions import (
    ConstraintError,
    IdentityResolutionError,
    RegistryError,
    SchemaError,
    TableError,
    UnknownTableError,
)
from .registry import ExtensionManifest, TableRegistry, register_builtin_tables
from .rows import ChunkRow, encode_row_json

__all__ = [
    'TABLE_KIND',
    'ChunkRow',
    'Column',
    'Constraint',
    'ConstraintError',
    'ConstraintList',
    'ExtensionManifest',
    'IdentityResolutionError',
    'QueryContext',
    'RegistryError',
    'SchemaError',
    'TableDescriptor',
    'TableError',
    'TablePlugin',
    'TableRegistry',
    'UnknownTableError',
    'encode_row_json',
    'project_columns',
    'register_builtin_tables',
    'validate_schema',
]
