"""
Table registry owned by the host process.

Tables are registered explicitly, in order, at startup:

    registry = TableRegistry()
    register_builtin_tables(registry, config, provider)
    rows = registry.call("table", "challenge", context)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from core.app_version import get_app_version
from core.filesystem import QueryFS
from core.logging import get_logger

from .base import TABLE_KIND, TableDescriptor
from .constraints import QueryContext
from .exceptions import RegistryError

if TYPE_CHECKING:
    from core.audit_logging import AccessAuditLogger
    from core.config import AppConfig
    from metadata.provider import MetadataProvider

LOGGER = get_logger("tables.registry")

EXTENSION_NAME = "challenge"


@dataclass(frozen=True, slots=True)
class ExtensionManifest:
    """Name and version the extension announces to its host."""

    name: str = EXTENSION_NAME
    version: str = "0.0.0"


class TableRegistry:
    """
    Registry of table descriptors keyed by (kind, name).

    Usage:
        registry = TableRegistry()
        registry.register(ChallengeTable(provider).descriptor())
        registry.names("table")                # ["challenge"]
        registry.query("table", "challenge", ctx)
    """

    def __init__(self, manifest: Optional[ExtensionManifest] = None):
        self.manifest = manifest or ExtensionManifest(version=get_app_version())
        self._descriptors: Dict[Tuple[str, str], TableDescriptor] = {}

    def register(self, descriptor: TableDescriptor) -> None:
        key = (descriptor.kind, descriptor.name)
        if key in self._descriptors:
            raise RegistryError(f"{descriptor.kind} '{descriptor.name}' is already registered")
        self._descriptors[key] = descriptor
        LOGGER.debug("Registered %s '%s' (%d columns)", descriptor.kind, descriptor.name, len(descriptor.columns))

    def get(self, kind: str, name: str) -> TableDescriptor:
        try:
            return self._descriptors[(kind, name)]
        except KeyError:
            raise RegistryError(f"No {kind} named '{name}' is registered") from None

    def names(self, kind: str = TABLE_KIND) -> List[str]:
        """Registered names of ``kind``, in registration order."""
        return [name for (entry_kind, name) in self._descriptors if entry_kind == kind]

    def call(self, kind: str, name: str, context: QueryContext) -> List[Any]:
        """Run a table's generate() and return its typed rows."""
        return self.get(kind, name).generate(context)

    def query(self, kind: str, name: str, context: QueryContext) -> List[Dict[str, Any]]:
        """Run a table and return rows projected to the requested columns."""
        descriptor = self.get(kind, name)
        if descriptor.query is None:
            raise RegistryError(f"{kind} '{name}' does not support projected queries")
        return descriptor.query(context)

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


def register_builtin_tables(
    registry: TableRegistry,
    config: "AppConfig",
    provider: "MetadataProvider",
    fs: Optional[QueryFS] = None,
    audit: Optional["AccessAuditLogger"] = None,
) -> TableRegistry:
    """Register every table this extension ships, in a fixed order."""
    from .challenge import ChallengeTable

    registry.register(
        ChallengeTable(
            provider,
            fs,
            window_size=config.table.window_size,
            audit=audit,
        ).descriptor()
    )
    LOGGER.info("Extension %s %s registered tables: %s",
                registry.manifest.name, registry.manifest.version, registry.names(TABLE_KIND))
    return registry
