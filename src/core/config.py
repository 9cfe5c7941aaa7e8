from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .enums import MetadataBackend

DEFAULT_WINDOW_SIZE = 1024


class ConfigurationError(ValueError):
    """Raised when config.yml holds an invalid value."""


@dataclass(slots=True)
class LoggingConfig:
    """Logging configuration from config.yml."""

    level: str = "INFO"
    log_max_mb: int = 50
    log_backup_count: int = 10
    access_log_enabled: bool = True

    @property
    def level_number(self) -> int:
        value = logging.getLevelName(self.level.upper())
        if not isinstance(value, int):
            raise ConfigurationError(f"Unknown logging level: {self.level!r}")
        return value


@dataclass(slots=True)
class TableConfig:
    """Virtual-table configuration from config.yml."""

    window_size: int = DEFAULT_WINDOW_SIZE


@dataclass(slots=True)
class MetadataConfig:
    """Where process/file metadata comes from."""

    provider: MetadataBackend = MetadataBackend.LIVE
    database: Optional[Path] = None


@dataclass(slots=True)
class AppConfig:
    """Top-level configuration resolved from disk."""

    base_dir: Path
    logs_dir: Path
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    table: TableConfig = field(default_factory=TableConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)

    def to_json(self) -> str:
        """Serialize the configuration into a JSON string for diagnostics."""
        data = {
            "logs_dir": str(self.logs_dir),
            "window_size": self.table.window_size,
            "metadata_provider": str(self.metadata.provider),
            "metadata_database": str(self.metadata.database) if self.metadata.database else None,
        }
        return json.dumps(data, indent=2, sort_keys=True)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        content = yaml.safe_load(handle) or {}
        if not isinstance(content, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping at the top level.")
        return content


def _section(overrides: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = overrides.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Config section {name!r} must be a mapping.")
    return section


def _positive_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"{key} must be a positive integer, got {value!r}")
    return value


def _non_negative_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(f"{key} must be a non-negative integer, got {value!r}")
    return value


def load_app_config(base_dir: Path) -> AppConfig:
    """Load application configuration from disk, providing sensible defaults."""

    config_yaml = base_dir / "config" / "config.yml"
    config_overrides = _load_yaml(config_yaml)

    logs_dir = base_dir / "logs"

    logging_cfg = _section(config_overrides, "logging")
    logging_config = LoggingConfig(
        level=str(logging_cfg.get("level", "INFO")),
        log_max_mb=_positive_int(logging_cfg.get("log_max_mb", 50), "logging.log_max_mb"),
        log_backup_count=_non_negative_int(
            logging_cfg.get("log_backup_count", 10), "logging.log_backup_count"
        ),
        access_log_enabled=bool(logging_cfg.get("access_log_enabled", True)),
    )

    table_cfg = _section(config_overrides, "table")
    table_config = TableConfig(
        window_size=_positive_int(
            table_cfg.get("window_size", DEFAULT_WINDOW_SIZE), "table.window_size"
        ),
    )

    metadata_cfg = _section(config_overrides, "metadata")
    try:
        provider = MetadataBackend(str(metadata_cfg.get("provider", MetadataBackend.LIVE)).lower())
    except ValueError as exc:
        raise ConfigurationError(
            f"metadata.provider must be one of {[b.value for b in MetadataBackend]}"
        ) from exc

    database: Optional[Path] = None
    if metadata_cfg.get("database"):
        database = Path(metadata_cfg["database"])
        if not database.is_absolute():
            database = base_dir / database
    if provider is MetadataBackend.SQLITE and database is None:
        raise ConfigurationError("metadata.database is required when metadata.provider is 'sqlite'")

    return AppConfig(
        base_dir=base_dir,
        logs_dir=logs_dir,
        logging=logging_config,
        table=table_config,
        metadata=MetadataConfig(provider=provider, database=database),
    )
