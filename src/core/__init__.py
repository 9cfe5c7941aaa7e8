"""Shared runtime layer: configuration, logging and filesystem access."""

from .config import AppConfig, ConfigurationError, load_app_config  # noqa: F401
from .filesystem import FileStat, LocalFS, MountedFS, QueryFS  # noqa: F401
from .logging import configure_logging, get_logger  # noqa: F401
