"""Version reported by ``--version``, the extension manifest and ``osquery_info``."""

from __future__ import annotations

import tomllib
from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Optional

DISTRIBUTION_NAME = "filewindow"
UNKNOWN_VERSION = "0.0.0"
PYPROJECT_PATH = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _source_tree_version(pyproject_path: Path) -> Optional[str]:
    try:
        with pyproject_path.open("rb") as handle:
            project = tomllib.load(handle).get("project", {})
    except (OSError, tomllib.TOMLDecodeError):
        return None
    version = project.get("version")
    return str(version) if version else None


@lru_cache(maxsize=1)
def get_app_version() -> str:
    """
    Version of the code that is running.

    A checkout's pyproject.toml is preferred so an editable install reports
    the tree's version; otherwise the installed distribution metadata is used.
    """
    version = _source_tree_version(PYPROJECT_PATH)
    if version:
        return version
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return UNKNOWN_VERSION
