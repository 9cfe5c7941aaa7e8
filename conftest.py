from pathlib import Path
from typing import Callable

import pytest

from tests.fixtures.helpers import pattern_bytes

pytest_plugins = ["tests.fixtures.metadata"]


@pytest.fixture()
def make_file(tmp_path: Path) -> Callable[..., Path]:
    """Create a file of ``length`` patterned bytes (or explicit ``content``) under tmp_path."""

    def _create(name: str, length: int = 0, content: bytes | None = None) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(pattern_bytes(length) if content is None else content)
        return path

    return _create
