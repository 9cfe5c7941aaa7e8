from __future__ import annotations

from typing import Optional

from core.config import DEFAULT_WINDOW_SIZE
from core.filesystem import QueryFS
from core.logging import get_logger

from ..rows import ChunkRow

LOGGER = get_logger("tables.challenge.reader")


def read_window(
    fs: QueryFS,
    path: str,
    offset: int,
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> Optional[ChunkRow]:
    """
    Read one window of at most ``window_size`` bytes starting at ``offset``.

    Only regular files are read; a FIFO or device node is skipped like an
    unreadable file. Returns None when the file cannot be read (logged as an
    error) or when ``offset`` is at or past end-of-file (silent).
    """
    try:
        is_regular = fs.stat(path).is_file
        content = fs.read_file(path) if is_regular else b""
    except (OSError, ValueError) as exc:
        LOGGER.error("Cannot read file %s: %s", path, exc)
        return None
    if not is_regular:
        LOGGER.error("Cannot read file %s: not a regular file", path)
        return None

    if offset >= len(content):
        return None

    length = min(window_size, len(content) - offset)
    LOGGER.debug("Read %s: offset=%d length=%d total=%d", path, offset, length, len(content))
    return ChunkRow(
        path=path,
        offset=offset,
        data=content[offset:offset + length],
        size=length,
    )
