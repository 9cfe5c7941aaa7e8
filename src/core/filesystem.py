from __future__ import annotations

import glob
import os
import stat as stat_module
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List

from .logging import get_logger

LOGGER = get_logger("core.filesystem")


@dataclass(frozen=True, slots=True)
class FileStat:
    """
    File metadata used by the ownership gate.

    uid/gid are kept as integers here; metadata providers render them as
    text the way the query engine returns column values.
    """
    size_bytes: int
    uid: int
    gid: int
    mode: int
    is_file: bool
    is_dir: bool = False


def sql_pattern_to_glob(pattern: str) -> str:
    """
    Translate a SQL LIKE path pattern into glob syntax.

    ``%%`` matches recursively and becomes ``**``; a single ``%`` matches
    within one path component and becomes ``*``. Native glob characters
    (``*``, ``?``, ``[...]``) pass through unchanged.
    """
    return pattern.replace("%%", "**").replace("%", "*")


class QueryFS(ABC):
    """Abstract read-only view over the filesystem a table reads from."""

    @abstractmethod
    def open_for_read(self, path: str) -> BinaryIO:
        """Return a binary file-like object for the specified path."""

    @abstractmethod
    def expand_pattern(self, pattern: str) -> List[str]:
        """
        Expand a LIKE/glob pattern into concrete paths.

        Files and directories both match. Results are not canonicalized:
        symlinks and relative components are left as the pattern produced them.

        Raises:
            ValueError: If the pattern is malformed
            OSError: If the filesystem cannot be enumerated
        """

    @abstractmethod
    def stat(self, path: str) -> FileStat:
        """
        Get file metadata without reading content.

        Raises:
            FileNotFoundError: If path does not exist
        """

    def read_file(self, path: str) -> bytes:
        """
        Read entire file content as bytes.

        Convenience wrapper around open_for_read().
        """
        with self.open_for_read(path) as f:
            return f.read()


class LocalFS(QueryFS):
    """Filesystem view over the host the process runs on."""

    def open_for_read(self, path: str) -> BinaryIO:
        LOGGER.debug("Opening %s for read", path)
        # a FIFO opened without O_NONBLOCK waits for a writer
        fd = os.open(path, os.O_RDONLY | os.O_NONBLOCK)
        return os.fdopen(fd, "rb")

    def expand_pattern(self, pattern: str) -> List[str]:
        glob_pattern = sql_pattern_to_glob(pattern)
        LOGGER.debug("Expanding pattern %s as %s", pattern, glob_pattern)
        matches = glob.glob(glob_pattern, recursive=True)
        # "dir/**" also yields "dir/" itself
        return sorted({self._strip_trailing_sep(match) for match in matches})

    def stat(self, path: str) -> FileStat:
        """
        Get file metadata from the host filesystem.

        Follows symlinks, so ownership is that of the file the read would open.
        """
        st = os.stat(path)
        return FileStat(
            size_bytes=st.st_size,
            uid=st.st_uid,
            gid=st.st_gid,
            mode=stat_module.S_IMODE(st.st_mode),
            is_file=stat_module.S_ISREG(st.st_mode),
            is_dir=stat_module.S_ISDIR(st.st_mode),
        )

    @staticmethod
    def _strip_trailing_sep(path: str) -> str:
        stripped = path.rstrip(os.sep)
        return stripped or path


class MountedFS(LocalFS):
    """
    Filesystem view confined to a directory.

    Paths handed to the table are interpreted relative to the mount point and
    may not escape it. Useful for exposing a single directory tree.
    """

    def __init__(self, mount_point: Path) -> None:
        if not mount_point.exists():
            raise FileNotFoundError(f"Mount point {mount_point} does not exist.")
        self.mount_point = mount_point
        LOGGER.info("MountedFS bound to %s", mount_point)

    def open_for_read(self, path: str) -> BinaryIO:
        return super().open_for_read(str(self._resolve_under_mount(path)))

    def expand_pattern(self, pattern: str) -> List[str]:
        base = self.mount_point.as_posix().rstrip("/")
        rooted = f"{base}/{pattern.lstrip('/')}"
        results = []
        for match in super().expand_pattern(rooted):
            rel = os.path.relpath(match, self.mount_point).replace(os.sep, "/")
            if rel == ".":
                continue
            results.append(rel)
        return results

    def stat(self, path: str) -> FileStat:
        return super().stat(str(self._resolve_under_mount(path)))

    def _resolve_under_mount(self, path: str) -> Path:
        """
        Resolve a user-provided path and enforce mount root confinement.

        This prevents path traversal such as '../..' from escaping the root.
        """
        base = self.mount_point.resolve()
        resolved = (self.mount_point / path.lstrip("/")).resolve()
        try:
            resolved.relative_to(base)
        except ValueError as exc:
            raise ValueError(
                f"Path traversal attempt: {path!r} resolves outside mount {self.mount_point}"
            ) from exc
        return resolved

    @property
    def root(self) -> Path:
        return self.mount_point
