from __future__ import annotations

import os
import stat as stat_module
import sys
import time
from pathlib import Path
from typing import List, Optional

from core.app_version import get_app_version
from core.filesystem import LocalFS, QueryFS
from core.logging import get_logger
from tables.exceptions import ConstraintError

from .provider import MetadataRow, check_lookup, filter_rows

LOGGER = get_logger("metadata.live")

PROC_ROOT = Path("/proc")


class LiveSystemProvider:
    """
    Metadata read from the running system.

    processes comes from /proc where available; the provider can always
    describe its own process, which is all the ownership gate needs.
    file comes from stat() on the filesystem the table reads from.
    """

    def __init__(self, fs: Optional[QueryFS] = None, proc_root: Path = PROC_ROOT) -> None:
        self.fs = fs or LocalFS()
        self.proc_root = proc_root
        self._start_time = str(int(time.time()))

    def select_all_from(
        self,
        table: str,
        column: Optional[str] = None,
        value: Optional[str] = None,
    ) -> List[MetadataRow]:
        check_lookup(table, column)
        if table == "osquery_info":
            return filter_rows(self._info_rows(), column, value)
        if table == "processes":
            if column == "pid":
                row = self._process_row(str(value))
                return [row] if row else []
            return filter_rows(self._all_process_rows(), column, value)
        if column != "path":
            raise ConstraintError("The file table requires an equality constraint on path")
        row = self._file_row(str(value))
        return [row] if row else []

    def _info_rows(self) -> List[MetadataRow]:
        return [{
            "pid": str(os.getpid()),
            "version": get_app_version(),
            "start_time": self._start_time,
        }]

    def _process_row(self, pid: str) -> Optional[MetadataRow]:
        status_path = self.proc_root / pid / "status"
        try:
            status = status_path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            if pid == str(os.getpid()):
                return self._own_process_row()
            LOGGER.debug("No process entry for pid %s", pid)
            return None
        return self._parse_status(pid, status)

    def _own_process_row(self) -> MetadataRow:
        return {
            "pid": str(os.getpid()),
            "name": Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "python",
            "uid": str(os.getuid()),
            "gid": str(os.getgid()),
        }

    @staticmethod
    def _parse_status(pid: str, status: str) -> MetadataRow:
        row: MetadataRow = {"pid": pid, "name": "", "uid": "", "gid": ""}
        for line in status.splitlines():
            key, _, rest = line.partition(":")
            fields = rest.split()
            if key == "Name":
                row["name"] = rest.strip()
            elif key == "Uid" and fields:
                # real, effective, saved, filesystem
                row["uid"] = fields[0]
            elif key == "Gid" and fields:
                row["gid"] = fields[0]
        return row

    def _all_process_rows(self) -> List[MetadataRow]:
        if not self.proc_root.is_dir():
            return [self._own_process_row()]
        rows = []
        for entry in self.proc_root.iterdir():
            if not entry.name.isdigit():
                continue
            row = self._process_row(entry.name)
            if row:
                rows.append(row)
        return rows

    def _file_row(self, path: str) -> Optional[MetadataRow]:
        try:
            st = self.fs.stat(path)
        except (OSError, ValueError) as exc:
            LOGGER.debug("No file metadata for %s: %s", path, exc)
            return None

        if st.is_file:
            file_type = "regular"
        elif st.is_dir:
            file_type = "directory"
        else:
            file_type = "special"

        directory, _, filename = path.rstrip("/").rpartition("/")
        return {
            "path": path,
            "directory": directory or "/",
            "filename": filename,
            "uid": str(st.uid),
            "gid": str(st.gid),
            "mode": f"{stat_module.S_IMODE(st.mode):04o}",
            "size": str(st.size_bytes),
            "type": file_type,
        }
