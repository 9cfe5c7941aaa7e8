from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional


@dataclass(frozen=True, slots=True)
class ChunkRow:
    """One window read from one file."""

    path: str
    offset: int
    data: bytes
    size: int

    def as_dict(self, columns: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """Map onto schema column names, optionally restricted to ``columns``."""
        values: Dict[str, Any] = {
            "path": self.path,
            "offset": self.offset,
            "bytes": self.data,
            "size": self.size,
        }
        if columns is None:
            return values
        return {name: values.get(name) for name in columns}


def encode_row_json(row: Dict[str, Any]) -> str:
    """Serialize a projected row to JSON; BLOB values become base64 text."""
    data = {
        key: base64.b64encode(value).decode("ascii") if isinstance(value, bytes) else value
        for key, value in row.items()
    }
    return json.dumps(data, sort_keys=False)
