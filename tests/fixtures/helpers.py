from __future__ import annotations


def pattern_bytes(length: int) -> bytes:
    """Deterministic content where every byte records its own position."""
    return bytes(i % 251 for i in range(length))
