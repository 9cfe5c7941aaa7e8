from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from core.enums import Operator
from core.filesystem import QueryFS
from core.logging import get_logger

from ..constraints import QueryContext
from ..exceptions import ConstraintError

LOGGER = get_logger("tables.challenge.resolver")

DEFAULT_OFFSET = 0


@dataclass(frozen=True, slots=True)
class ResolvedQuery:
    """Concrete paths and the single offset a query reads from."""

    paths: Tuple[str, ...]
    offset: int = DEFAULT_OFFSET


def resolve_paths(context: QueryContext, fs: QueryFS) -> Tuple[str, ...]:
    """
    Union of the ``path`` equality values and the expansion of every LIKE pattern.

    Equality values come first in first-seen order, followed by expanded
    paths; duplicates are dropped. A pattern that fails to expand
    contributes nothing.
    """
    paths = {str(value): None for value in context.get_all("path", Operator.EQUALS)}
    for resolved in context.expand_constraints("path", Operator.LIKE, fs.expand_pattern):
        paths.setdefault(resolved, None)
    return tuple(paths)


def resolve_offset(context: QueryContext) -> int:
    """
    First-seen ``offset`` equality value, or 0 when there is none.

    Raises:
        ConstraintError: If the offset is not a non-negative integer
    """
    offset = context.get_first_int("offset", Operator.EQUALS)
    if offset is None:
        return DEFAULT_OFFSET
    if offset < 0:
        raise ConstraintError(f"'offset' must be non-negative, got {offset}")
    return offset


def resolve(context: QueryContext, fs: QueryFS) -> ResolvedQuery:
    paths = resolve_paths(context, fs)
    offset = resolve_offset(context)
    LOGGER.debug("Resolved %d path(s) at offset %d", len(paths), offset)
    return ResolvedQuery(paths=paths, offset=offset)
