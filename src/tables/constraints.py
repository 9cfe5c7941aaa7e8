"""
Query constraints handed to a table by the query engine.

A QueryContext is built fresh for every query and treated as read-only by
tables. Constraint values keep their first-seen order so that accessors
which pick a single value have a deterministic tie-break.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from core.enums import Operator
from core.logging import get_logger

from .exceptions import ConstraintError

LOGGER = get_logger("tables.constraints")


@dataclass(frozen=True, slots=True)
class Constraint:
    op: Operator
    expr: Any


@dataclass(slots=True)
class ConstraintList:
    """Constraints on one column, in the order the engine supplied them."""

    constraints: List[Constraint] = field(default_factory=list)

    def add(self, op: "Operator | str", expr: Any) -> None:
        self.constraints.append(Constraint(Operator.parse(op), expr))

    def exists(self, op: "Operator | str | None" = None) -> bool:
        if op is None:
            return bool(self.constraints)
        op = Operator.parse(op)
        return any(c.op is op for c in self.constraints)

    def get_all(self, op: "Operator | str") -> List[Any]:
        """Values under ``op``, first-seen order, duplicates dropped."""
        op = Operator.parse(op)
        return list(dict.fromkeys(c.expr for c in self.constraints if c.op is op))

    def first(self, op: "Operator | str") -> Optional[Any]:
        op = Operator.parse(op)
        for c in self.constraints:
            if c.op is op:
                return c.expr
        return None

    def __len__(self) -> int:
        return len(self.constraints)


@dataclass(slots=True)
class QueryContext:
    """
    Constraint set for a single query.

    Attributes:
        constraints: Column name to ConstraintList
        requested_columns: Explicit projection; None means "all visible
            columns". HIDDEN columns are only returned when named here.
    """

    constraints: Dict[str, ConstraintList] = field(default_factory=dict)
    requested_columns: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_mapping(
        cls,
        mapping: Mapping[str, Iterable[Tuple[str, Any]]],
        requested_columns: Optional[Sequence[str]] = None,
    ) -> "QueryContext":
        """
        Build a context from plain data.

        Example:
            >>> QueryContext.from_mapping({"path": [("=", "/tmp/a"), ("LIKE", "/tmp/%.txt")]})
        """
        context = cls(
            requested_columns=tuple(requested_columns) if requested_columns is not None else None,
        )
        for column, pairs in mapping.items():
            for op, expr in pairs:
                context.add(column, op, expr)
        return context

    def add(self, column: str, op: "Operator | str", expr: Any) -> None:
        self.constraints.setdefault(column, ConstraintList()).add(op, expr)

    def has_constraint(self, column: str, op: Optional[Operator] = None) -> bool:
        constraint_list = self.constraints.get(column)
        return constraint_list is not None and constraint_list.exists(op)

    def get_all(self, column: str, op: Operator) -> List[Any]:
        constraint_list = self.constraints.get(column)
        if constraint_list is None:
            return []
        return constraint_list.get_all(op)

    def expand_constraints(
        self,
        column: str,
        op: Operator,
        expander: Callable[[Any], Iterable[str]],
    ) -> List[str]:
        """
        Expand every value under ``op`` through ``expander``.

        A failure for one value is logged and contributes nothing; the
        remaining values are still expanded. The result keeps first-seen
        order with duplicates removed.
        """
        expanded: Dict[str, None] = {}
        for value in self.get_all(column, op):
            try:
                for item in expander(value):
                    expanded.setdefault(item, None)
            except Exception as exc:
                LOGGER.info("Could not expand %s %s %r: %s", column, op, value, exc)
        return list(expanded)

    def get_first_int(self, column: str, op: Operator = Operator.EQUALS) -> Optional[int]:
        """
        Return the first-seen value under ``op`` as an integer.

        Returns None when the column has no such constraint. Later values are
        ignored; a warning is logged when there is more than one.

        Raises:
            ConstraintError: If the selected value is not an integer
        """
        values = self.get_all(column, op)
        if not values:
            return None
        if len(values) > 1:
            LOGGER.warning(
                "Multiple %s constraints on '%s' (%s); using the first: %r",
                op, column, values, values[0],
            )
        return _coerce_int(column, values[0])


def _coerce_int(column: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConstraintError(f"'{column}' expects an integer, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ConstraintError(f"'{column}' expects an integer, got {value!r}") from exc
