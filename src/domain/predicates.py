"""
Predicate model for element queries.

Clauses name qualified columns (`table.column`) and refer to values only
through bound parameter names, so a PredicateSet can be compiled by any
query backend and compared structurally.

Key behaviors:
- Clauses are frozen and hashable
- ParamBinder allocates parameter names in call order (p0, p1, ...)
- evaluate() applies a clause to a single row with SQL WHERE semantics
  (a comparison against NULL never matches)
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

CompareOp = Literal["=", "!=", "<", "<=", ">", ">=", "LIKE", "NOT LIKE"]

# --- Clauses ---


@dataclass(frozen=True)
class Compare:
    """`column <op> :param`"""

    column: str
    op: CompareOp
    param: str


@dataclass(frozen=True)
class ColumnCompare:
    """`left <op> right`, both sides columns."""

    left: str
    op: CompareOp
    right: str


@dataclass(frozen=True)
class IsNull:
    column: str
    negated: bool = False


@dataclass(frozen=True)
class ColumnFlag:
    """Boolean column test, stored as 1/0."""

    column: str
    value: bool


@dataclass(frozen=True)
class InList:
    column: str
    params: tuple[str, ...]
    negated: bool = False


@dataclass(frozen=True)
class And:
    clauses: tuple[Clause, ...]


@dataclass(frozen=True)
class Or:
    clauses: tuple[Clause, ...]


Clause = Compare | ColumnCompare | IsNull | ColumnFlag | InList | And | Or


def all_of(*clauses: Clause) -> Clause:
    if len(clauses) == 1:
        return clauses[0]
    return And(tuple(clauses))


def any_of(*clauses: Clause) -> Clause:
    if len(clauses) == 1:
        return clauses[0]
    return Or(tuple(clauses))


# --- Query shape ---


@dataclass(frozen=True)
class Join:
    table: str
    alias: str
    on: str


@dataclass(frozen=True)
class OrderBy:
    column: str
    descending: bool = False


@dataclass(frozen=True)
class PredicateSet:
    """
    Everything an element query needs from an element type:
    extra select columns, joins, WHERE clauses (ANDed), bound parameters
    and ordering.

    `matches_nothing` marks a set that must yield no rows at all; the
    query backend should not run it.
    """

    selects: tuple[str, ...] = ()
    joins: tuple[Join, ...] = ()
    clauses: tuple[Clause, ...] = ()
    params: dict[str, Any] = field(default_factory=dict)
    order: tuple[OrderBy, ...] = ()
    matches_nothing: bool = False

    @classmethod
    def nothing(cls) -> PredicateSet:
        return cls(matches_nothing=True)

    def join_aliases(self) -> tuple[str, ...]:
        return tuple(j.alias for j in self.joins)


class ParamBinder:
    """Allocates bound parameter names for one query build."""

    def __init__(self, prefix: str = "p") -> None:
        self._prefix = prefix
        self._params: dict[str, Any] = {}

    def bind(self, value: Any) -> str:
        name = f"{self._prefix}{len(self._params)}"
        self._params[name] = value
        return name

    def bind_many(self, values: Iterable[Any]) -> tuple[str, ...]:
        return tuple(self.bind(v) for v in values)

    @property
    def params(self) -> dict[str, Any]:
        return dict(self._params)


# --- Row evaluation ---


def like_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a SQL LIKE pattern (ASCII case-insensitive) to a regex."""
    parts = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("^" + "".join(parts) + "$", re.IGNORECASE | re.DOTALL)


def _compare(left: Any, op: str, right: Any) -> bool:
    if left is None or right is None:
        return False
    if op == "=":
        return bool(left == right)
    if op == "!=":
        return bool(left != right)
    if op == "<":
        return bool(left < right)
    if op == "<=":
        return bool(left <= right)
    if op == ">":
        return bool(left > right)
    if op == ">=":
        return bool(left >= right)
    if op == "LIKE":
        return like_to_regex(str(right)).match(str(left)) is not None
    if op == "NOT LIKE":
        return like_to_regex(str(right)).match(str(left)) is None
    raise ValueError(f"Unsupported operator: {op}")


def evaluate(clause: Clause, row: Mapping[str, Any], params: Mapping[str, Any]) -> bool:
    """Return True if the row satisfies the clause."""
    if isinstance(clause, Compare):
        return _compare(row.get(clause.column), clause.op, params[clause.param])

    if isinstance(clause, ColumnCompare):
        return _compare(row.get(clause.left), clause.op, row.get(clause.right))

    if isinstance(clause, IsNull):
        return (row.get(clause.column) is None) != clause.negated

    if isinstance(clause, ColumnFlag):
        value = row.get(clause.column)
        if value is None:
            return False
        return bool(value) == clause.value

    if isinstance(clause, InList):
        value = row.get(clause.column)
        if value is None:
            return False
        found = value in {params[p] for p in clause.params}
        return found != clause.negated

    if isinstance(clause, And):
        return all(evaluate(c, row, params) for c in clause.clauses)

    if isinstance(clause, Or):
        return any(evaluate(c, row, params) for c in clause.clauses)

    raise TypeError(f"Unknown clause type: {type(clause)}")


def evaluate_set(predicates: PredicateSet, row: Mapping[str, Any]) -> bool:
    """Return True if the row passes every clause of the set."""
    if predicates.matches_nothing:
        return False
    return all(evaluate(c, row, predicates.params) for c in predicates.clauses)
