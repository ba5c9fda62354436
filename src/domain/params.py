"""
Element-query parameter parser.

Turns a criteria value into a clause over one column, using the
parameter syntax element criteria accept:

- "a, b" or ["a", "b"]   -> column = a OR column = b
- ["and", "a", "b"]      -> all values must match
- "not a"                -> column != a
- "foo*"                 -> column LIKE 'foo%'
- ">= 5", "< 3", "!= 2"  -> comparison operators
- ":empty:"              -> column IS NULL OR column = ''
- ":notempty:"           -> column IS NOT NULL AND column != ''

When every value is negated the values are ANDed, so "not a, not b"
excludes both.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from src.domain.predicates import (
    Clause,
    Compare,
    CompareOp,
    IsNull,
    ParamBinder,
    all_of,
    any_of,
)
from src.domain.state import to_db_time

EMPTY = ":empty:"
NOT_EMPTY = ":notempty:"

_OPERATORS: tuple[CompareOp, ...] = ("!=", ">=", "<=", ">", "<", "=")
_INT_RE = re.compile(r"^-?\d+$")

ParamValue = str | int | Sequence[str | int]


class ParamSyntaxError(ValueError):
    """A criteria value could not be parsed."""


def normalize_values(value: ParamValue) -> list[str | int]:
    """Split a criteria value into its individual items."""
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(value, int):
        return [value]
    return [v.strip() if isinstance(v, str) else v for v in value]


def _parse_item(item: str | int, numeric: bool) -> tuple[CompareOp, Any]:
    if isinstance(item, int):
        return "=", item

    negate = False
    op: CompareOp = "="

    if item.lower().startswith("not "):
        negate = True
        item = item[4:].strip()

    for candidate in _OPERATORS:
        if item.startswith(candidate):
            op = candidate
            item = item[len(candidate):].strip()
            break

    if negate:
        if op == "=":
            op = "!="
        elif op == "!=":
            op = "="
        else:
            raise ParamSyntaxError(f"Cannot negate operator {op!r}")

    if numeric:
        if not _INT_RE.match(item):
            raise ParamSyntaxError(f"Expected a number, got {item!r}")
        return op, int(item)

    if "*" in item:
        if op not in ("=", "!="):
            raise ParamSyntaxError(f"Wildcards cannot be combined with {op!r}")
        return ("LIKE" if op == "=" else "NOT LIKE"), item.replace("*", "%")

    return op, item


def _empty_clause(column: str, binder: ParamBinder, empty: bool) -> Clause:
    blank = binder.bind("")
    if empty:
        return any_of(IsNull(column), Compare(column, "=", blank))
    return all_of(IsNull(column, negated=True), Compare(column, "!=", blank))


def parse_param(
    column: str,
    value: ParamValue,
    binder: ParamBinder,
    *,
    numeric: bool = False,
) -> Clause:
    """
    Build a clause matching `column` against a criteria value.
    Raises ParamSyntaxError for malformed values.
    """
    items = normalize_values(value)

    glue_and: bool | None = None
    if items and isinstance(items[0], str) and items[0].lower() in ("and", "or"):
        glue_and = items.pop(0).lower() == "and"  # type: ignore[union-attr]

    if not items:
        raise ParamSyntaxError(f"No values given for {column}")

    clauses: list[Clause] = []
    negated_count = 0

    for item in items:
        if isinstance(item, str) and item.lower() in (EMPTY, NOT_EMPTY, f"not {EMPTY}"):
            empty = item.lower() == EMPTY
            if not empty:
                negated_count += 1
            clauses.append(_empty_clause(column, binder, empty))
            continue

        op, parsed = _parse_item(item, numeric)
        if op in ("!=", "NOT LIKE"):
            negated_count += 1
        clauses.append(Compare(column, op, binder.bind(parsed)))

    if glue_and is None:
        glue_and = negated_count == len(clauses)

    return all_of(*clauses) if glue_and else any_of(*clauses)


def parse_date_param(
    column: str,
    op: CompareOp,
    value: datetime | str,
    binder: ParamBinder,
) -> Clause:
    """Compare a date column against a datetime or ISO-8601 string."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as e:
            raise ParamSyntaxError(f"Invalid date for {column}: {value!r}") from e
    return Compare(column, op, binder.bind(to_db_time(value)))
