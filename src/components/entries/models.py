"""
Entries component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.domain.criteria import CallerContext, Criteria
from src.domain.entities import Entry
from src.domain.predicates import PredicateSet

# --- Validation Error ---


@dataclass(frozen=True)
class EntryValidationError:
    """Entry query validation error."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class BuildQueryInput:
    """Input for turning criteria into a predicate set."""

    criteria: Criteria
    caller: CallerContext


@dataclass(frozen=True)
class QueryEntriesInput:
    """Input for running an entry query."""

    criteria: Criteria
    caller: CallerContext
    limit: int | None = None
    offset: int = 0


@dataclass(frozen=True)
class RouteEntryInput:
    """Input for routing a request that matched an entry's URI."""

    entry: Entry
    locale: str


# --- Output Models ---


@dataclass(frozen=True)
class RouteDecision:
    """Render a template with the entry in scope."""

    action: str
    template: str | None
    variables: dict[str, Any]


@dataclass(frozen=True)
class BuildQueryOutput:
    """Output for predicate set construction."""

    predicates: PredicateSet | None
    now: datetime
    errors: list[EntryValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class QueryEntriesOutput:
    """
    Output containing matched entries.

    `now` is the clock reading the status filter was built with; label
    entries with it so classification matches the filter.
    """

    entries: tuple[Entry, ...]
    now: datetime
    errors: list[EntryValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class RouteEntryOutput:
    """Output for routing. `decision` is None when there is no route."""

    decision: RouteDecision | None
    errors: list[EntryValidationError] = field(default_factory=list)
    success: bool = True
