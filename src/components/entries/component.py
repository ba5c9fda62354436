"""
Entries component - entry element queries and request routing.

Invariants:
- I1: Status is derived from enabled flag, post date and expiry date
- I2: One clock reading per build or routing call
- I3: Unknown statuses fail; capability-gated filters never do
- I4: Only live entries in URL-enabled sections for the request locale route
"""

from __future__ import annotations

from src.domain.criteria import InvalidCriteriaError
from src.rules.models import Rules

from ._impl import (
    EntryCriteriaFilterBuilder,
    EntryQueryConfig,
    EntryRouter,
)
from .models import (
    BuildQueryInput,
    BuildQueryOutput,
    EntryValidationError,
    QueryEntriesInput,
    QueryEntriesOutput,
    RouteEntryInput,
    RouteEntryOutput,
)
from .ports import ClockPort, EntryQueryPort, PermissionGatePort, SectionRepoPort


def _build_config(rules: Rules | None) -> EntryQueryConfig:
    """Build entry query config from rules."""
    if rules is None:
        return EntryQueryConfig()

    return EntryQueryConfig(
        default_status=rules.entries.default_status,
        default_order=rules.entries.default_order,
        orderable_attributes=dict(rules.entries.orderable_attributes),
    )


def _convert_error(error: InvalidCriteriaError) -> EntryValidationError:
    return EntryValidationError(code=error.code, message=error.message, field=error.field)


# --- Component Entry Points ---


def run_build(
    inp: BuildQueryInput,
    *,
    clock: ClockPort,
    permissions: PermissionGatePort,
    rules: Rules | None = None,
) -> BuildQueryOutput:
    """
    Build the predicate set for entry criteria.

    Args:
        inp: Criteria and caller context.
        clock: Clock port; read once.
        permissions: Permission gate for editable queries.
        rules: Optional rules for status and ordering defaults.

    Returns:
        BuildQueryOutput with the predicate set or errors.
    """
    builder = EntryCriteriaFilterBuilder(clock, permissions, _build_config(rules))
    now = clock.now()

    try:
        predicates = builder.build(inp.criteria, inp.caller, now=now)
    except InvalidCriteriaError as e:
        return BuildQueryOutput(
            predicates=None, now=now, errors=[_convert_error(e)], success=False
        )

    return BuildQueryOutput(predicates=predicates, now=now)


def run_query(
    inp: QueryEntriesInput,
    *,
    clock: ClockPort,
    permissions: PermissionGatePort,
    query: EntryQueryPort,
    rules: Rules | None = None,
) -> QueryEntriesOutput:
    """
    Build the predicate set for entry criteria and run it.

    Args:
        inp: Criteria, caller context and paging.
        clock: Clock port; read once.
        permissions: Permission gate for editable queries.
        query: Element query backend.
        rules: Optional rules for status and ordering defaults.

    Returns:
        QueryEntriesOutput with matched entries or errors.
    """
    built = run_build(
        BuildQueryInput(criteria=inp.criteria, caller=inp.caller),
        clock=clock,
        permissions=permissions,
        rules=rules,
    )
    if built.predicates is None:
        return QueryEntriesOutput(entries=(), now=built.now, errors=built.errors, success=False)

    if built.predicates.matches_nothing:
        return QueryEntriesOutput(entries=(), now=built.now)

    entries = query.find(
        built.predicates,
        locale=inp.caller.locale,
        limit=inp.limit,
        offset=inp.offset,
    )
    return QueryEntriesOutput(entries=tuple(entries), now=built.now)


def run_route(
    inp: RouteEntryInput,
    *,
    clock: ClockPort,
    sections: SectionRepoPort,
) -> RouteEntryOutput:
    """
    Route a request whose URI matched an entry.

    Args:
        inp: The matched entry and the request locale.
        clock: Clock port; read once.
        sections: Section repository.

    Returns:
        RouteEntryOutput with a decision, None when there is no route.
    """
    section = sections.get_by_id(inp.entry.section_id)
    if section is None:
        return RouteEntryOutput(
            decision=None,
            errors=[
                EntryValidationError(
                    code="SECTION_NOT_FOUND",
                    message=f"Section {inp.entry.section_id} not found",
                    field="section_id",
                )
            ],
            success=False,
        )

    decision = EntryRouter(clock).route_if_live(inp.entry, section, inp.locale)
    return RouteEntryOutput(decision=decision)


def run(
    inp: BuildQueryInput | QueryEntriesInput | RouteEntryInput,
    **kwargs: object,
) -> BuildQueryOutput | QueryEntriesOutput | RouteEntryOutput:
    """Main dispatcher - routes to appropriate handler based on input type."""
    if isinstance(inp, BuildQueryInput):
        return run_build(inp, **kwargs)  # type: ignore[arg-type]
    elif isinstance(inp, QueryEntriesInput):
        return run_query(inp, **kwargs)  # type: ignore[arg-type]
    elif isinstance(inp, RouteEntryInput):
        return run_route(inp, **kwargs)  # type: ignore[arg-type]
    else:
        raise TypeError(f"Unknown input type: {type(inp)}")
