"""Entries component - entry element type queries, status and routing."""

from ._impl import (
    DEFAULT_ORDERABLE_ATTRIBUTES,
    ELEMENT_TYPE_NAME,
    ENTRY_ROW_FIELDS,
    EntryCriteriaFilterBuilder,
    EntryElementType,
    EntryQueryConfig,
    EntryRouter,
    parse_order,
    parse_status,
    populate_entry_model,
)
from .component import run, run_build, run_query, run_route
from .models import (
    BuildQueryInput,
    BuildQueryOutput,
    EntryValidationError,
    QueryEntriesInput,
    QueryEntriesOutput,
    RouteDecision,
    RouteEntryInput,
    RouteEntryOutput,
)
from .ports import ClockPort, EntryQueryPort, PermissionGatePort, SectionRepoPort

__all__ = [
    # Entry points
    "run",
    "run_build",
    "run_query",
    "run_route",
    # Input models
    "BuildQueryInput",
    "QueryEntriesInput",
    "RouteEntryInput",
    # Output models
    "BuildQueryOutput",
    "EntryValidationError",
    "QueryEntriesOutput",
    "RouteDecision",
    "RouteEntryOutput",
    # Ports
    "ClockPort",
    "EntryQueryPort",
    "PermissionGatePort",
    "SectionRepoPort",
    # _impl re-exports
    "DEFAULT_ORDERABLE_ATTRIBUTES",
    "ELEMENT_TYPE_NAME",
    "ENTRY_ROW_FIELDS",
    "EntryCriteriaFilterBuilder",
    "EntryElementType",
    "EntryQueryConfig",
    "EntryRouter",
    "parse_order",
    "parse_status",
    "populate_entry_model",
]
