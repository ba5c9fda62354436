"""
Entries Routes.

Element queries over entries and routing of matched entry URIs.

Key behaviors:
- Query parameters map onto entry criteria
- status defaults to the rules default; status=any lifts the restriction
- Invalid criteria return 400 with the validation errors
- Entries without a route return 404
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from src.adapters.clock import SystemClock
from src.adapters.permissions import PolicyPermissionGate
from src.adapters.sqlite.entries import SQLiteEntryRepo, SQLiteSectionRepo
from src.api.deps import (
    get_caller,
    get_clock,
    get_entry_repo,
    get_permission_gate,
    get_rules,
    get_section_repo,
)
from src.components.entries import (
    EntryValidationError,
    QueryEntriesInput,
    RouteEntryInput,
    run_query,
    run_route,
)
from src.domain.criteria import CallerContext, Criteria
from src.domain.entities import Entry
from src.domain.state import resolve_status
from src.rules.models import Rules

router = APIRouter()

ANY_STATUS = "any"


# --- Schemas ---


class EntryResponse(BaseModel):
    id: int
    section_id: int
    author_id: int | None
    post_date: datetime
    expiry_date: datetime | None
    enabled: bool
    locale: str
    slug: str
    title: str
    uri: str | None
    status: str


class RouteResponse(BaseModel):
    action: str
    template: str | None
    entry_id: int


def _to_response(entry: Entry, now: datetime) -> EntryResponse:
    entry_status = resolve_status(entry.enabled, entry.post_date, entry.expiry_date, now)
    return EntryResponse(**entry.model_dump(), status=entry_status.value)


def _error_detail(errors: list[EntryValidationError]) -> list[dict[str, str | None]]:
    return [{"code": e.code, "message": e.message, "field": e.field} for e in errors]


# --- Endpoints ---


@router.get("", response_model=list[EntryResponse])
def list_entries(
    slug: str | None = None,
    section_id: str | None = None,
    section: str | None = None,
    author_id: str | None = None,
    author_group_id: str | None = None,
    author_group: str | None = None,
    editable: bool = False,
    after: datetime | None = None,
    before: datetime | None = None,
    entry_status: str | None = Query(None, alias="status"),
    order: str | None = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    caller: CallerContext = Depends(get_caller),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
    permissions: PolicyPermissionGate = Depends(get_permission_gate),
    repo: SQLiteEntryRepo = Depends(get_entry_repo),
) -> list[EntryResponse]:
    """List entries matching the criteria."""
    # Unset status and order fall back to the rules defaults in the component.
    overrides: dict[str, str | None] = {}
    if entry_status is not None:
        overrides["status"] = None if entry_status == ANY_STATUS else entry_status
    if order:
        overrides["order"] = order

    criteria = Criteria(
        slug=slug,
        section_id=section_id,
        section=section,
        author_id=author_id,
        author_group_id=author_group_id,
        author_group=author_group,
        editable=editable,
        after=after,
        before=before,
        **overrides,
    )

    result = run_query(
        QueryEntriesInput(criteria=criteria, caller=caller, limit=limit, offset=offset),
        clock=clock,
        permissions=permissions,
        query=repo,
        rules=rules,
    )
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_error_detail(result.errors),
        )

    return [_to_response(e, result.now) for e in result.entries]


@router.get("/{entry_id}/route", response_model=RouteResponse)
def route_entry(
    entry_id: int,
    caller: CallerContext = Depends(get_caller),
    clock: SystemClock = Depends(get_clock),
    repo: SQLiteEntryRepo = Depends(get_entry_repo),
    sections: SQLiteSectionRepo = Depends(get_section_repo),
) -> RouteResponse:
    """Return the template route for an entry, 404 when it has none."""
    entry = repo.get_by_id(entry_id, locale=caller.locale)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")

    result = run_route(
        RouteEntryInput(entry=entry, locale=caller.locale or entry.locale),
        clock=clock,
        sections=sections,
    )
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=_error_detail(result.errors),
        )
    if result.decision is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No route")

    return RouteResponse(
        action=result.decision.action,
        template=result.decision.template,
        entry_id=entry.id,
    )
