"""
Entry element type - query filtering, status and routing for entries.

Key behaviors:
- Entries join the base element query through `entries` and `entries_i18n`
- Status filters default to live; status is derived from the enabled flag
  and the publish window, never stored
- `editable` queries without a user match nothing
- Section filters need the "pro" capability, author filters need "users";
  without them the filters are skipped
- Requests only route to live entries in URL-enabled sections
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.domain.criteria import (
    CAPABILITY_PRO,
    CAPABILITY_USERS,
    DEFAULT_ORDER,
    DEFAULT_STATUS,
    CallerContext,
    Criteria,
    InvalidCriteriaError,
    define_criteria_attributes,
)
from src.domain.entities import Entry, Section
from src.domain.params import ParamSyntaxError, ParamValue, parse_date_param, parse_param
from src.domain.predicates import (
    Clause,
    ColumnCompare,
    Compare,
    InList,
    Join,
    OrderBy,
    Or,
    ParamBinder,
    PredicateSet,
    all_of,
)
from src.domain.state import (
    FILTERABLE_STATUSES,
    EntryStatus,
    resolve_status,
    status_condition,
    to_db_time,
)

from .models import RouteDecision
from .ports import ClockPort, PermissionGatePort

logger = logging.getLogger(__name__)

ELEMENT_TYPE_NAME = "Section Entries"

# --- Query shape ---

ENTRY_SELECTS = (
    "entries.section_id",
    "entries.author_id",
    "entries.post_date",
    "entries.expiry_date",
    "entries_i18n.title",
    "entries_i18n.slug",
)

ENTRIES_JOIN = Join("entries", "entries", "entries.id = elements.id")
ENTRIES_I18N_JOIN = Join("entries_i18n", "entries_i18n", "entries_i18n.entry_id = elements.id")
SECTIONS_JOIN = Join("sections", "sections", "entries.section_id = sections.id")
USERGROUPS_USERS_JOIN = Join(
    "usergroups_users", "usergroups_users", "usergroups_users.user_id = entries.author_id"
)
USERGROUPS_JOIN = Join("usergroups", "usergroups", "usergroups.id = usergroups_users.group_id")

DEFAULT_ORDERABLE_ATTRIBUTES: dict[str, str] = {
    "id": "elements.id",
    "dateCreated": "elements.date_created",
    "dateUpdated": "elements.date_updated",
    "sectionId": "entries.section_id",
    "authorId": "entries.author_id",
    "postDate": "entries.post_date",
    "expiryDate": "entries.expiry_date",
    "title": "entries_i18n.title",
    "slug": "entries_i18n.slug",
}

ENTRY_ROW_FIELDS = (
    "id",
    "section_id",
    "author_id",
    "post_date",
    "expiry_date",
    "enabled",
    "locale",
    "slug",
    "title",
    "uri",
)


# --- Configuration ---


@dataclass(frozen=True)
class EntryQueryConfig:
    """Entry query configuration from rules."""

    default_status: str | None = DEFAULT_STATUS
    default_order: str = DEFAULT_ORDER
    orderable_attributes: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_ORDERABLE_ATTRIBUTES)
    )


DEFAULT_CONFIG = EntryQueryConfig()


# --- Criteria parsing ---


def parse_status(value: str) -> EntryStatus:
    """Resolve a criteria status string. Raises InvalidCriteriaError."""
    try:
        status = EntryStatus(value.strip().lower())
    except ValueError:
        raise InvalidCriteriaError(
            "INVALID_STATUS", f"Unknown entry status: {value!r}", field="status"
        ) from None

    if status not in FILTERABLE_STATUSES:
        raise InvalidCriteriaError(
            "INVALID_STATUS", f"Entries cannot be filtered by status {value!r}", field="status"
        )
    return status


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def parse_order(order: str, orderable: Mapping[str, str]) -> tuple[OrderBy, ...]:
    """
    Parse "postDate desc, title" into order terms.
    Attribute names may be camelCase or snake_case.
    """
    terms: list[OrderBy] = []

    for part in order.split(","):
        tokens = part.split()
        if not tokens:
            continue
        if len(tokens) > 2:
            raise InvalidCriteriaError(
                "INVALID_ORDER", f"Malformed order term: {part.strip()!r}", field="order"
            )

        attribute = tokens[0]
        direction = tokens[1].lower() if len(tokens) == 2 else "asc"
        if direction not in ("asc", "desc"):
            raise InvalidCriteriaError(
                "INVALID_ORDER", f"Unknown sort direction: {tokens[1]!r}", field="order"
            )

        column = orderable.get(attribute) or orderable.get(_camel_case(attribute))
        if column is None:
            raise InvalidCriteriaError(
                "INVALID_ORDER", f"Cannot order entries by {attribute!r}", field="order"
            )
        terms.append(OrderBy(column, descending=direction == "desc"))

    return tuple(terms)


def _param(
    field_name: str,
    column: str,
    value: ParamValue,
    binder: ParamBinder,
    *,
    numeric: bool = False,
) -> Clause:
    try:
        return parse_param(column, value, binder, numeric=numeric)
    except ParamSyntaxError as e:
        raise InvalidCriteriaError("INVALID_PARAM", str(e), field=field_name) from e


def _section_handles(value: ParamValue | Section) -> ParamValue:
    if isinstance(value, Section):
        return value.handle
    return value


# --- Filter builder ---


class EntryCriteriaFilterBuilder:
    """Builds the entry part of an element query from criteria."""

    def __init__(
        self,
        clock: ClockPort,
        permissions: PermissionGatePort,
        config: EntryQueryConfig = DEFAULT_CONFIG,
    ) -> None:
        self._clock = clock
        self._permissions = permissions
        self._config = config

    def build(
        self, criteria: Criteria, caller: CallerContext, *, now: datetime | None = None
    ) -> PredicateSet:
        """
        Return the predicate set for the criteria.

        Raises InvalidCriteriaError for unknown statuses, orders or
        malformed parameter values. Returns PredicateSet.nothing() when
        the criteria can only match nothing (editable without a user).

        Status and order left unset on the criteria fall back to the
        configured defaults. `now` is read from the clock unless the caller
        already holds the reading for this pass.
        """
        if now is None:
            now = self._clock.now()
        binder = ParamBinder()
        joins: list[Join] = [ENTRIES_JOIN, ENTRIES_I18N_JOIN]
        clauses: list[Clause] = [
            ColumnCompare("entries_i18n.locale", "=", "elements_i18n.locale"),
        ]

        entry_status = self._criteria_value(criteria, "status", self._config.default_status)
        if entry_status is not None:
            status = parse_status(entry_status)
            clauses.append(status_condition(status, binder.bind(to_db_time(now))))

        if criteria.slug:
            clauses.append(_param("slug", "entries_i18n.slug", criteria.slug, binder))

        for field_name, op in (("after", ">="), ("before", "<")):
            value = getattr(criteria, field_name)
            if not value:
                continue
            try:
                clauses.append(parse_date_param("entries.post_date", op, value, binder))
            except ParamSyntaxError as e:
                raise InvalidCriteriaError("INVALID_DATE", str(e), field=field_name) from e

        if criteria.editable:
            editable = self._editable_clauses(caller, binder)
            if editable is None:
                logger.debug("Editable entry criteria without a user; matching nothing")
                return PredicateSet.nothing()
            clauses.extend(editable)

        if caller.has(CAPABILITY_PRO):
            if criteria.section_id:
                clauses.append(
                    _param(
                        "section_id", "entries.section_id", criteria.section_id, binder,
                        numeric=True,
                    )
                )
            if criteria.section:
                joins.append(SECTIONS_JOIN)
                clauses.append(
                    _param(
                        "section", "sections.handle", _section_handles(criteria.section), binder
                    )
                )
        elif criteria.section_id or criteria.section:
            logger.debug("Section criteria ignored: capability %r not enabled", CAPABILITY_PRO)

        if caller.has(CAPABILITY_USERS):
            if criteria.author_id:
                clauses.append(
                    _param(
                        "author_id", "entries.author_id", criteria.author_id, binder,
                        numeric=True,
                    )
                )
            if criteria.author_group_id or criteria.author_group:
                joins.append(USERGROUPS_USERS_JOIN)
                if criteria.author_group_id:
                    clauses.append(
                        _param(
                            "author_group_id", "usergroups_users.group_id",
                            criteria.author_group_id, binder, numeric=True,
                        )
                    )
                if criteria.author_group:
                    joins.append(USERGROUPS_JOIN)
                    clauses.append(
                        _param(
                            "author_group", "usergroups.handle", criteria.author_group, binder
                        )
                    )
        elif criteria.author_id or criteria.author_group_id or criteria.author_group:
            logger.debug("Author criteria ignored: capability %r not enabled", CAPABILITY_USERS)

        order = (
            self._criteria_value(criteria, "order", self._config.default_order)
            or self._config.default_order
        )
        return PredicateSet(
            selects=ENTRY_SELECTS,
            joins=tuple(joins),
            clauses=tuple(clauses),
            params=binder.params,
            order=parse_order(order, self._config.orderable_attributes),
        )

    @staticmethod
    def _criteria_value(criteria: Criteria, name: str, default: Any) -> Any:
        if name in criteria.model_fields_set:
            return getattr(criteria, name)
        return default

    def _editable_clauses(
        self, caller: CallerContext, binder: ParamBinder
    ) -> list[Clause] | None:
        user = caller.user
        if user is None:
            return None

        section_ids = self._permissions.editable_section_ids(user)
        clauses: list[Clause] = [
            InList("entries.section_id", binder.bind_many(section_ids)),
        ]

        # Without peer permission a section only contributes the user's own entries.
        no_peer: list[Clause] = []
        author_param: str | None = None
        for section_id in section_ids:
            if self._permissions.can_edit_peer_content(user, section_id):
                continue
            if author_param is None:
                author_param = binder.bind(user.id)
            no_peer.append(
                Or(
                    (
                        Compare("entries.section_id", "!=", binder.bind(section_id)),
                        Compare("entries.author_id", "=", author_param),
                    )
                )
            )

        if no_peer:
            clauses.append(all_of(*no_peer))
        return clauses


# --- Router ---


class EntryRouter:
    """Decides whether a request that matched an entry's URI renders it."""

    def __init__(self, clock: ClockPort) -> None:
        self._clock = clock

    def route_if_live(
        self, entry: Entry, section: Section, request_locale: str
    ) -> RouteDecision | None:
        if entry.section_id != section.id:
            raise ValueError(f"Entry {entry.id} does not belong to section {section.handle!r}")

        status = resolve_status(entry.enabled, entry.post_date, entry.expiry_date, self._clock.now())
        if status != EntryStatus.LIVE:
            logger.debug("No route for entry %s: status is %s", entry.id, status.value)
            return None

        if not section.has_urls or request_locale not in section.locales:
            logger.debug(
                "No route for entry %s: section %r has no URLs for locale %r",
                entry.id, section.handle, request_locale,
            )
            return None

        return RouteDecision(
            action="templates",
            template=section.template,
            variables={"entry": entry},
        )


# --- Row population ---


def populate_entry_model(row: Mapping[str, Any] | Sequence[Any]) -> Entry:
    """
    Build an Entry from a query result row.

    Accepts a mapping keyed by field name, or a sequence in
    ENTRY_ROW_FIELDS order. Raises pydantic.ValidationError for rows
    that do not describe a valid entry.
    """
    if not isinstance(row, Mapping):
        if len(row) != len(ENTRY_ROW_FIELDS):
            raise ValueError(
                f"Expected {len(ENTRY_ROW_FIELDS)} columns in entry row, got {len(row)}"
            )
        row = dict(zip(ENTRY_ROW_FIELDS, row, strict=True))
    return Entry.model_validate(dict(row))


# --- Element type ---


class EntryElementType:
    """The entries element type as seen by the element framework."""

    def __init__(
        self,
        clock: ClockPort,
        permissions: PermissionGatePort,
        config: EntryQueryConfig = DEFAULT_CONFIG,
    ) -> None:
        self._builder = EntryCriteriaFilterBuilder(clock, permissions, config)
        self._router = EntryRouter(clock)

    def get_name(self) -> str:
        return ELEMENT_TYPE_NAME

    def cp_edit_uri(self, entry: Entry, section: Section) -> str:
        return f"entries/{section.handle}/{entry.id}"

    def is_localizable(self) -> bool:
        return True

    def is_linkable(self) -> bool:
        return True

    def define_criteria_attributes(self) -> dict[str, dict[str, Any]]:
        return define_criteria_attributes()

    def modify_elements_query(self, criteria: Criteria, caller: CallerContext) -> PredicateSet:
        return self._builder.build(criteria, caller)

    def route_request_for_matched_element(
        self, entry: Entry, section: Section, request_locale: str
    ) -> RouteDecision | None:
        return self._router.route_if_live(entry, section, request_locale)

    def populate_element_model(self, row: Mapping[str, Any] | Sequence[Any]) -> Entry:
        return populate_entry_model(row)
