from datetime import UTC, datetime
from enum import Enum

from src.domain.predicates import Clause, ColumnFlag, Compare, IsNull, Or, all_of

DB_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S+00:00"

ENABLED_COLUMN = "elements.enabled"
POST_DATE_COLUMN = "entries.post_date"
EXPIRY_DATE_COLUMN = "entries.expiry_date"


class EntryStatus(str, Enum):
    LIVE = "live"
    PENDING = "pending"
    EXPIRED = "expired"
    DISABLED = "disabled"


# Statuses a criteria object may ask for. Disabled entries are reached
# through the generic element layer, not through entry criteria.
FILTERABLE_STATUSES = frozenset({EntryStatus.LIVE, EntryStatus.PENDING, EntryStatus.EXPIRED})


def normalize_instant(value: datetime) -> datetime:
    """
    Bring an instant to the storage resolution: UTC, whole seconds.
    Naive datetimes are taken to be UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).replace(microsecond=0)


def to_db_time(value: datetime) -> str:
    """Format an instant the way the entries tables store it."""
    return normalize_instant(value).strftime(DB_TIME_FORMAT)


def resolve_status(
    enabled: bool,
    post_date: datetime,
    expiry_date: datetime | None,
    now: datetime,
) -> EntryStatus:
    """
    Classify an entry by its enabled flag and publish window.

    Order of precedence:
    1. Disabled (enabled flag off)
    2. Pending (post date still in the future, whatever the expiry date says)
    3. Expired (expiry date reached)
    4. Live
    """
    if not enabled:
        return EntryStatus.DISABLED

    now = normalize_instant(now)

    if normalize_instant(post_date) > now:
        return EntryStatus.PENDING

    if expiry_date is not None and normalize_instant(expiry_date) <= now:
        return EntryStatus.EXPIRED

    return EntryStatus.LIVE


def status_condition(status: EntryStatus, now_param: str) -> Clause:
    """
    Return the set-based form of a status for element queries.

    `now_param` names the bound parameter holding the current time in
    storage format. Every status built during one query must share it.
    """
    if status == EntryStatus.LIVE:
        return all_of(
            ColumnFlag(ENABLED_COLUMN, True),
            Compare(POST_DATE_COLUMN, "<=", now_param),
            Or((IsNull(EXPIRY_DATE_COLUMN), Compare(EXPIRY_DATE_COLUMN, ">", now_param))),
        )

    if status == EntryStatus.PENDING:
        return all_of(
            ColumnFlag(ENABLED_COLUMN, True),
            Compare(POST_DATE_COLUMN, ">", now_param),
        )

    if status == EntryStatus.EXPIRED:
        # Future post dates stay pending even past their expiry date.
        return all_of(
            ColumnFlag(ENABLED_COLUMN, True),
            Compare(POST_DATE_COLUMN, "<=", now_param),
            IsNull(EXPIRY_DATE_COLUMN, negated=True),
            Compare(EXPIRY_DATE_COLUMN, "<=", now_param),
        )

    if status == EntryStatus.DISABLED:
        return ColumnFlag(ENABLED_COLUMN, False)

    raise ValueError(f"No condition defined for status {status!r}")
