from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.domain.entities import Capability, Section, User
from src.domain.state import EntryStatus

DEFAULT_STATUS = EntryStatus.LIVE.value
DEFAULT_ORDER = "postDate desc"

CAPABILITY_PRO: Capability = "pro"
CAPABILITY_USERS: Capability = "users"

IdParam = int | str | list[int | str]
HandleParam = str | list[str]


class InvalidCriteriaError(ValueError):
    """Criteria a query cannot honor, such as an unknown status."""

    def __init__(self, code: str, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.field = field


class Criteria(BaseModel):
    """Entry criteria attributes. Frozen once handed to a query."""

    slug: HandleParam | None = None
    section_id: IdParam | None = None
    author_id: IdParam | None = None
    author_group_id: IdParam | None = None
    author_group: HandleParam | None = None
    section: HandleParam | Section | None = None
    editable: bool = False
    after: datetime | None = None
    before: datetime | None = None
    status: str | None = DEFAULT_STATUS
    order: str | None = DEFAULT_ORDER

    model_config = ConfigDict(frozen=True)


class CallerContext(BaseModel):
    """Who is asking, and which optional modules are switched on."""

    user: User | None = None
    capabilities: frozenset[Capability] = Field(default_factory=frozenset)
    locale: str | None = None

    model_config = ConfigDict(frozen=True)

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities


def define_criteria_attributes() -> dict[str, dict[str, Any]]:
    """
    Describe the custom criteria attributes entries add to element queries:
    attribute name -> {"type": annotation, "default": default}.
    """
    return {
        name: {"type": info.annotation, "default": info.default}
        for name, info in Criteria.model_fields.items()
    }
