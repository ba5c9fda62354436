"""
Entries component port definitions - protocols for dependencies.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.domain.entities import Entry, Section, User
from src.domain.predicates import PredicateSet


class ClockPort(Protocol):
    """Protocol for time operations."""

    def now(self) -> datetime:
        """Return current UTC time, at storage resolution."""
        ...


class PermissionGatePort(Protocol):
    """Protocol for section-scoped entry permissions."""

    def editable_section_ids(self, user: User) -> list[int]:
        """Return the ids of sections whose entries the user may edit."""
        ...

    def can_edit_peer_content(self, user: User, section_id: int) -> bool:
        """Check if the user may edit entries other users wrote in a section."""
        ...


class EntryQueryPort(Protocol):
    """Protocol for the element query backend that runs predicate sets."""

    def find(
        self,
        predicates: PredicateSet,
        *,
        locale: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Entry]:
        """Return entries matching the predicate set."""
        ...

    def get_by_id(self, entry_id: int, *, locale: str | None = None) -> Entry | None:
        """Retrieve an entry by ID, whatever its status."""
        ...


class SectionRepoPort(Protocol):
    """Protocol for section lookups."""

    def get_by_id(self, section_id: int) -> Section | None:
        """Retrieve a section by ID."""
        ...

    def list_all(self) -> list[Section]:
        """List all sections."""
        ...
