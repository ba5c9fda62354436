from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# --- Enums / Literals ---
Capability = Literal["pro", "users"]

# --- Users ---

class User(BaseModel):
    id: int
    username: str
    admin: bool = False
    # Role names are keys of rbac.roles in the rules file.
    roles: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)
    group_ids: list[int] = Field(default_factory=list)

class UserGroup(BaseModel):
    id: int
    handle: str
    name: str

# --- Sections ---

class Section(BaseModel):
    id: int
    handle: str
    name: str
    has_urls: bool = True
    template: str | None = None
    locales: frozenset[str] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)

# --- Entries ---

class Entry(BaseModel):
    id: int
    section_id: int
    author_id: int | None = None
    post_date: datetime
    expiry_date: datetime | None = None
    enabled: bool = True
    locale: str
    slug: str
    title: str
    uri: str | None = None
