from pydantic import BaseModel, Field

from src.domain.entities import Capability


class ProjectRules(BaseModel):
    slug: str
    rules_version: str
    primary_locale: str = "en_us"

class CapabilityRules(BaseModel):
    enabled: list[Capability] = Field(default_factory=list)

class EntryRules(BaseModel):
    default_status: str | None = "live"
    default_order: str = "postDate desc"
    orderable_attributes: dict[str, str]

class RbacRules(BaseModel):
    roles: dict[str, list[str]]

class Rules(BaseModel):
    project: ProjectRules
    capabilities: CapabilityRules
    entries: EntryRules
    rbac: RbacRules
