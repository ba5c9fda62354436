from src.components.entries.ports import SectionRepoPort
from src.domain.entities import User
from src.domain.policy import PolicyEngine


class PolicyPermissionGate:
    """Permission gate backed by the rules policy engine."""

    def __init__(self, policy: PolicyEngine, sections: SectionRepoPort) -> None:
        self._policy = policy
        self._sections = sections

    def editable_section_ids(self, user: User) -> list[int]:
        section_ids = [s.id for s in self._sections.list_all()]
        return self._policy.editable_section_ids(user, section_ids)

    def can_edit_peer_content(self, user: User, section_id: int) -> bool:
        return self._policy.can_edit_peer_entries(user, section_id)
