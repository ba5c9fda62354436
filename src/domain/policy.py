from collections.abc import Iterable

from src.domain.entities import User
from src.rules.models import Rules

EDIT_ENTRIES = "entries:edit:{section_id}"
EDIT_PEER_ENTRIES = "entries:edit_peer:{section_id}"


def permission_matches(granted: str, action: str) -> bool:
    """
    Check a granted permission string against an action.

    "*" matches everything; "entries:*" matches any action in the
    "entries" scope, including nested ones such as "entries:edit:3".
    """
    if granted == "*" or granted == action:
        return True
    if granted.endswith(":*"):
        return action.startswith(granted[:-1])
    return False


class PolicyEngine:
    def __init__(self, rules: Rules):
        self.rules = rules

    def granted_permissions(self, user: User) -> list[str]:
        granted = list(user.permissions)
        for role in user.roles:
            granted.extend(self.rules.rbac.roles.get(role, []))
        return granted

    def check_permission(self, user: User | None, action: str) -> bool:
        """
        Check if the user may perform the action.

        Order of precedence:
        1. Anonymous callers are denied
        2. Admins are allowed
        3. Direct user permissions and role permissions (RBAC)
        """
        if not user:
            return False

        if user.admin:
            return True

        return any(permission_matches(p, action) for p in self.granted_permissions(user))

    def can_edit_entries(self, user: User | None, section_id: int) -> bool:
        return self.check_permission(user, EDIT_ENTRIES.format(section_id=section_id))

    def can_edit_peer_entries(self, user: User | None, section_id: int) -> bool:
        return self.check_permission(user, EDIT_PEER_ENTRIES.format(section_id=section_id))

    def editable_section_ids(self, user: User | None, section_ids: Iterable[int]) -> list[int]:
        return [sid for sid in section_ids if self.can_edit_entries(user, sid)]
