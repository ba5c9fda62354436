import pytest

from src.adapters.permissions import PolicyPermissionGate
from src.domain.entities import Section, User
from src.domain.policy import PolicyEngine, permission_matches


class StaticSectionRepo:
    def __init__(self, sections: list[Section]) -> None:
        self._sections = {s.id: s for s in sections}

    def get_by_id(self, section_id: int) -> Section | None:
        return self._sections.get(section_id)

    def list_all(self) -> list[Section]:
        return list(self._sections.values())


@pytest.fixture
def engine(rules):
    return PolicyEngine(rules)


@pytest.fixture
def gate(engine):
    sections = StaticSectionRepo(
        [
            Section(id=1, handle="news", name="News", locales=frozenset({"en_us"})),
            Section(id=2, handle="pages", name="Pages", locales=frozenset({"en_us"})),
        ]
    )
    return PolicyPermissionGate(engine, sections)


@pytest.mark.parametrize(
    ("granted", "action", "expected"),
    [
        ("*", "entries:edit:1", True),
        ("entries:*", "entries:edit:1", True),
        ("entries:*", "entries:edit_peer:7", True),
        ("entries:edit:1", "entries:edit:1", True),
        ("entries:edit:1", "entries:edit:12", False),
        ("entries:*", "sections:view", False),
        ("entries:edit:*", "entries:edit_peer:1", False),
    ],
)
def test_permission_matches(granted, action, expected):
    assert permission_matches(granted, action) is expected


def test_anonymous_denied(engine):
    assert engine.check_permission(None, "entries:edit:1") is False


def test_admin_flag_allows_everything(engine):
    user = User(id=1, username="root", admin=True)
    assert engine.check_permission(user, "anything:really") is True


def test_admin_role_has_global_wildcard(engine):
    user = User(id=2, username="ops", roles=["admin"])
    assert engine.can_edit_peer_entries(user, 5) is True


def test_publisher_role_edits_any_section(engine):
    user = User(id=3, username="pub", roles=["publisher"])
    assert engine.can_edit_entries(user, 1) is True
    assert engine.can_edit_peer_entries(user, 2) is True


def test_author_role_needs_direct_grants(engine):
    user = User(id=4, username="writer", roles=["author"])
    assert engine.can_edit_entries(user, 1) is False

    granted = user.model_copy(update={"permissions": ["entries:edit:1"]})
    assert engine.can_edit_entries(granted, 1) is True
    assert engine.can_edit_peer_entries(granted, 1) is False


def test_viewer_role_grants_nothing(engine):
    user = User(id=5, username="reader", roles=["viewer"])
    assert engine.granted_permissions(user) == []


def test_editable_section_ids_filters_in_order(engine):
    user = User(id=6, username="writer", permissions=["entries:edit:3", "entries:edit:1"])
    assert engine.editable_section_ids(user, [1, 2, 3]) == [1, 3]


class TestPolicyPermissionGate:
    def test_editable_sections_come_from_repo(self, gate):
        user = User(id=7, username="writer", permissions=["entries:edit:2"])
        assert gate.editable_section_ids(user) == [2]

    def test_peer_content(self, gate):
        user = User(id=8, username="editor", permissions=["entries:edit_peer:1"])
        assert gate.can_edit_peer_content(user, 1) is True
        assert gate.can_edit_peer_content(user, 2) is False

    def test_admin_edits_every_section(self, gate):
        user = User(id=9, username="root", admin=True)
        assert gate.editable_section_ids(user) == [1, 2]


def test_role_defined_only_in_rules(rules):
    custom = rules.model_copy(
        update={
            "rbac": rules.rbac.model_copy(
                update={"roles": {**rules.rbac.roles, "news_desk": ["entries:edit:1"]}}
            )
        }
    )
    user = User(id=13, username="desk", roles=["news_desk"])
    engine = PolicyEngine(custom)

    assert engine.can_edit_entries(user, 1) is True
    assert engine.can_edit_entries(user, 2) is False


def test_role_missing_from_rules_grants_nothing(engine):
    user = User(id=14, username="ghost", roles=["nonexistent"])
    assert engine.granted_permissions(user) == []
