"""
Tests for the Entries API.

Runs the router against a seeded SQLite database with a frozen clock.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.sqlite.entries import SQLiteEntryRepo, SQLiteSectionRepo
from src.api.deps import (
    get_clock,
    get_current_user,
    get_entry_repo,
    get_rules,
    get_section_repo,
)
from src.api.routes.entries import router
from src.domain.entities import Entry, User


class TickingClock:
    """Clock that moves forward one second on every read."""

    def __init__(self, start: datetime) -> None:
        self._next = start
        self.reads = 0

    def now(self) -> datetime:
        current = self._next
        self._next = current + timedelta(seconds=1)
        self.reads += 1
        return current


# --- Test Fixtures ---


@pytest.fixture
def current_user() -> dict[str, User | None]:
    return {"user": None}


@pytest.fixture
def app(seeded_db, rules, clock, current_user) -> FastAPI:
    test_app = FastAPI()
    test_app.include_router(router, prefix="/api/entries")

    test_app.dependency_overrides[get_rules] = lambda: rules
    test_app.dependency_overrides[get_clock] = lambda: clock
    test_app.dependency_overrides[get_entry_repo] = lambda: SQLiteEntryRepo(seeded_db)
    test_app.dependency_overrides[get_section_repo] = lambda: SQLiteSectionRepo(seeded_db)
    test_app.dependency_overrides[get_current_user] = lambda: current_user["user"]

    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def _ids(response) -> list[int]:
    return [item["id"] for item in response.json()]


# --- List Entries ---


class TestListEntries:
    def test_default_lists_live_entries(self, client: TestClient) -> None:
        response = client.get("/api/entries")

        assert response.status_code == 200
        data = response.json()
        assert [item["id"] for item in data] == [101, 104]
        assert {item["status"] for item in data} == {"live"}

    def test_status_filter(self, client: TestClient) -> None:
        response = client.get("/api/entries", params={"status": "pending"})

        assert response.status_code == 200
        assert set(_ids(response)) == {102, 106}
        assert {item["status"] for item in response.json()} == {"pending"}

    def test_any_status_reports_derived_statuses(self, client: TestClient) -> None:
        response = client.get("/api/entries", params={"status": "any", "order": "id asc"})

        assert response.status_code == 200
        statuses = {item["id"]: item["status"] for item in response.json()}
        assert statuses == {
            101: "live",
            102: "pending",
            103: "expired",
            104: "live",
            105: "disabled",
            106: "pending",
        }

    def test_unknown_status_is_bad_request(self, client: TestClient) -> None:
        response = client.get("/api/entries", params={"status": "archived"})

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail[0]["code"] == "INVALID_STATUS"
        assert detail[0]["field"] == "status"

    def test_disabled_status_is_bad_request(self, client: TestClient) -> None:
        response = client.get("/api/entries", params={"status": "disabled"})
        assert response.status_code == 400

    def test_invalid_order_is_bad_request(self, client: TestClient) -> None:
        response = client.get("/api/entries", params={"order": "password desc"})

        assert response.status_code == 400
        assert response.json()["detail"][0]["code"] == "INVALID_ORDER"

    def test_invalid_param_is_bad_request(self, client: TestClient) -> None:
        response = client.get("/api/entries", params={"section_id": "news"})

        assert response.status_code == 400
        assert response.json()["detail"][0]["code"] == "INVALID_PARAM"

    def test_section_and_slug_filters(self, client: TestClient) -> None:
        assert _ids(client.get("/api/entries", params={"section": "pages"})) == [104]
        assert _ids(client.get("/api/entries", params={"slug": "hello*"})) == [101]

    def test_author_group_filter(self, client: TestClient) -> None:
        response = client.get("/api/entries", params={"author_group": "editors"})
        assert _ids(response) == [101]

    def test_date_range(self, client: TestClient) -> None:
        response = client.get(
            "/api/entries",
            params={"after": "2024-06-13T00:00:00+00:00", "before": "2024-06-14T00:00:00+00:00"},
        )
        assert _ids(response) == [104]

    def test_locale(self, client: TestClient) -> None:
        response = client.get("/api/entries", params={"locale": "de"})

        assert response.status_code == 200
        assert [(item["id"], item["title"]) for item in response.json()] == [(101, "Hallo Welt")]

    def test_pagination(self, client: TestClient) -> None:
        response = client.get(
            "/api/entries", params={"status": "any", "order": "id asc", "limit": 2, "offset": 2}
        )
        assert _ids(response) == [103, 104]

    def test_limit_bounds(self, client: TestClient) -> None:
        assert client.get("/api/entries", params={"limit": 0}).status_code == 422
        assert client.get("/api/entries", params={"limit": 501}).status_code == 422

    def test_rules_default_status(self, app: FastAPI, client: TestClient, rules) -> None:
        expired_default = rules.model_copy(
            update={"entries": rules.entries.model_copy(update={"default_status": "expired"})}
        )
        app.dependency_overrides[get_rules] = lambda: expired_default

        assert _ids(client.get("/api/entries")) == [103]
        assert _ids(client.get("/api/entries", params={"status": "live"})) == [101, 104]


class TestEditableEntries:
    def test_anonymous_editable_is_empty(self, client: TestClient) -> None:
        response = client.get("/api/entries", params={"editable": "true"})

        assert response.status_code == 200
        assert response.json() == []

    def test_author_sees_own_entries(self, client: TestClient, current_user) -> None:
        current_user["user"] = User(id=10, username="writer", permissions=["entries:edit:1"])

        response = client.get("/api/entries", params={"editable": "true", "status": "any"})

        assert response.status_code == 200
        assert set(_ids(response)) == {101, 103}

    def test_admin_sees_all_sections(self, client: TestClient, current_user) -> None:
        current_user["user"] = User(id=1, username="root", admin=True)

        response = client.get("/api/entries", params={"editable": "true"})
        assert _ids(response) == [101, 104]


# --- Route Entry ---


class TestRouteEntry:
    def test_live_entry_routes_to_section_template(self, client: TestClient) -> None:
        response = client.get("/api/entries/101/route")

        assert response.status_code == 200
        assert response.json() == {
            "action": "templates",
            "template": "news/_entry",
            "entry_id": 101,
        }

    def test_other_enabled_locale_routes(self, client: TestClient) -> None:
        response = client.get("/api/entries/101/route", params={"locale": "de"})
        assert response.status_code == 200

    @pytest.mark.parametrize("entry_id", [102, 103, 105, 106])
    def test_non_live_entries_do_not_route(self, client: TestClient, entry_id: int) -> None:
        response = client.get(f"/api/entries/{entry_id}/route")
        assert response.status_code == 404

    def test_section_without_urls_does_not_route(self, client: TestClient) -> None:
        response = client.get("/api/entries/104/route")
        assert response.status_code == 404

    def test_missing_entry(self, client: TestClient) -> None:
        response = client.get("/api/entries/999/route")

        assert response.status_code == 404
        assert response.json()["detail"] == "Entry not found"


# --- Clock consistency ---


class TestStatusLabels:
    def test_labels_use_the_filter_clock_reading(
        self, app: FastAPI, client: TestClient, seeded_db: str, clock
    ) -> None:
        start = clock.now()
        SQLiteEntryRepo(seeded_db).save(
            Entry(
                id=107, section_id=1, author_id=10, post_date=start - timedelta(days=1),
                expiry_date=start + timedelta(seconds=1), locale="en_us",
                slug="last-second", title="Last Second",
            )
        )
        ticking = TickingClock(start)
        app.dependency_overrides[get_clock] = lambda: ticking

        response = client.get("/api/entries", params={"slug": "last-second"})

        assert response.status_code == 200
        assert [(item["id"], item["status"]) for item in response.json()] == [(107, "live")]
        assert ticking.reads == 1
