from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from src.adapters.clock import FrozenClock
from src.adapters.sqlite.entries import SQLiteEntryRepo, SQLiteSectionRepo, SQLiteUserGroupRepo
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.domain.entities import Entry, Section, UserGroup
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent
FROZEN_NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture
def rules() -> Rules:
    """Load the REAL rules from the project root."""
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(FROZEN_NOW)


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Temporary SQLite database with all migrations applied."""
    path = str(tmp_path / "entries.db")
    SQLiteMigrator(path, str(PROJECT_ROOT / "migrations")).run_migrations()
    return path


@pytest.fixture
def seeded_db(db_path: str) -> str:
    """
    Entries database around FROZEN_NOW.

    Sections: 1 news (URLs, en_us + de), 2 pages (no URLs).
    Groups: 1 editors {10}, 2 writers {10, 11}.
    Entries (en_us):
      101 news  author 10  live     hello-world
      102 news  author 11  pending  coming-soon
      103 news  author 10  expired  old-news
      104 pages author 11  live     about
      105 news  author 12  disabled draft
      106 news  author 11  pending  odd-window (future post, past expiry)
    Entry 101 also has a de translation.
    """
    sections = SQLiteSectionRepo(db_path)
    sections.save(
        Section(
            id=1, handle="news", name="News", has_urls=True,
            template="news/_entry", locales=frozenset({"en_us", "de"}),
        )
    )
    sections.save(
        Section(id=2, handle="pages", name="Pages", has_urls=False, locales=frozenset({"en_us"}))
    )

    groups = SQLiteUserGroupRepo(db_path)
    groups.save(UserGroup(id=1, handle="editors", name="Editors"))
    groups.save(UserGroup(id=2, handle="writers", name="Writers"))
    groups.add_member(1, 10)
    groups.add_member(2, 10)
    groups.add_member(2, 11)

    day = timedelta(days=1)
    entries = SQLiteEntryRepo(db_path)
    for entry in [
        Entry(id=101, section_id=1, author_id=10, post_date=FROZEN_NOW - day,
              locale="en_us", slug="hello-world", title="Hello World", uri="news/hello-world"),
        Entry(id=101, section_id=1, author_id=10, post_date=FROZEN_NOW - day,
              locale="de", slug="hallo-welt", title="Hallo Welt", uri="news/hallo-welt"),
        Entry(id=102, section_id=1, author_id=11, post_date=FROZEN_NOW + day,
              locale="en_us", slug="coming-soon", title="Coming Soon"),
        Entry(id=103, section_id=1, author_id=10, post_date=FROZEN_NOW - 10 * day,
              expiry_date=FROZEN_NOW - day, locale="en_us", slug="old-news", title="Old News"),
        Entry(id=104, section_id=2, author_id=11, post_date=FROZEN_NOW - 2 * day,
              locale="en_us", slug="about", title="About"),
        Entry(id=105, section_id=1, author_id=12, post_date=FROZEN_NOW - 3 * day,
              enabled=False, locale="en_us", slug="draft", title="Draft"),
        Entry(id=106, section_id=1, author_id=11, post_date=FROZEN_NOW + day,
              expiry_date=FROZEN_NOW - day, locale="en_us", slug="odd-window",
              title="Odd Window"),
    ]:
        entries.save(entry)

    return db_path
