import logging
import os
import sys
from datetime import UTC, datetime, timedelta

# Add root to pythonpath
sys.path.append(os.getcwd())

from src.adapters.sqlite.entries import (  # noqa: E402
    SQLiteEntryRepo,
    SQLiteSectionRepo,
    SQLiteUserGroupRepo,
)
from src.adapters.sqlite.migrator import SQLiteMigrator  # noqa: E402
from src.domain.entities import Entry, Section, UserGroup  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("seed")


def seed() -> None:
    data_dir = os.environ.get("ENTRIES_DATA_DIR", "./data")
    os.makedirs(data_dir, exist_ok=True)

    db_path = f"{data_dir}/entries.db"
    logger.info("Seeding to %s", db_path)

    SQLiteMigrator(db_path, "migrations").run_migrations()

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
    groups.add_member(1, 10)

    now = datetime.now(UTC)
    entries = SQLiteEntryRepo(db_path)
    samples = [
        Entry(id=100, section_id=1, author_id=10, post_date=now - timedelta(days=2),
              locale="en_us", slug="hello-world", title="Hello World", uri="news/hello-world"),
        Entry(id=101, section_id=1, author_id=11, post_date=now + timedelta(days=3),
              locale="en_us", slug="coming-soon", title="Coming Soon", uri="news/coming-soon"),
        Entry(id=102, section_id=1, author_id=10, post_date=now - timedelta(days=30),
              expiry_date=now - timedelta(days=1), locale="en_us", slug="old-news",
              title="Old News", uri="news/old-news"),
        Entry(id=103, section_id=2, author_id=11, post_date=now - timedelta(days=5),
              locale="en_us", slug="about", title="About"),
    ]
    for entry in samples:
        entries.save(entry)

    logger.info("Seeded %d sections and %d entries", 2, len(samples))


if __name__ == "__main__":
    seed()
