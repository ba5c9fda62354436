"""
Schema migrations for the entries database.

Each `NNNN_name.sql` file in the migrations directory holds an `-- Up`
script, optionally followed by a `-- Down` script. Files apply in name
order and are recorded in `schema_migrations` so each runs once.
"""

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

DOWN_MARKER = "-- Down"


class SQLiteMigrator:
    def __init__(self, db_path: str, migrations_dir: str):
        self.db_path = db_path
        self.migrations_dir = Path(migrations_dir)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                filename TEXT PRIMARY KEY,
                applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        return conn

    def applied(self) -> list[str]:
        """Filenames already recorded, in the order they were applied."""
        conn = self._connect()
        try:
            rows = conn.execute("SELECT filename FROM schema_migrations ORDER BY rowid").fetchall()
        finally:
            conn.close()
        return [filename for (filename,) in rows]

    def pending(self) -> list[Path]:
        """Migration files on disk that have not been applied yet."""
        done = set(self.applied())
        return [p for p in sorted(self.migrations_dir.glob("*.sql")) if p.name not in done]

    def run_migrations(self) -> list[str]:
        """
        Apply every pending migration.
        Returns the filenames applied by this call.
        Raises RuntimeError naming the file when a script fails.
        """
        applied_now: list[str] = []
        conn = self._connect()
        try:
            for path in self.pending():
                logger.info("Applying migration %s", path.name)
                up_script = path.read_text().split(DOWN_MARKER, 1)[0]
                try:
                    conn.executescript(up_script)
                    conn.execute(
                        "INSERT INTO schema_migrations (filename) VALUES (?)", (path.name,)
                    )
                    conn.commit()
                except sqlite3.Error as e:
                    conn.rollback()
                    raise RuntimeError(f"Migration {path.name} failed: {e}") from e
                applied_now.append(path.name)
        finally:
            conn.close()

        if not applied_now:
            logger.debug("No pending migrations in %s", self.migrations_dir)
        return applied_now
