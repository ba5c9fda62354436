"""
SQLite element query backend for entries.

Compiles PredicateSets into SELECT statements over the element tables and
populates Entry models from the rows.
"""

import logging
import re
import sqlite3
from datetime import UTC, datetime
from typing import Any

from src.components.entries import ENTRY_ROW_FIELDS, populate_entry_model
from src.domain.entities import Entry, Section, UserGroup
from src.domain.predicates import (
    And,
    Clause,
    ColumnCompare,
    ColumnFlag,
    Compare,
    InList,
    IsNull,
    Or,
    PredicateSet,
)
from src.domain.state import to_db_time

logger = logging.getLogger(__name__)

ENTRY_ELEMENT_TYPE = "Entry"

_QUALIFIED_COLUMN = re.compile(r"^[a-z_][a-z0-9_]*\.[a-z_][a-z0-9_]*$")

BASE_SELECTS = (
    "elements.id",
    "elements.enabled",
    "elements.date_created",
    "elements.date_updated",
    "elements_i18n.locale",
    "elements_i18n.uri",
)


def connect(db_path: str) -> sqlite3.Connection:
    """Open a connection with name-addressable rows and foreign keys enforced."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _column(name: str) -> str:
    if not _QUALIFIED_COLUMN.match(name):
        raise ValueError(f"Invalid column reference: {name!r}")
    return name


def compile_clause(clause: Clause) -> str:
    """Render a clause as SQL with named parameters."""
    if isinstance(clause, Compare):
        return f"{_column(clause.column)} {clause.op} :{clause.param}"

    if isinstance(clause, ColumnCompare):
        return f"{_column(clause.left)} {clause.op} {_column(clause.right)}"

    if isinstance(clause, IsNull):
        return f"{_column(clause.column)} IS {'NOT ' if clause.negated else ''}NULL"

    if isinstance(clause, ColumnFlag):
        return f"{_column(clause.column)} = {1 if clause.value else 0}"

    if isinstance(clause, InList):
        if not clause.params:
            return "1 = 1" if clause.negated else "0 = 1"
        placeholders = ", ".join(f":{p}" for p in clause.params)
        keyword = "NOT IN" if clause.negated else "IN"
        return f"{_column(clause.column)} {keyword} ({placeholders})"

    if isinstance(clause, And):
        return "(" + " AND ".join(compile_clause(c) for c in clause.clauses) + ")"

    if isinstance(clause, Or):
        return "(" + " OR ".join(compile_clause(c) for c in clause.clauses) + ")"

    raise TypeError(f"Unknown clause type: {type(clause)}")


def compile_query(
    predicates: PredicateSet,
    *,
    locale: str,
    limit: int | None = None,
    offset: int = 0,
) -> tuple[str, dict[str, Any]]:
    """Compile a predicate set into an entry SELECT and its parameters."""
    selects = [f"{_column(c)} AS {c.split('.')[1]}" for c in BASE_SELECTS + predicates.selects]

    lines = [
        "SELECT DISTINCT " + ", ".join(selects),
        "FROM elements",
        "JOIN elements_i18n ON elements_i18n.element_id = elements.id",
    ]
    for join in predicates.joins:
        lines.append(f"JOIN {join.table} {join.alias} ON {join.on}")

    where = ["elements.type = :_element_type", "elements_i18n.locale = :_locale"]
    where.extend(compile_clause(c) for c in predicates.clauses)
    lines.append("WHERE " + " AND ".join(where))

    params: dict[str, Any] = dict(predicates.params)
    params["_element_type"] = ENTRY_ELEMENT_TYPE
    params["_locale"] = locale

    if predicates.order:
        terms = [
            f"{_column(o.column)} {'DESC' if o.descending else 'ASC'}" for o in predicates.order
        ]
        lines.append("ORDER BY " + ", ".join(terms))

    if limit is not None:
        lines.append("LIMIT :_limit OFFSET :_offset")
        params["_limit"] = limit
        params["_offset"] = offset

    return "\n".join(lines), params


class SQLiteEntryRepo:
    def __init__(self, db_path: str, primary_locale: str = "en_us"):
        self.db_path = db_path
        self.primary_locale = primary_locale

    def find(
        self,
        predicates: PredicateSet,
        *,
        locale: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Entry]:
        if predicates.matches_nothing:
            return []

        sql, params = compile_query(
            predicates, locale=locale or self.primary_locale, limit=limit, offset=offset
        )
        logger.debug("Entry query: %s %r", sql, params)

        conn = connect(self.db_path)
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()

        return [populate_entry_model({k: row[k] for k in ENTRY_ROW_FIELDS}) for row in rows]

    def get_by_id(self, entry_id: int, *, locale: str | None = None) -> Entry | None:
        conn = connect(self.db_path)
        try:
            row = conn.execute(
                """
                SELECT elements.id AS id, entries.section_id AS section_id,
                       entries.author_id AS author_id, entries.post_date AS post_date,
                       entries.expiry_date AS expiry_date, elements.enabled AS enabled,
                       elements_i18n.locale AS locale, entries_i18n.slug AS slug,
                       entries_i18n.title AS title, elements_i18n.uri AS uri
                FROM elements
                JOIN elements_i18n ON elements_i18n.element_id = elements.id
                JOIN entries ON entries.id = elements.id
                JOIN entries_i18n ON entries_i18n.entry_id = elements.id
                WHERE elements.id = ?
                  AND elements.type = ?
                  AND elements_i18n.locale = ?
                  AND entries_i18n.locale = elements_i18n.locale
                """,
                (entry_id, ENTRY_ELEMENT_TYPE, locale or self.primary_locale),
            ).fetchone()
        finally:
            conn.close()

        if not row:
            return None
        return populate_entry_model(dict(row))

    def save(self, entry: Entry) -> Entry:
        now = to_db_time(datetime.now(UTC))
        conn = connect(self.db_path)
        try:
            conn.execute(
                """
                INSERT INTO elements (id, type, enabled, date_created, date_updated)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    enabled=excluded.enabled,
                    date_updated=excluded.date_updated
                """,
                (entry.id, ENTRY_ELEMENT_TYPE, int(entry.enabled), now, now),
            )
            conn.execute(
                """
                INSERT INTO elements_i18n (element_id, locale, uri) VALUES (?, ?, ?)
                ON CONFLICT(element_id, locale) DO UPDATE SET uri=excluded.uri
                """,
                (entry.id, entry.locale, entry.uri),
            )
            conn.execute(
                """
                INSERT INTO entries (id, section_id, author_id, post_date, expiry_date)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    section_id=excluded.section_id,
                    author_id=excluded.author_id,
                    post_date=excluded.post_date,
                    expiry_date=excluded.expiry_date
                """,
                (
                    entry.id,
                    entry.section_id,
                    entry.author_id,
                    to_db_time(entry.post_date),
                    to_db_time(entry.expiry_date) if entry.expiry_date else None,
                ),
            )
            conn.execute(
                """
                INSERT INTO entries_i18n (entry_id, locale, title, slug) VALUES (?, ?, ?, ?)
                ON CONFLICT(entry_id, locale) DO UPDATE SET
                    title=excluded.title,
                    slug=excluded.slug
                """,
                (entry.id, entry.locale, entry.title, entry.slug),
            )
            conn.commit()
            return entry
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


class SQLiteSectionRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _to_section(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Section:
        locale_rows = conn.execute(
            "SELECT locale FROM sections_i18n WHERE section_id = ?", (row["id"],)
        ).fetchall()
        return Section(
            id=row["id"],
            handle=row["handle"],
            name=row["name"],
            has_urls=bool(row["has_urls"]),
            template=row["template"],
            locales=frozenset(r["locale"] for r in locale_rows),
        )

    def get_by_id(self, section_id: int) -> Section | None:
        conn = connect(self.db_path)
        try:
            row = conn.execute("SELECT * FROM sections WHERE id = ?", (section_id,)).fetchone()
            if not row:
                return None
            return self._to_section(conn, row)
        finally:
            conn.close()

    def list_all(self) -> list[Section]:
        conn = connect(self.db_path)
        try:
            rows = conn.execute("SELECT * FROM sections ORDER BY id ASC").fetchall()
            return [self._to_section(conn, row) for row in rows]
        finally:
            conn.close()

    def save(self, section: Section) -> Section:
        conn = connect(self.db_path)
        try:
            conn.execute(
                """
                INSERT INTO sections (id, handle, name, has_urls, template)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    handle=excluded.handle,
                    name=excluded.name,
                    has_urls=excluded.has_urls,
                    template=excluded.template
                """,
                (section.id, section.handle, section.name, int(section.has_urls), section.template),
            )
            conn.execute("DELETE FROM sections_i18n WHERE section_id = ?", (section.id,))
            for locale in sorted(section.locales):
                conn.execute(
                    "INSERT INTO sections_i18n (section_id, locale) VALUES (?, ?)",
                    (section.id, locale),
                )
            conn.commit()
            return section
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


class SQLiteUserGroupRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def save(self, group: UserGroup) -> UserGroup:
        conn = connect(self.db_path)
        try:
            conn.execute(
                """
                INSERT INTO usergroups (id, handle, name) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET handle=excluded.handle, name=excluded.name
                """,
                (group.id, group.handle, group.name),
            )
            conn.commit()
            return group
        finally:
            conn.close()

    def add_member(self, group_id: int, user_id: int) -> None:
        conn = connect(self.db_path)
        try:
            conn.execute(
                "INSERT OR IGNORE INTO usergroups_users (group_id, user_id) VALUES (?, ?)",
                (group_id, user_id),
            )
            conn.commit()
        finally:
            conn.close()
