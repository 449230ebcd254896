"""Database connection, DDL, and the parameterized store for wikt-store."""

from __future__ import annotations

import logging
import re
import sqlite3
from collections.abc import Generator, Iterable, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from wikt_store.exceptions import DatabaseError, StoreError, ValidationError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Lookup tables
CREATE TABLE IF NOT EXISTS relation_type (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    UNIQUE (name)
);

-- Entry tables
CREATE TABLE IF NOT EXISTS page (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL CHECK( length(title) > 0 ),
    word_count INTEGER NOT NULL DEFAULT 0 CHECK( word_count >= 0 ),
    wiki_link_count INTEGER NOT NULL DEFAULT 0 CHECK( wiki_link_count >= 0 ),
    in_wiktionary BOOLEAN CHECK( in_wiktionary IN (0, 1) ) DEFAULT 0 NOT NULL,
    is_redirect BOOLEAN CHECK( is_redirect IN (0, 1) ) DEFAULT 0 NOT NULL,
    redirect_target TEXT,
    CHECK( is_redirect = (redirect_target IS NOT NULL AND length(redirect_target) > 0) ),
    UNIQUE (title)
);
CREATE INDEX IF NOT EXISTS page_redirect_index ON page (is_redirect);

CREATE TABLE IF NOT EXISTS lang_pos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    page_id INTEGER NOT NULL REFERENCES page (id) ON DELETE CASCADE,
    lang TEXT NOT NULL,
    pos TEXT NOT NULL,
    lemma TEXT
);
CREATE INDEX IF NOT EXISTS lang_pos_page_index ON lang_pos (page_id);
CREATE INDEX IF NOT EXISTS lang_pos_lang_index ON lang_pos (lang);

-- Sense tables
CREATE TABLE IF NOT EXISTS meaning (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    lang_pos_id INTEGER NOT NULL REFERENCES lang_pos (id) ON DELETE CASCADE,
    meaning_n INTEGER NOT NULL DEFAULT 0,
    definition TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS meaning_lang_pos_index ON meaning (lang_pos_id);

-- relation_type_id carries no foreign key: the relation_type table is
-- truncated and refilled by RelationVocabulary.reconcile().
CREATE TABLE IF NOT EXISTS relation (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    meaning_id INTEGER NOT NULL REFERENCES meaning (id) ON DELETE CASCADE,
    relation_type_id INTEGER NOT NULL,
    wiki_text TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS relation_meaning_index ON relation (meaning_id);

CREATE TABLE IF NOT EXISTS translation (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    meaning_id INTEGER NOT NULL REFERENCES meaning (id) ON DELETE CASCADE,
    lang TEXT NOT NULL,
    text TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS translation_meaning_index ON translation (meaning_id);
CREATE INDEX IF NOT EXISTS translation_lang_index ON translation (lang);
"""


def connect(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Open a database connection with store PRAGMA settings."""
    db_path_str = str(db_path)
    try:
        conn = sqlite3.connect(db_path_str)
    except sqlite3.Error as e:
        raise DatabaseError(f"Cannot open database {db_path_str!r}: {e}") from e
    configure_connection(conn)
    if db_path_str != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    return conn


def configure_connection(conn: sqlite3.Connection) -> None:
    """Apply the PRAGMAs every store connection relies on."""
    try:
        conn.execute("PRAGMA foreign_keys = ON")
        # Prefix search must not fold ASCII case.
        conn.execute("PRAGMA case_sensitive_like = ON")
    except sqlite3.Error as e:
        raise DatabaseError(f"Cannot configure connection: {e}") from e
    if conn.row_factory is None:
        conn.row_factory = sqlite3.Row


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise DatabaseError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


def _check_identifier(name: str) -> str:
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ValidationError(f"Invalid SQL identifier: {name!r}")
    return name


def _escape_like(text: str) -> str:
    return (
        text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Where:
    """An AND-combined row predicate rendered with bound parameters.

    Builders return new instances::

        Where().prefix("title", "S").eq("is_redirect", False)
    """

    clauses: tuple[str, ...] = ()
    params: tuple[Any, ...] = ()

    def _add(self, clause: str, *params: Any) -> Where:
        return Where(self.clauses + (clause,), self.params + params)

    def eq(self, column: str, value: Any) -> Where:
        return self._add(f"{_check_identifier(column)} = ?", value)

    def prefix(self, column: str, text: str) -> Where:
        """Match rows whose column starts with ``text`` (case-sensitive)."""
        if not text:
            return self
        return self._add(
            f"{_check_identifier(column)} LIKE ? ESCAPE '\\'",
            _escape_like(text) + "%",
        )

    def is_null(self, column: str) -> Where:
        return self._add(f"{_check_identifier(column)} IS NULL")

    def is_not_null(self, column: str) -> Where:
        return self._add(f"{_check_identifier(column)} IS NOT NULL")

    def __bool__(self) -> bool:
        return bool(self.clauses)

    def render(self) -> tuple[str, tuple[Any, ...]]:
        where = " AND ".join(self.clauses) if self.clauses else "1=1"
        return where, self.params


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class Store:
    """Parameterized reads and writes against named tables.

    The store owns one SQLite connection.  Every ``sqlite3.Error`` surfaces
    as :class:`StoreError`.
    """

    def __init__(
        self,
        db_path: str | Path = ":memory:",
        *,
        conn: sqlite3.Connection | None = None,
    ) -> None:
        self._db_path = str(db_path)
        if conn is not None:
            configure_connection(conn)
            self._conn = conn
        else:
            self._conn = connect(db_path)
        check_schema_version(self._conn)
        init_db(self._conn)
        self._tx_depth = 0

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """Group several writes into one transaction (nesting joins it)."""
        if self._tx_depth == 0:
            self._execute("BEGIN")
        self._tx_depth += 1
        try:
            yield
        except BaseException:
            self._tx_depth -= 1
            if self._tx_depth == 0:
                self._conn.rollback()
            raise
        else:
            self._tx_depth -= 1
            if self._tx_depth == 0:
                self._conn.commit()

    def _execute(self, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
        logger.debug("SQL: %s %r", sql, params)
        try:
            return self._conn.execute(sql, tuple(params))
        except sqlite3.Error as e:
            raise StoreError(f"{e} (sql={sql!r})") from e

    def _write(self, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
        try:
            cur = self._execute(sql, params)
        except StoreError:
            # sqlite3 opened an implicit transaction before the failed DML.
            if self._tx_depth == 0:
                self._conn.rollback()
            raise
        if self._tx_depth == 0:
            self._conn.commit()
        return cur

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(
        self,
        table: str,
        columns: Iterable[str],
        where: Where | None = None,
        *,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[sqlite3.Row]:
        """Select ``columns`` from ``table``; ``limit=None`` is unbounded."""
        cols = ", ".join(_check_identifier(c) for c in columns)
        clause, params = (where or Where()).render()
        sql = f"SELECT {cols} FROM {_check_identifier(table)} WHERE {clause}"
        if order_by is not None:
            sql += f" ORDER BY {_check_identifier(order_by)}"
        if limit is not None:
            sql += " LIMIT ?"
            params = params + (limit,)
        return self._execute(sql, params).fetchall()

    def count(self, table: str, where: Where | None = None) -> int:
        clause, params = (where or Where()).render()
        row = self._execute(
            f"SELECT COUNT(*) FROM {_check_identifier(table)} WHERE {clause}",
            params,
        ).fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, table: str, values: Mapping[str, Any]) -> int:
        """Insert one row and return its generated id."""
        cols = [_check_identifier(c) for c in values]
        placeholders = ", ".join("?" for _ in cols)
        cur = self._write(
            f"INSERT INTO {_check_identifier(table)} ({', '.join(cols)}) "
            f"VALUES ({placeholders})",
            values.values(),
        )
        return cur.lastrowid

    def update(
        self, table: str, values: Mapping[str, Any], where: Where
    ) -> int:
        assignments = ", ".join(f"{_check_identifier(c)} = ?" for c in values)
        clause, params = where.render()
        cur = self._write(
            f"UPDATE {_check_identifier(table)} SET {assignments} "
            f"WHERE {clause}",
            tuple(values.values()) + params,
        )
        return cur.rowcount

    def delete(self, table: str, where: Where | None = None) -> int:
        clause, params = (where or Where()).render()
        cur = self._write(
            f"DELETE FROM {_check_identifier(table)} WHERE {clause}", params
        )
        return cur.rowcount

    def truncate(self, table: str) -> int:
        """Delete all rows and restart the table's AUTOINCREMENT at 1."""
        with self.transaction():
            deleted = self.delete(table)
            self._execute(
                "DELETE FROM sqlite_sequence WHERE name = ?", (table,)
            )
        return deleted
