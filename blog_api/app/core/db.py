"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), a cursor context manager (``get_cursor``) and
``init_db`` which applies migrations on application start.  Every
function takes the database path explicitly; services receive it at
construction time from ``Settings``.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .errors import StorageError

logger = logging.getLogger(__name__)


def get_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    Absolute paths are used as is.  Relative paths are resolved
    against the project root (the directory holding ``blog_api``).
    """
    if os.path.isabs(database_url):
        return database_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / database_url).resolve())


SQLITE_MAX_INTEGER = 2 ** 63 - 1


def fits_integer(value: int) -> bool:
    """Whether ``value`` can be bound as a SQLite INTEGER parameter."""
    return -SQLITE_MAX_INTEGER - 1 <= value <= SQLITE_MAX_INTEGER


def ci_contains(haystack: Optional[str], needle: Optional[str]) -> int:
    """Case-insensitive literal substring test, exposed to SQL.

    SQLite's ``LIKE`` only folds ASCII and treats ``%``/``_`` as
    wildcards, so search terms are matched with ``str.casefold``
    instead.
    """
    if haystack is None or needle is None:
        return 0
    return int(needle.casefold() in haystack.casefold())


def get_connection(db_path: str) -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    The connection uses a row factory to access columns by name,
    enforces foreign keys and registers ``ci_contains`` for search
    queries.
    """
    conn = sqlite3.connect(db_path, timeout=10)
    conn.row_factory = sqlite3.Row
    # Foreign key support is off by default and must be enabled per
    # connection, otherwise ``posts.author_id`` is not checked.
    conn.execute("PRAGMA foreign_keys = ON")
    conn.create_function("ci_contains", 2, ci_contains, deterministic=True)
    return conn


@contextmanager
def connection(db_path: str) -> Iterator[sqlite3.Connection]:
    """Yield a connection for one service operation and always close it.

    Any ``sqlite3.Error`` escaping the block is rolled back, logged and
    re-raised as ``StorageError``.  Callers that map a specific failure
    (e.g. a UNIQUE violation) catch it inside the block.
    """
    try:
        conn = get_connection(db_path)
    except sqlite3.Error as exc:
        logger.exception("Could not open database %s", db_path)
        raise StorageError() from exc
    try:
        yield conn
    except sqlite3.Error as exc:
        conn.rollback()
        logger.exception("Database operation failed")
        raise StorageError() from exc
    finally:
        conn.close()


@contextmanager
def get_cursor(db_path: str) -> Iterator[sqlite3.Cursor]:
    """Yield a cursor, commit on success and always close the connection."""
    conn = get_connection(db_path)
    try:
        yield conn.cursor()
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS posts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            summary TEXT NOT NULL,
            content TEXT NOT NULL,
            cover BLOB,
            tags TEXT NOT NULL DEFAULT '[]',
            author_id INTEGER NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY(author_id) REFERENCES users(id)
        );
        """,
    ),
    # Migration 2: cover media type and the sort/eviction index
    (
        2,
        """
        -- Media type of the stored cover, derived from the uploaded
        -- filename.  NULL whenever cover is NULL.
        ALTER TABLE posts ADD COLUMN cover_type TEXT;
        CREATE INDEX IF NOT EXISTS idx_posts_created_at ON posts(created_at, id);
        CREATE INDEX IF NOT EXISTS idx_posts_author_id ON posts(author_id);
        """,
    ),
]


def init_db(db_path: str) -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any newer entries of
    ``MIGRATIONS``.  Append new migrations with an incremented version
    number.
    """
    with get_cursor(db_path) as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
