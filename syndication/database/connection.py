"""
Database connection management and schema initialization.
"""

import secrets
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..exceptions import ConflictError, StoreError


def new_api_id() -> str:
    """Generate an opaque, externally visible identifier."""
    return secrets.token_urlsafe(12)


class DatabaseConnection:
    """Manages database connection and schema."""

    def __init__(self, db_path: Path, timeout: float = 30.0):
        self.db_path = db_path
        self.timeout = timeout
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def conn(self) -> Iterator[sqlite3.Connection]:
        """
        Get a database connection scoped to one transaction.

        The block is committed when it exits normally and rolled back when
        it raises. Integrity violations surface as ConflictError, any other
        sqlite failure as StoreError.
        """
        try:
            connection = sqlite3.connect(self.db_path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise StoreError(f"Could not open database: {e}")
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        try:
            yield connection
            connection.commit()
        except sqlite3.IntegrityError as e:
            connection.rollback()
            raise ConflictError(f"Conflicting entity: {e}")
        except sqlite3.Error as e:
            connection.rollback()
            raise StoreError(str(e))
        except Exception:
            connection.rollback()
            raise
        finally:
            connection.close()

    def _init_schema(self):
        """Initialize database schema."""
        with self.conn() as connection:
            connection.execute("PRAGMA journal_mode = WAL")
            connection.executescript("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    api_id TEXT UNIQUE NOT NULL,
                    username TEXT UNIQUE NOT NULL CHECK(username != ''),
                    password_hash BLOB NOT NULL,
                    password_salt BLOB NOT NULL,
                    created_at TIMESTAMP NOT NULL
                );

                CREATE TABLE IF NOT EXISTS categories (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    api_id TEXT UNIQUE NOT NULL,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    name TEXT NOT NULL CHECK(name != ''),
                    name_key TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    UNIQUE (user_id, name_key)
                );

                CREATE TABLE IF NOT EXISTS feeds (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    api_id TEXT UNIQUE NOT NULL,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    category_id INTEGER NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
                    title TEXT NOT NULL DEFAULT '',
                    subscription TEXT NOT NULL,
                    source TEXT,
                    etag TEXT,
                    last_modified TEXT,
                    last_updated TIMESTAMP,
                    created_at TIMESTAMP NOT NULL
                );

                CREATE TABLE IF NOT EXISTS entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    api_id TEXT UNIQUE NOT NULL,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    feed_id INTEGER NOT NULL REFERENCES feeds(id) ON DELETE CASCADE,
                    guid TEXT NOT NULL,
                    title TEXT NOT NULL DEFAULT '',
                    link TEXT NOT NULL DEFAULT '',
                    author TEXT NOT NULL DEFAULT '',
                    published_at TIMESTAMP NOT NULL,
                    marker TEXT NOT NULL DEFAULT 'unread'
                        CHECK(marker IN ('unread', 'read', 'saved')),
                    created_at TIMESTAMP NOT NULL,
                    UNIQUE (user_id, feed_id, guid)
                );

                CREATE TABLE IF NOT EXISTS tags (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    api_id TEXT UNIQUE NOT NULL,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    name TEXT NOT NULL CHECK(name != ''),
                    created_at TIMESTAMP NOT NULL,
                    UNIQUE (user_id, name)
                );

                CREATE TABLE IF NOT EXISTS entry_tags (
                    entry_id INTEGER NOT NULL REFERENCES entries(id) ON DELETE CASCADE,
                    tag_id INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
                    PRIMARY KEY (entry_id, tag_id)
                );

                CREATE TABLE IF NOT EXISTS api_keys (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    token TEXT NOT NULL,
                    expires_at TIMESTAMP NOT NULL,
                    UNIQUE (user_id, token)
                );

                CREATE INDEX IF NOT EXISTS idx_categories_user ON categories(user_id);
                CREATE INDEX IF NOT EXISTS idx_feeds_user ON feeds(user_id);
                CREATE INDEX IF NOT EXISTS idx_feeds_category ON feeds(category_id);
                CREATE INDEX IF NOT EXISTS idx_entries_feed ON entries(feed_id);
                CREATE INDEX IF NOT EXISTS idx_entries_user_published ON entries(user_id, published_at DESC, id DESC);
                CREATE INDEX IF NOT EXISTS idx_entries_user_marker ON entries(user_id, marker);
                CREATE INDEX IF NOT EXISTS idx_entry_tags_tag ON entry_tags(tag_id);
                CREATE INDEX IF NOT EXISTS idx_tags_user ON tags(user_id);
            """)
