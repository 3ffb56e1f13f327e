"""
Feed repository - CRUD operations for feeds.
"""

from __future__ import annotations

from datetime import datetime

from .connection import DatabaseConnection, new_api_id
from .converters import row_to_feed, to_db_time, utcnow
from .models import DBCategory, DBFeed, DBUser
from .pagination import page_by_id
from ..exceptions import NotFoundError

FEED_SELECT = """
    SELECT f.*, c.api_id AS category_api_id
    FROM feeds f
    JOIN categories c ON c.id = f.category_id
"""


class FeedRepository:
    """Repository for feed operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def create(
        self,
        user: DBUser,
        category: DBCategory,
        title: str,
        subscription: str
    ) -> DBFeed:
        """Add a new feed to one of the user's categories."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                """
                INSERT INTO feeds (api_id, user_id, category_id, title, subscription, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (new_api_id(), user.pk, category.pk, title, subscription, to_db_time(utcnow()))
            )
            row = conn.execute(
                FEED_SELECT + " WHERE f.id = ?", (cursor.lastrowid,)
            ).fetchone()
            return row_to_feed(row)

    def get(self, user: DBUser, feed_id: str) -> DBFeed | None:
        """Get single feed by ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                FEED_SELECT + " WHERE f.api_id = ? AND f.user_id = ?",
                (feed_id, user.pk)
            ).fetchone()
            return row_to_feed(row) if row else None

    def get_by_subscription(self, user: DBUser, subscription: str) -> DBFeed | None:
        """Get the user's feed for a subscription URL."""
        with self._db.conn() as conn:
            row = conn.execute(
                FEED_SELECT + " WHERE f.subscription = ? AND f.user_id = ? ORDER BY f.id LIMIT 1",
                (subscription, user.pk)
            ).fetchone()
            return row_to_feed(row) if row else None

    def list(
        self,
        user: DBUser,
        category: DBCategory | None = None,
        continuation: str = "",
        count: int = 100
    ) -> tuple[list[DBFeed], str]:
        """List the user's feeds, optionally only those in one category."""
        where = ["f.user_id = ?"]
        params: list = [user.pk]
        if category is not None:
            where.append("f.category_id = ?")
            params.append(category.pk)
        with self._db.conn() as conn:
            return page_by_id(
                conn, FEED_SELECT, "feeds", "f", where, params,
                continuation, count, row_to_feed, user_pk=user.pk,
            )

    def get_all(self, user: DBUser) -> list[DBFeed]:
        """Get every feed the user subscribes to."""
        with self._db.conn() as conn:
            rows = conn.execute(
                FEED_SELECT + " WHERE f.user_id = ? ORDER BY f.id", (user.pk,)
            ).fetchall()
            return [row_to_feed(row) for row in rows]

    def update(
        self,
        user: DBUser,
        feed_id: str,
        title: str | None = None,
        category: DBCategory | None = None
    ) -> DBFeed:
        """
        Update user-editable feed details.

        Raises:
            NotFoundError: If the user has no such feed
        """
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT id FROM feeds WHERE api_id = ? AND user_id = ?",
                (feed_id, user.pk)
            ).fetchone()
            if row is None:
                raise NotFoundError("Feed not found")
            if title is not None:
                conn.execute("UPDATE feeds SET title = ? WHERE id = ?", (title, row["id"]))
            if category is not None:
                conn.execute(
                    "UPDATE feeds SET category_id = ? WHERE id = ?", (category.pk, row["id"])
                )
            row = conn.execute(FEED_SELECT + " WHERE f.id = ?", (row["id"],)).fetchone()
            return row_to_feed(row)

    def update_fetched(
        self,
        feed: DBFeed,
        fetched_at: datetime,
        title: str | None = None,
        source: str | None = None,
        etag: str | None = None,
        last_modified: str | None = None
    ):
        """Record the outcome of a successful pull. None leaves a column unchanged."""
        with self._db.conn() as conn:
            conn.execute(
                """
                UPDATE feeds SET
                    last_updated = ?,
                    title = COALESCE(?, title),
                    source = COALESCE(?, source),
                    etag = COALESCE(?, etag),
                    last_modified = COALESCE(?, last_modified)
                WHERE id = ? AND user_id = ?
                """,
                (to_db_time(fetched_at), title, source, etag, last_modified, feed.pk, feed.user_pk)
            )

    def move(self, user: DBUser, category: DBCategory, feed_ids: list[str]):
        """
        Move feeds into a category.

        All feeds are resolved before any is moved, so an unknown id leaves
        every feed where it was.

        Raises:
            NotFoundError: If any feed id is not one of the user's feeds
        """
        with self._db.conn() as conn:
            pks = []
            for feed_id in feed_ids:
                row = conn.execute(
                    "SELECT id FROM feeds WHERE api_id = ? AND user_id = ?",
                    (feed_id, user.pk)
                ).fetchone()
                if row is None:
                    raise NotFoundError(f"Feed not found: {feed_id}")
                pks.append(row["id"])
            conn.executemany(
                "UPDATE feeds SET category_id = ? WHERE id = ?",
                [(category.pk, pk) for pk in pks]
            )

    def delete(self, user: DBUser, feed_id: str):
        """
        Delete a feed and its entries.

        Raises:
            NotFoundError: If the user has no such feed
        """
        with self._db.conn() as conn:
            cursor = conn.execute(
                "DELETE FROM feeds WHERE api_id = ? AND user_id = ?", (feed_id, user.pk)
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Feed not found")
