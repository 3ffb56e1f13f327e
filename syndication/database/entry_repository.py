"""
Entry repository - storage, listing and marker propagation for entries.
"""

from __future__ import annotations

from datetime import datetime

from .connection import DatabaseConnection, new_api_id
from .converters import row_to_entry, row_to_stats, to_db_time, utcnow
from .models import DBCategory, DBEntry, DBFeed, DBTag, DBUser, Marker, NewEntry, Page, Stats
from .pagination import STATS_SELECT, anchor_row, split_page
from ..exceptions import NotFoundError

ENTRY_SELECT = """
    SELECT e.*, f.api_id AS feed_api_id
    FROM entries e
    JOIN feeds f ON f.id = e.feed_id
"""


class EntryRepository:
    """Repository for entry operations. Every query is scoped to its owner."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add_many(self, user: DBUser, feed: DBFeed, entries: list[NewEntry]) -> int:
        """
        Insert entries for a feed, skipping any whose guid is already stored.

        Returns the number of entries actually inserted.
        """
        if not entries:
            return 0
        now = to_db_time(utcnow())
        inserted = 0
        with self._db.conn() as conn:
            for entry in entries:
                cursor = conn.execute(
                    """
                    INSERT INTO entries
                        (api_id, user_id, feed_id, guid, title, link, author,
                         published_at, marker, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (user_id, feed_id, guid) DO NOTHING
                    """,
                    (
                        new_api_id(), user.pk, feed.pk, entry.guid, entry.title,
                        entry.link, entry.author, to_db_time(entry.published_at),
                        Marker.UNREAD.value, now,
                    )
                )
                inserted += cursor.rowcount
        return inserted

    def get(self, user: DBUser, entry_id: str) -> DBEntry | None:
        """Get single entry by ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                ENTRY_SELECT + " WHERE e.api_id = ? AND e.user_id = ?",
                (entry_id, user.pk)
            ).fetchone()
            return row_to_entry(row) if row else None

    def get_by_guid(self, user: DBUser, feed: DBFeed, guid: str) -> DBEntry | None:
        """Get an entry by its dedup key."""
        with self._db.conn() as conn:
            row = conn.execute(
                ENTRY_SELECT + " WHERE e.user_id = ? AND e.feed_id = ? AND e.guid = ?",
                (user.pk, feed.pk, guid)
            ).fetchone()
            return row_to_entry(row) if row else None

    def list(
        self,
        user: DBUser,
        page: Page,
        feed: DBFeed | None = None,
        category: DBCategory | None = None,
        tag: DBTag | None = None
    ) -> tuple[list[DBEntry], str]:
        """
        List the user's entries, newest first or in insertion order.

        Filters combine: feed, category, tag and the page's marker. Newest
        first orders by (published_at DESC, id DESC) so the continuation
        anchor is unambiguous even for entries published at the same time.
        """
        page.validate()
        where, params = self._filters(user, page.marker, feed, category, tag)

        with self._db.conn() as conn:
            if page.continuation:
                anchor = anchor_row(
                    conn, "entries", page.continuation, user.pk, columns="id, published_at"
                )
                if page.newest_first:
                    where.append("(e.published_at < ? OR (e.published_at = ? AND e.id < ?))")
                    params.extend([anchor["published_at"], anchor["published_at"], anchor["id"]])
                else:
                    where.append("e.id > ?")
                    params.append(anchor["id"])

            order = "e.published_at DESC, e.id DESC" if page.newest_first else "e.id ASC"
            query = f"{ENTRY_SELECT} WHERE {' AND '.join(where)} ORDER BY {order} LIMIT ?"
            params.append(page.count + 1)
            rows = conn.execute(query, params).fetchall()
            return split_page(rows, page.count, row_to_entry)

    def mark(self, user: DBUser, entry_id: str, marker: Marker) -> DBEntry:
        """
        Set the marker on one entry.

        Raises:
            NotFoundError: If the user has no such entry
        """
        marker = marker.require_storable()
        with self._db.conn() as conn:
            cursor = conn.execute(
                "UPDATE entries SET marker = ? WHERE api_id = ? AND user_id = ?",
                (marker.value, entry_id, user.pk)
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Entry not found")
            row = conn.execute(
                ENTRY_SELECT + " WHERE e.api_id = ? AND e.user_id = ?",
                (entry_id, user.pk)
            ).fetchone()
            return row_to_entry(row)

    def mark_feed(self, user: DBUser, feed: DBFeed, marker: Marker) -> int:
        """Set the marker on every entry of a feed."""
        return self._mark_where(user, marker, "feed_id = ?", [feed.pk])

    def mark_category(self, user: DBUser, category: DBCategory, marker: Marker) -> int:
        """Set the marker on every entry whose feed is in a category."""
        return self._mark_where(
            user, marker,
            "feed_id IN (SELECT id FROM feeds WHERE category_id = ? AND user_id = ?)",
            [category.pk, user.pk]
        )

    def mark_all(self, user: DBUser, marker: Marker) -> int:
        """Set the marker on every entry the user owns."""
        return self._mark_where(user, marker, None, [])

    def stats(
        self,
        user: DBUser,
        feed: DBFeed | None = None,
        category: DBCategory | None = None
    ) -> Stats:
        """Count the user's entries by marker, optionally within a feed or category."""
        where, params = self._filters(user, Marker.ANY, feed, None, None)
        if category is not None:
            where.append("e.feed_id IN (SELECT id FROM feeds WHERE category_id = ?)")
            params.append(category.pk)
        with self._db.conn() as conn:
            row = conn.execute(
                STATS_SELECT + " WHERE " + " AND ".join(where), params
            ).fetchone()
            return row_to_stats(row)

    def delete_older_than(self, user: DBUser, cutoff: datetime) -> int:
        """Delete the user's unsaved entries stored before cutoff. Returns count deleted."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "DELETE FROM entries WHERE user_id = ? AND marker != ? AND created_at < ?",
                (user.pk, Marker.SAVED.value, to_db_time(cutoff))
            )
            return cursor.rowcount

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    def _filters(
        self,
        user: DBUser,
        marker: Marker,
        feed: DBFeed | None,
        category: DBCategory | None,
        tag: DBTag | None
    ) -> tuple[list[str], list]:
        where = ["e.user_id = ?"]
        params: list = [user.pk]
        if marker is not Marker.ANY:
            where.append("e.marker = ?")
            params.append(marker.value)
        if feed is not None:
            where.append("e.feed_id = ?")
            params.append(feed.pk)
        if category is not None:
            where.append("f.category_id = ?")
            params.append(category.pk)
        if tag is not None:
            where.append("e.id IN (SELECT entry_id FROM entry_tags WHERE tag_id = ?)")
            params.append(tag.pk)
        return where, params

    def _mark_where(self, user: DBUser, marker: Marker, clause: str | None, params: list) -> int:
        marker = marker.require_storable()
        query = "UPDATE entries SET marker = ? WHERE user_id = ?"
        if clause:
            query += " AND " + clause
        with self._db.conn() as conn:
            cursor = conn.execute(query, [marker.value, user.pk, *params])
            return cursor.rowcount
