"""
Tag repository - tags and their links to entries.
"""

from __future__ import annotations

from .connection import DatabaseConnection, new_api_id
from .converters import row_to_tag, to_db_time, utcnow
from .models import DBTag, DBUser
from .pagination import page_by_id
from ..exceptions import ConflictError, NotFoundError


class TagRepository:
    """Repository for tag operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def create(self, user: DBUser, name: str) -> DBTag:
        """
        Add a new tag.

        Raises:
            ConflictError: If the user already has a tag with the name
        """
        with self._db.conn() as conn:
            taken = conn.execute(
                "SELECT 1 FROM tags WHERE user_id = ? AND name = ?", (user.pk, name)
            ).fetchone()
            if taken:
                raise ConflictError("Tag already exists")
            cursor = conn.execute(
                "INSERT INTO tags (api_id, user_id, name, created_at) VALUES (?, ?, ?, ?)",
                (new_api_id(), user.pk, name, to_db_time(utcnow()))
            )
            row = conn.execute("SELECT * FROM tags WHERE id = ?", (cursor.lastrowid,)).fetchone()
            return row_to_tag(row)

    def get(self, user: DBUser, tag_id: str) -> DBTag | None:
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM tags WHERE api_id = ? AND user_id = ?", (tag_id, user.pk)
            ).fetchone()
            return row_to_tag(row) if row else None

    def list(
        self,
        user: DBUser,
        continuation: str = "",
        count: int = 100
    ) -> tuple[list[DBTag], str]:
        with self._db.conn() as conn:
            return page_by_id(
                conn, "SELECT t.* FROM tags t", "tags", "t",
                ["t.user_id = ?"], [user.pk], continuation, count, row_to_tag,
                user_pk=user.pk,
            )

    def rename(self, user: DBUser, tag_id: str, name: str) -> DBTag:
        """
        Rename a tag.

        Raises:
            NotFoundError: If the user has no such tag
            ConflictError: If another of the user's tags has the name
        """
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT id FROM tags WHERE api_id = ? AND user_id = ?", (tag_id, user.pk)
            ).fetchone()
            if row is None:
                raise NotFoundError("Tag not found")
            taken = conn.execute(
                "SELECT 1 FROM tags WHERE user_id = ? AND name = ? AND id != ?",
                (user.pk, name, row["id"])
            ).fetchone()
            if taken:
                raise ConflictError("Tag already exists")
            conn.execute("UPDATE tags SET name = ? WHERE id = ?", (name, row["id"]))
            row = conn.execute("SELECT * FROM tags WHERE id = ?", (row["id"],)).fetchone()
            return row_to_tag(row)

    def delete(self, user: DBUser, tag_id: str):
        """Delete a tag. Its links to entries go with it."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "DELETE FROM tags WHERE api_id = ? AND user_id = ?", (tag_id, user.pk)
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Tag not found")

    def apply(self, user: DBUser, tag: DBTag, entry_ids: list[str]) -> int:
        """
        Tag entries.

        Every entry must belong to the tag's owner. Entries are resolved
        before anything is linked, so one foreign or unknown id tags nothing.
        Returns the number of new links.

        Raises:
            NotFoundError: If an entry is missing or owned by another user
        """
        with self._db.conn() as conn:
            pks = []
            for entry_id in entry_ids:
                row = conn.execute(
                    "SELECT id FROM entries WHERE api_id = ? AND user_id = ?",
                    (entry_id, user.pk)
                ).fetchone()
                if row is None:
                    raise NotFoundError(f"Entry not found: {entry_id}")
                pks.append(row["id"])

            linked = 0
            for pk in pks:
                cursor = conn.execute(
                    "INSERT OR IGNORE INTO entry_tags (entry_id, tag_id) VALUES (?, ?)",
                    (pk, tag.pk)
                )
                linked += cursor.rowcount
            return linked
