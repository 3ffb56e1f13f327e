"""
Repository for user operations.
"""

from __future__ import annotations

from .connection import DatabaseConnection, new_api_id
from .converters import row_to_user, to_db_time, utcnow
from .models import DBUser, UNCATEGORIZED, category_key
from .pagination import page_by_id
from ..exceptions import ConflictError, NotFoundError


class UserRepository:
    """Repository for user CRUD operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def create(self, username: str, password_hash: bytes, password_salt: bytes) -> DBUser:
        """
        Create a user together with its Uncategorized category.

        Raises:
            ConflictError: If the username is taken
        """
        now = to_db_time(utcnow())
        with self._db.conn() as conn:
            taken = conn.execute(
                "SELECT 1 FROM users WHERE username = ?", (username,)
            ).fetchone()
            if taken:
                raise ConflictError("Username already exists")

            cursor = conn.execute(
                """
                INSERT INTO users (api_id, username, password_hash, password_salt, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (new_api_id(), username, password_hash, password_salt, now)
            )
            user_pk = cursor.lastrowid
            conn.execute(
                "INSERT INTO categories (api_id, user_id, name, name_key, created_at) VALUES (?, ?, ?, ?, ?)",
                (new_api_id(), user_pk, UNCATEGORIZED, category_key(UNCATEGORIZED), now)
            )
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_pk,)).fetchone()
            return row_to_user(row)

    def get_by_id(self, user_id: str) -> DBUser | None:
        """Get user by external ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE api_id = ?", (user_id,)
            ).fetchone()
            return row_to_user(row) if row else None

    def get_by_name(self, username: str) -> DBUser | None:
        """Get user by username."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE username = ?", (username,)
            ).fetchone()
            return row_to_user(row) if row else None

    def list(self, continuation: str = "", count: int = 100) -> tuple[list[DBUser], str]:
        """List users in creation order."""
        with self._db.conn() as conn:
            return page_by_id(
                conn, "SELECT u.* FROM users u", "users", "u",
                [], [], continuation, count, row_to_user,
            )

    def update_name(self, user_id: str, username: str):
        """
        Rename a user.

        Raises:
            NotFoundError: If no user has user_id
            ConflictError: If another user already has username
        """
        with self._db.conn() as conn:
            taken = conn.execute(
                "SELECT 1 FROM users WHERE username = ? AND api_id != ?",
                (username, user_id)
            ).fetchone()
            if taken:
                raise ConflictError("Username already exists")
            cursor = conn.execute(
                "UPDATE users SET username = ? WHERE api_id = ?", (username, user_id)
            )
            if cursor.rowcount == 0:
                raise NotFoundError("User not found")

    def update_password(self, user_id: str, password_hash: bytes, password_salt: bytes):
        """Replace a user's credentials and revoke all of the user's refresh keys."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT id FROM users WHERE api_id = ?", (user_id,)
            ).fetchone()
            if row is None:
                raise NotFoundError("User not found")
            conn.execute(
                "UPDATE users SET password_hash = ?, password_salt = ? WHERE id = ?",
                (password_hash, password_salt, row["id"])
            )
            conn.execute("DELETE FROM api_keys WHERE user_id = ?", (row["id"],))

    def delete(self, user_id: str):
        """
        Delete a user and, by cascade, everything the user owns.

        Raises:
            NotFoundError: If no user has user_id
        """
        with self._db.conn() as conn:
            cursor = conn.execute("DELETE FROM users WHERE api_id = ?", (user_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("User not found")
