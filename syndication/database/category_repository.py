"""
Category repository - CRUD operations for categories.
"""

from __future__ import annotations

from .connection import DatabaseConnection, new_api_id
from .converters import row_to_category, to_db_time, utcnow
from .models import DBCategory, DBUser, UNCATEGORIZED, category_key
from .pagination import page_by_id
from ..exceptions import ConflictError, NotFoundError, StoreError


class CategoryRepository:
    """Repository for category operations. Every query is scoped to its owner."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def create(self, user: DBUser, name: str) -> DBCategory:
        """
        Add a new category.

        Raises:
            ConflictError: If the user has a category with the same name, ignoring case
        """
        with self._db.conn() as conn:
            if self._name_taken(conn, user.pk, name):
                raise ConflictError("Category already exists")
            cursor = conn.execute(
                "INSERT INTO categories (api_id, user_id, name, name_key, created_at) VALUES (?, ?, ?, ?, ?)",
                (new_api_id(), user.pk, name, category_key(name), to_db_time(utcnow()))
            )
            row = conn.execute(
                "SELECT * FROM categories WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
            return row_to_category(row)

    def get(self, user: DBUser, category_id: str) -> DBCategory | None:
        """Get a category by ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE api_id = ? AND user_id = ?",
                (category_id, user.pk)
            ).fetchone()
            return row_to_category(row) if row else None

    def get_by_name(self, user: DBUser, name: str) -> DBCategory | None:
        """Get a category by name, ignoring case."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE user_id = ? AND name_key = ?",
                (user.pk, category_key(name))
            ).fetchone()
            return row_to_category(row) if row else None

    def uncategorized(self, user: DBUser) -> DBCategory:
        """Get the user's Uncategorized category."""
        category = self.get_by_name(user, UNCATEGORIZED)
        if category is None:
            raise StoreError(f"User {user.id} has no {UNCATEGORIZED} category")
        return category

    def list(
        self,
        user: DBUser,
        continuation: str = "",
        count: int = 100
    ) -> tuple[list[DBCategory], str]:
        """List the user's categories in creation order."""
        with self._db.conn() as conn:
            return page_by_id(
                conn, "SELECT c.* FROM categories c", "categories", "c",
                ["c.user_id = ?"], [user.pk], continuation, count, row_to_category,
                user_pk=user.pk,
            )

    def rename(self, user: DBUser, category_id: str, name: str) -> DBCategory:
        """
        Rename a category.

        Raises:
            NotFoundError: If the user has no such category
            ConflictError: If another of the user's categories has the name
        """
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT id FROM categories WHERE api_id = ? AND user_id = ?",
                (category_id, user.pk)
            ).fetchone()
            if row is None:
                raise NotFoundError("Category not found")
            if self._name_taken(conn, user.pk, name, exclude_pk=row["id"]):
                raise ConflictError("Category already exists")
            conn.execute(
                "UPDATE categories SET name = ?, name_key = ? WHERE id = ?",
                (name, category_key(name), row["id"])
            )
            row = conn.execute("SELECT * FROM categories WHERE id = ?", (row["id"],)).fetchone()
            return row_to_category(row)

    def delete(self, user: DBUser, category_id: str):
        """
        Delete a category, moving its feeds into the user's Uncategorized category.

        Both steps run in one transaction so feeds are never orphaned.

        Raises:
            NotFoundError: If the user has no such category
        """
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT id FROM categories WHERE api_id = ? AND user_id = ?",
                (category_id, user.pk)
            ).fetchone()
            if row is None:
                raise NotFoundError("Category not found")

            fallback = conn.execute(
                "SELECT id FROM categories WHERE user_id = ? AND name_key = ?",
                (user.pk, category_key(UNCATEGORIZED))
            ).fetchone()
            if fallback is None:
                raise StoreError(f"User {user.id} has no {UNCATEGORIZED} category")

            conn.execute(
                "UPDATE feeds SET category_id = ? WHERE category_id = ? AND user_id = ?",
                (fallback["id"], row["id"], user.pk)
            )
            conn.execute("DELETE FROM categories WHERE id = ?", (row["id"],))

    def _name_taken(self, conn, user_pk: int, name: str, exclude_pk: int | None = None) -> bool:
        query = "SELECT 1 FROM categories WHERE user_id = ? AND name_key = ?"
        params: list = [user_pk, category_key(name)]
        if exclude_pk is not None:
            query += " AND id != ?"
            params.append(exclude_pk)
        return conn.execute(query, params).fetchone() is not None
