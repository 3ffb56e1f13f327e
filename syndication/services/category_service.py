"""
Category service: business logic for categories.

A user's Uncategorized category is protected: it cannot be deleted or
renamed, and no other category may take its name.
"""

from __future__ import annotations

from ..database import Database
from ..database.models import DBCategory, DBEntry, DBFeed, DBUser, Marker, Page, Stats, UNCATEGORIZED
from ..exceptions import BadRequestError, ProtectedError, require_category


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise BadRequestError("Category name cannot be empty")
    if name.lower() == UNCATEGORIZED:
        raise ProtectedError(f"Category name '{name}' is reserved")
    return name


class CategoryService:
    """Service for category-related business logic."""

    def __init__(self, db: Database):
        self.db = db

    def new(self, user: DBUser, name: str) -> DBCategory:
        """
        Create a category.

        Raises:
            ProtectedError: If the name is the reserved Uncategorized name
            ConflictError: If the name matches an existing category, ignoring case
        """
        return self.db.categories.create(user, _validate_name(name))

    def get(self, user: DBUser, category_id: str) -> DBCategory:
        return require_category(self.db.categories.get(user, category_id))

    def list(self, user: DBUser, continuation: str = "", count: int = 100) -> tuple[list[DBCategory], str]:
        return self.db.categories.list(user, continuation, count)

    def rename(self, user: DBUser, category_id: str, name: str) -> DBCategory:
        """
        Rename a category.

        Raises:
            ProtectedError: If the category is Uncategorized or the new name is reserved
        """
        category = self.get(user, category_id)
        if category.is_uncategorized:
            raise ProtectedError("The uncategorized category cannot be renamed")
        return self.db.categories.rename(user, category.id, _validate_name(name))

    def delete(self, user: DBUser, category_id: str) -> None:
        """
        Delete a category. Its feeds move to Uncategorized.

        Raises:
            ProtectedError: If the category is Uncategorized
        """
        category = self.get(user, category_id)
        if category.is_uncategorized:
            raise ProtectedError("The uncategorized category cannot be deleted")
        self.db.categories.delete(user, category.id)

    def feeds(
        self,
        user: DBUser,
        category_id: str,
        continuation: str = "",
        count: int = 100
    ) -> tuple[list[DBFeed], str]:
        category = self.get(user, category_id)
        return self.db.feeds.list(user, category=category, continuation=continuation, count=count)

    def entries(self, user: DBUser, category_id: str, page: Page) -> tuple[list[DBEntry], str]:
        category = self.get(user, category_id)
        return self.db.entries.list(user, page, category=category)

    def add_feeds(self, user: DBUser, category_id: str, feed_ids: list[str]) -> None:
        """
        Move feeds into a category.

        Raises:
            NotFoundError: If the category or any of the feeds is not the user's
        """
        category = self.get(user, category_id)
        self.db.feeds.move(user, category, feed_ids)

    def mark(self, user: DBUser, category_id: str, marker: Marker) -> int:
        """Set the marker on every entry whose feed is in the category."""
        category = self.get(user, category_id)
        return self.db.entries.mark_category(user, category, marker)

    def stats(self, user: DBUser, category_id: str) -> Stats:
        category = self.get(user, category_id)
        return self.db.entries.stats(user, category=category)
