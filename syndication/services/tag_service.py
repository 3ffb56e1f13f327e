"""
Tag service: user-defined tags cutting across feeds.
"""

from __future__ import annotations

from ..database import Database
from ..database.models import DBEntry, DBTag, DBUser, Page
from ..exceptions import BadRequestError, require_tag


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise BadRequestError("Tag name cannot be empty")
    return name


class TagService:
    """Service for tag-related business logic."""

    def __init__(self, db: Database):
        self.db = db

    def new(self, user: DBUser, name: str) -> DBTag:
        return self.db.tags.create(user, _validate_name(name))

    def get(self, user: DBUser, tag_id: str) -> DBTag:
        return require_tag(self.db.tags.get(user, tag_id))

    def list(self, user: DBUser, continuation: str = "", count: int = 100) -> tuple[list[DBTag], str]:
        return self.db.tags.list(user, continuation, count)

    def rename(self, user: DBUser, tag_id: str, name: str) -> DBTag:
        return self.db.tags.rename(user, tag_id, _validate_name(name))

    def delete(self, user: DBUser, tag_id: str) -> None:
        self.db.tags.delete(user, tag_id)

    def apply(self, user: DBUser, tag_id: str, entry_ids: list[str]) -> int:
        """
        Tag entries.

        Raises:
            NotFoundError: If the tag or any entry is missing or belongs to another user;
                nothing is tagged in that case
        """
        tag = self.get(user, tag_id)
        return self.db.tags.apply(user, tag, entry_ids)

    def entries(self, user: DBUser, tag_id: str, page: Page) -> tuple[list[DBEntry], str]:
        tag = self.get(user, tag_id)
        return self.db.entries.list(user, page, tag=tag)
