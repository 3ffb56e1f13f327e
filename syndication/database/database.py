"""
Database facade - provides unified access to all repositories.
"""

from pathlib import Path

from .api_key_repository import APIKeyRepository
from .category_repository import CategoryRepository
from .connection import DatabaseConnection
from .entry_repository import EntryRepository
from .feed_repository import FeedRepository
from .tag_repository import TagRepository
from .user_repository import UserRepository


class Database:
    """
    Unified database access facade.

    Repositories share one DatabaseConnection; each call runs in its own
    transaction.
    """

    def __init__(self, db_path: Path):
        self._connection = DatabaseConnection(db_path)

        self.users = UserRepository(self._connection)
        self.categories = CategoryRepository(self._connection)
        self.feeds = FeedRepository(self._connection)
        self.entries = EntryRepository(self._connection)
        self.tags = TagRepository(self._connection)
        self.api_keys = APIKeyRepository(self._connection)

    @property
    def path(self) -> Path:
        return self._connection.db_path
