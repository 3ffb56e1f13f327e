"""
Entry service: reading and marking a user's entries.
"""

from __future__ import annotations

from ..database import Database
from ..database.models import DBEntry, DBUser, Marker, Page, Stats
from ..exceptions import require_entry


class EntryService:
    """Service for entry-related business logic."""

    def __init__(self, db: Database):
        self.db = db

    def get(self, user: DBUser, entry_id: str) -> DBEntry:
        return require_entry(self.db.entries.get(user, entry_id))

    def list(self, user: DBUser, page: Page) -> tuple[list[DBEntry], str]:
        """List entries across all of the user's feeds."""
        return self.db.entries.list(user, page)

    def mark(self, user: DBUser, entry_id: str, marker: Marker) -> DBEntry:
        return self.db.entries.mark(user, entry_id, marker)

    def mark_all(self, user: DBUser, marker: Marker) -> int:
        return self.db.entries.mark_all(user, marker)

    def stats(self, user: DBUser) -> Stats:
        return self.db.entries.stats(user)
