"""
Refresh key repository.

Only refresh tokens are stored. An access token is recognized by its
absence from this table.
"""

from datetime import datetime

from .connection import DatabaseConnection
from .converters import to_db_time
from .models import DBUser


class APIKeyRepository:
    """Repository for stored refresh keys."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(self, user: DBUser, token: str, expires_at: datetime):
        with self._db.conn() as conn:
            conn.execute(
                "INSERT INTO api_keys (user_id, token, expires_at) VALUES (?, ?, ?)",
                (user.pk, token, to_db_time(expires_at))
            )

    def exists(self, user: DBUser, token: str) -> bool:
        """Check whether token is one of the user's stored refresh keys."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT 1 FROM api_keys WHERE user_id = ? AND token = ?", (user.pk, token)
            ).fetchone()
            return row is not None

    def purge_expired(self, now: datetime) -> int:
        """Remove refresh keys past their expiry. Returns count removed."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "DELETE FROM api_keys WHERE expires_at < ?", (to_db_time(now),)
            )
            return cursor.rowcount
