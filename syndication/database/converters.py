"""
Database row converters - convert SQLite rows to dataclasses.
"""

import sqlite3
from datetime import datetime, timezone

from .models import DBCategory, DBEntry, DBFeed, DBTag, DBUser, Marker, Stats


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_db_time(value: datetime) -> str:
    """
    Serialize a timestamp for storage.

    Values are normalized to UTC with fixed microsecond precision so that
    stored strings sort in chronological order.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def row_to_user(row: sqlite3.Row) -> DBUser:
    """Convert a database row to a DBUser."""
    return DBUser(
        pk=row["id"],
        id=row["api_id"],
        username=row["username"],
        password_hash=bytes(row["password_hash"]),
        password_salt=bytes(row["password_salt"]),
        created_at=from_db_time(row["created_at"]) or utcnow(),
    )


def row_to_category(row: sqlite3.Row) -> DBCategory:
    """Convert a database row to a DBCategory."""
    return DBCategory(
        pk=row["id"],
        id=row["api_id"],
        user_pk=row["user_id"],
        name=row["name"],
        created_at=from_db_time(row["created_at"]) or utcnow(),
    )


def row_to_feed(row: sqlite3.Row) -> DBFeed:
    """
    Convert a database row to a DBFeed.

    Expects the category's api_id joined in as category_api_id.
    """
    return DBFeed(
        pk=row["id"],
        id=row["api_id"],
        user_pk=row["user_id"],
        category_pk=row["category_id"],
        category_id=row["category_api_id"],
        title=row["title"],
        subscription=row["subscription"],
        created_at=from_db_time(row["created_at"]) or utcnow(),
        source=row["source"],
        etag=row["etag"],
        last_modified=row["last_modified"],
        last_updated=from_db_time(row["last_updated"]),
    )


def row_to_entry(row: sqlite3.Row) -> DBEntry:
    """
    Convert a database row to a DBEntry.

    Expects the feed's api_id joined in as feed_api_id.
    """
    return DBEntry(
        pk=row["id"],
        id=row["api_id"],
        user_pk=row["user_id"],
        feed_pk=row["feed_id"],
        feed_id=row["feed_api_id"],
        guid=row["guid"],
        title=row["title"],
        link=row["link"],
        author=row["author"],
        published_at=from_db_time(row["published_at"]) or utcnow(),
        marker=Marker(row["marker"]),
        created_at=from_db_time(row["created_at"]) or utcnow(),
    )


def row_to_tag(row: sqlite3.Row) -> DBTag:
    """Convert a database row to a DBTag."""
    return DBTag(
        pk=row["id"],
        id=row["api_id"],
        user_pk=row["user_id"],
        name=row["name"],
        created_at=from_db_time(row["created_at"]) or utcnow(),
    )


def row_to_stats(row: sqlite3.Row | None) -> Stats:
    """Convert an aggregate row (unread, read, saved, total) to Stats."""
    if row is None:
        return Stats()
    return Stats(
        unread=row["unread"] or 0,
        read=row["read"] or 0,
        saved=row["saved"] or 0,
        total=row["total"] or 0,
    )
