"""
Database module - SQLite storage for users, categories, feeds, entries and tags.

Uses repository pattern for better separation of concerns.
"""

from .connection import DatabaseConnection
from .models import (
    UNCATEGORIZED,
    DBCategory,
    DBEntry,
    DBFeed,
    DBTag,
    DBUser,
    Marker,
    NewEntry,
    Page,
    Stats,
)
from .user_repository import UserRepository
from .category_repository import CategoryRepository
from .feed_repository import FeedRepository
from .entry_repository import EntryRepository
from .tag_repository import TagRepository
from .api_key_repository import APIKeyRepository
from .database import Database

__all__ = [
    "Database",
    "DatabaseConnection",
    "UNCATEGORIZED",
    "DBCategory",
    "DBEntry",
    "DBFeed",
    "DBTag",
    "DBUser",
    "Marker",
    "NewEntry",
    "Page",
    "Stats",
    "UserRepository",
    "CategoryRepository",
    "FeedRepository",
    "EntryRepository",
    "TagRepository",
    "APIKeyRepository",
]
