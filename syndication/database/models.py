"""
Database models - dataclasses for database entities.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ..exceptions import BadRequestError

# Reserved name of the per-user category holding feeds with no explicit category
UNCATEGORIZED = "uncategorized"


def category_key(name: str) -> str:
    """Uniqueness key for a category name within one user."""
    return name.lower()

DEFAULT_PAGE_SIZE = 100


class Marker(str, Enum):
    """Read state of an entry. ANY is a query wildcard, never stored."""
    ANY = "any"
    UNREAD = "unread"
    READ = "read"
    SAVED = "saved"

    @classmethod
    def from_string(cls, value: str | None) -> "Marker":
        """Parse a marker name, case-insensitively. Empty means ANY."""
        if not value:
            return cls.ANY
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise BadRequestError(f"Invalid marker: {value}")

    def require_storable(self) -> "Marker":
        """Raise BadRequestError for the ANY wildcard."""
        if self is Marker.ANY:
            raise BadRequestError("Marker 'any' cannot be applied to entries")
        return self


@dataclass
class Page:
    """Pagination request. continuation is the id of the last item already seen."""
    continuation: str = ""
    count: int = DEFAULT_PAGE_SIZE
    marker: Marker = Marker.ANY
    newest_first: bool = True

    def validate(self) -> "Page":
        if self.count < 1:
            raise BadRequestError("Page count must be positive")
        return self


@dataclass
class Stats:
    unread: int = 0
    read: int = 0
    saved: int = 0
    total: int = 0


@dataclass
class DBUser:
    pk: int
    id: str
    username: str
    password_hash: bytes
    password_salt: bytes
    created_at: datetime


@dataclass
class DBCategory:
    pk: int
    id: str
    user_pk: int
    name: str
    created_at: datetime

    @property
    def is_uncategorized(self) -> bool:
        return category_key(self.name) == UNCATEGORIZED


@dataclass
class DBFeed:
    pk: int
    id: str
    user_pk: int
    category_pk: int
    category_id: str
    title: str
    subscription: str
    created_at: datetime
    source: str | None = None
    etag: str | None = None
    last_modified: str | None = None
    last_updated: datetime | None = None


@dataclass
class DBEntry:
    pk: int
    id: str
    user_pk: int
    feed_pk: int
    feed_id: str
    guid: str
    title: str
    link: str
    author: str
    published_at: datetime
    marker: Marker
    created_at: datetime


@dataclass
class DBTag:
    pk: int
    id: str
    user_pk: int
    name: str
    created_at: datetime


@dataclass
class NewEntry:
    """An entry candidate produced by a pull, not yet persisted."""
    guid: str
    title: str
    link: str
    author: str
    published_at: datetime
