"""
Pydantic models for API request/response validation.
"""

from pydantic import BaseModel

from .auth import APIKey, KeyPair
from .database import DBCategory, DBEntry, DBFeed, DBTag, Stats


# ─────────────────────────────────────────────────────────────
# Auth Schemas
# ─────────────────────────────────────────────────────────────

class CredentialsRequest(BaseModel):
    username: str
    password: str


class RenewRequest(BaseModel):
    refresh_token: str


class APIKeyResponse(BaseModel):
    token: str
    expires_at: str

    @classmethod
    def from_key(cls, key: APIKey) -> "APIKeyResponse":
        return cls(token=key.token, expires_at=key.expires_at.isoformat())


class KeyPairResponse(BaseModel):
    access_token: APIKeyResponse
    refresh_token: APIKeyResponse

    @classmethod
    def from_pair(cls, pair: KeyPair) -> "KeyPairResponse":
        return cls(
            access_token=APIKeyResponse.from_key(pair.access),
            refresh_token=APIKeyResponse.from_key(pair.refresh),
        )


# ─────────────────────────────────────────────────────────────
# Category Schemas
# ─────────────────────────────────────────────────────────────

class CategoryRequest(BaseModel):
    name: str


class CategoryResponse(BaseModel):
    id: str
    name: str
    created_at: str

    @classmethod
    def from_db(cls, category: DBCategory) -> "CategoryResponse":
        return cls(id=category.id, name=category.name, created_at=category.created_at.isoformat())


class CategoryListResponse(BaseModel):
    categories: list[CategoryResponse]
    continuation: str = ""


class AddFeedsRequest(BaseModel):
    feeds: list[str]


# ─────────────────────────────────────────────────────────────
# Feed Schemas
# ─────────────────────────────────────────────────────────────

class AddFeedRequest(BaseModel):
    subscription: str
    title: str = ""
    category: str | None = None


class UpdateFeedRequest(BaseModel):
    title: str | None = None
    category: str | None = None


class FeedResponse(BaseModel):
    id: str
    title: str
    subscription: str
    category: str
    source: str | None = None
    last_updated: str | None = None
    created_at: str

    @classmethod
    def from_db(cls, feed: DBFeed) -> "FeedResponse":
        return cls(
            id=feed.id,
            title=feed.title,
            subscription=feed.subscription,
            category=feed.category_id,
            source=feed.source,
            last_updated=feed.last_updated.isoformat() if feed.last_updated else None,
            created_at=feed.created_at.isoformat(),
        )


class FeedListResponse(BaseModel):
    feeds: list[FeedResponse]
    continuation: str = ""


# ─────────────────────────────────────────────────────────────
# Entry Schemas
# ─────────────────────────────────────────────────────────────

class EntryResponse(BaseModel):
    id: str
    feed: str
    title: str
    link: str
    author: str
    published_at: str
    marker: str

    @classmethod
    def from_db(cls, entry: DBEntry) -> "EntryResponse":
        return cls(
            id=entry.id,
            feed=entry.feed_id,
            title=entry.title,
            link=entry.link,
            author=entry.author,
            published_at=entry.published_at.isoformat(),
            marker=entry.marker.value,
        )


class EntryListResponse(BaseModel):
    entries: list[EntryResponse]
    continuation: str = ""

    @classmethod
    def from_page(cls, page: tuple[list[DBEntry], str]) -> "EntryListResponse":
        entries, continuation = page
        return cls(entries=[EntryResponse.from_db(e) for e in entries], continuation=continuation)


class StatsResponse(BaseModel):
    unread: int
    read: int
    saved: int
    total: int

    @classmethod
    def from_stats(cls, stats: Stats) -> "StatsResponse":
        return cls(unread=stats.unread, read=stats.read, saved=stats.saved, total=stats.total)


# ─────────────────────────────────────────────────────────────
# Tag Schemas
# ─────────────────────────────────────────────────────────────

class TagRequest(BaseModel):
    name: str


class TagResponse(BaseModel):
    id: str
    name: str
    created_at: str

    @classmethod
    def from_db(cls, tag: DBTag) -> "TagResponse":
        return cls(id=tag.id, name=tag.name, created_at=tag.created_at.isoformat())


class TagListResponse(BaseModel):
    tags: list[TagResponse]
    continuation: str = ""


class ApplyTagRequest(BaseModel):
    entries: list[str]


# ─────────────────────────────────────────────────────────────
# OPML Schemas
# ─────────────────────────────────────────────────────────────

class OPMLImportResponse(BaseModel):
    imported: int
