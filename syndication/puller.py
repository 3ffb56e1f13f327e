"""
Feed Puller - fetch and parse one RSS/Atom subscription.

Handles:
- RSS 2.0 and Atom 1.0 formats
- Conditional requests with ETag / Last-Modified validators
- Classifying failures as unreachable, bad content or not modified
"""

import asyncio
import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import aiohttp
import feedparser

from .database import NewEntry
from .database.converters import utcnow
from .exceptions import BadContentError, NotModifiedError, UnreachableError
from .url_validator import validate_url

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Syndication/1.0"


@dataclass
class FetchResponse:
    """Raw HTTP outcome of a fetch."""
    status: int
    body: bytes
    etag: str | None = None
    last_modified: str | None = None


@dataclass
class PullResult:
    """A parsed feed: its descriptor plus the entry candidates it carries."""
    title: str
    link: str
    entries: list[NewEntry] = field(default_factory=list)
    etag: str | None = None
    last_modified: str | None = None


def entry_guid(entry) -> str:
    """
    Pick the dedup key for a parsed entry.

    Prefers the publisher's id/guid, then the link. Entries with neither
    are keyed by a digest of title and link.
    """
    guid = (entry.get("id") or entry.get("guid") or "").strip()
    if guid:
        return guid
    link = (entry.get("link") or "").strip()
    if link:
        return link
    digest = hashlib.sha256((entry.get("title", "") + link).encode("utf-8"))
    return digest.hexdigest()


def _entry_time(entry, fallback: datetime) -> datetime:
    # feedparser normalizes parsed dates to UTC
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            try:
                return datetime(*parsed[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                continue
    return fallback


def parse_feed(content: bytes | str, fetched_at: datetime | None = None) -> PullResult:
    """
    Parse feed content using feedparser.

    Raises:
        BadContentError: If the content is not a usable RSS or Atom document
    """
    fetched_at = fetched_at or utcnow()
    parsed = feedparser.parse(content)

    if parsed.bozo and not parsed.entries and not parsed.feed.get("title"):
        raise BadContentError(f"Failed to parse feed: {parsed.get('bozo_exception')}")
    if not parsed.get("version") and not parsed.entries:
        raise BadContentError("Content is not an RSS or Atom feed")

    entries = []
    for entry in parsed.entries:
        link = entry.get("link", "")
        entries.append(NewEntry(
            guid=entry_guid(entry),
            title=entry.get("title", ""),
            link=link,
            author=entry.get("author", ""),
            published_at=_entry_time(entry, fetched_at),
        ))

    return PullResult(
        title=parsed.feed.get("title", ""),
        link=parsed.feed.get("link", ""),
        entries=entries,
    )


class FeedPuller:
    """Fetches and parses subscriptions over HTTP."""

    def __init__(self, timeout: float = 30.0, user_agent: str | None = None, resolve_dns: bool = True):
        self.timeout = timeout
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.resolve_dns = resolve_dns

    async def pull(
        self,
        url: str,
        etag: str | None = None,
        last_modified: str | None = None
    ) -> PullResult:
        """
        Fetch and parse a feed URL.

        Raises:
            NotModifiedError: If the publisher answered 304
            BlockedURLError: If the URL targets an internal network address
            UnreachableError: On network failure, timeout or an HTTP error status
            BadContentError: If the body cannot be parsed
        """
        await asyncio.to_thread(validate_url, url, self.resolve_dns)

        headers = {"User-Agent": self.user_agent}
        if etag:
            headers["If-None-Match"] = etag
        if last_modified:
            headers["If-Modified-Since"] = last_modified

        response = await self._fetch(url, headers)

        if response.status == 304:
            raise NotModifiedError(f"{url} not modified")
        if response.status >= 400:
            raise UnreachableError(f"{url} returned HTTP {response.status}")

        result = parse_feed(response.body)
        result.etag = response.etag
        result.last_modified = response.last_modified
        logger.debug(f"Pulled {url}: {len(result.entries)} entries")
        return result

    async def _fetch(self, url: str, headers: dict[str, str]) -> FetchResponse:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    url,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as resp:
                    body = await resp.read()
                    return FetchResponse(
                        status=resp.status,
                        body=body,
                        etag=resp.headers.get("ETag"),
                        last_modified=resp.headers.get("Last-Modified"),
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise UnreachableError(f"Could not fetch {url}: {e}")
