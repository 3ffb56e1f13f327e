"""
Tests for feed parsing and the HTTP puller.
"""

import hashlib
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from syndication.exceptions import BadContentError, NotModifiedError, UnreachableError
from syndication.puller import FeedPuller, FetchResponse, parse_feed

FETCHED_AT = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example RSS</title>
    <link>https://example.com/</link>
    <item>
      <title>First</title>
      <link>https://example.com/1</link>
      <guid>urn:example:1</guid>
      <pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>No guid</title>
      <link>https://example.com/2</link>
    </item>
    <item>
      <title>Only title</title>
    </item>
  </channel>
</rss>"""

ATOM = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example Atom</title>
  <link href="https://example.org/"/>
  <id>urn:example:feed</id>
  <updated>2024-02-01T08:00:00Z</updated>
  <entry>
    <title>Atom entry</title>
    <link href="https://example.org/a"/>
    <id>urn:example:a</id>
    <updated>2024-02-01T08:00:00Z</updated>
    <author><name>Jane</name></author>
  </entry>
</feed>"""


class TestParseFeed:
    """Tests for parse_feed."""

    def test_rss(self):
        result = parse_feed(RSS, FETCHED_AT)

        assert result.title == "Example RSS"
        assert result.link == "https://example.com/"
        assert len(result.entries) == 3

        first = result.entries[0]
        assert first.guid == "urn:example:1"
        assert first.title == "First"
        assert first.link == "https://example.com/1"
        assert first.published_at == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_guid_falls_back_to_link(self):
        result = parse_feed(RSS, FETCHED_AT)
        assert result.entries[1].guid == "https://example.com/2"

    def test_guid_falls_back_to_digest(self):
        result = parse_feed(RSS, FETCHED_AT)
        assert result.entries[2].guid == hashlib.sha256(b"Only title").hexdigest()

    def test_undated_entry_uses_fetch_time(self):
        result = parse_feed(RSS, FETCHED_AT)
        assert result.entries[1].published_at == FETCHED_AT

    def test_atom(self):
        result = parse_feed(ATOM, FETCHED_AT)

        assert result.title == "Example Atom"
        assert result.link == "https://example.org/"
        entry = result.entries[0]
        assert entry.guid == "urn:example:a"
        assert entry.author == "Jane"
        assert entry.published_at == datetime(2024, 2, 1, 8, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("content", [
        b"this is not a feed",
        b"<html><body><p>Hello</p></body></html>",
    ])
    def test_bad_content(self, content):
        with pytest.raises(BadContentError):
            parse_feed(content)


class TestFeedPuller:
    """Tests for FeedPuller.pull with the HTTP layer mocked."""

    @pytest.mark.asyncio
    async def test_pull_parses_body_and_keeps_validators(self):
        response = FetchResponse(status=200, body=RSS, etag='"v2"', last_modified="Mon, 01 Jan 2024 10:00:00 GMT")
        with patch.object(FeedPuller, "_fetch", new=AsyncMock(return_value=response)):
            result = await FeedPuller(resolve_dns=False).pull("https://example.com/feed")

        assert result.title == "Example RSS"
        assert result.etag == '"v2"'
        assert result.last_modified == "Mon, 01 Jan 2024 10:00:00 GMT"

    @pytest.mark.asyncio
    async def test_pull_sends_conditional_headers(self):
        fetch = AsyncMock(return_value=FetchResponse(status=200, body=ATOM))
        with patch.object(FeedPuller, "_fetch", new=fetch):
            await FeedPuller(user_agent="TestAgent/1.0", resolve_dns=False).pull(
                "https://example.org/feed", etag='"v1"', last_modified="yesterday"
            )

        url, headers = fetch.call_args.args
        assert url == "https://example.org/feed"
        assert headers["If-None-Match"] == '"v1"'
        assert headers["If-Modified-Since"] == "yesterday"
        assert headers["User-Agent"] == "TestAgent/1.0"

    @pytest.mark.asyncio
    async def test_not_modified(self):
        with patch.object(FeedPuller, "_fetch", new=AsyncMock(return_value=FetchResponse(status=304, body=b""))):
            with pytest.raises(NotModifiedError):
                await FeedPuller(resolve_dns=False).pull("https://example.com/feed", etag='"v1"')

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 500, 503])
    async def test_http_error_is_unreachable(self, status):
        with patch.object(FeedPuller, "_fetch", new=AsyncMock(return_value=FetchResponse(status=status, body=b""))):
            with pytest.raises(UnreachableError):
                await FeedPuller(resolve_dns=False).pull("https://example.com/feed")

    @pytest.mark.asyncio
    async def test_unparsable_body(self):
        with patch.object(FeedPuller, "_fetch", new=AsyncMock(return_value=FetchResponse(status=200, body=b"nope"))):
            with pytest.raises(BadContentError):
                await FeedPuller(resolve_dns=False).pull("https://example.com/feed")

    @pytest.mark.asyncio
    async def test_invalid_url_is_unreachable(self):
        with pytest.raises(UnreachableError):
            await FeedPuller(timeout=1.0).pull("not a url")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", [
        "http://127.0.0.1/feed",
        "http://localhost:8080/feed",
        "http://169.254.169.254/latest/meta-data/",
        "file:///etc/passwd",
    ])
    async def test_blocked_url_is_never_fetched(self, url):
        fetch = AsyncMock(return_value=FetchResponse(status=200, body=RSS))
        with patch.object(FeedPuller, "_fetch", new=fetch):
            with pytest.raises(UnreachableError):
                await FeedPuller(resolve_dns=False).pull(url)
        fetch.assert_not_called()
