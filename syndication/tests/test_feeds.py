"""
Tests for the feed service.
"""

import pytest

from syndication.database import Marker, Page
from syndication.exceptions import BadRequestError, NotFoundError, UnreachableError
from syndication.services import FeedService

FEED_URL = "https://example.com/feed.xml"


@pytest.fixture
def service(test_db, fake_puller):
    return FeedService(test_db, fake_puller)


class TestSubscribe:
    """Tests for subscribing with an eager first pull."""

    @pytest.mark.asyncio
    async def test_new_feed_lands_in_uncategorized(self, service, test_db, alice):
        feed = await service.new(alice, "My Feed", FEED_URL)
        assert feed.category_id == test_db.categories.uncategorized(alice).id
        assert feed.title == "My Feed"

    @pytest.mark.asyncio
    async def test_new_feed_in_chosen_category(self, service, test_db, alice):
        category = test_db.categories.create(alice, "Tech")

        feed = await service.new(alice, "My Feed", FEED_URL, category.id)

        assert feed.category_id == category.id

    @pytest.mark.asyncio
    async def test_new_feed_in_unknown_category_is_not_found(self, service, test_db, alice):
        with pytest.raises(NotFoundError):
            await service.new(alice, "My Feed", FEED_URL, "missing")
        assert test_db.feeds.list(alice)[0] == []

    @pytest.mark.asyncio
    async def test_new_feed_in_other_users_category_is_not_found(self, service, test_db, alice, bob):
        foreign = test_db.categories.create(bob, "Tech")
        with pytest.raises(NotFoundError):
            await service.new(alice, "My Feed", FEED_URL, foreign.id)

    @pytest.mark.asyncio
    async def test_new_feed_stores_first_pull(self, service, fake_puller, test_db, alice):
        fake_puller.serve(FEED_URL, "g1", "g2", title="Publisher Title", etag='"v1"')

        feed = await service.new(alice, "", FEED_URL)

        assert feed.title == "Publisher Title"
        assert feed.etag == '"v1"'
        assert feed.last_updated is not None
        assert service.stats(alice, feed.id).total == 2

    @pytest.mark.asyncio
    async def test_pull_failure_keeps_feed(self, service, fake_puller, alice):
        fake_puller.fail(FEED_URL, UnreachableError("connection refused"))

        feed = await service.new(alice, "Flaky", FEED_URL)

        assert service.get(alice, feed.id).title == "Flaky"
        assert service.stats(alice, feed.id).total == 0

    @pytest.mark.asyncio
    async def test_empty_subscription_is_bad_request(self, service, alice):
        with pytest.raises(BadRequestError):
            await service.new(alice, "No URL", "")


class TestFeedOperations:
    """Tests for update, delete, marking and listing."""

    @pytest.mark.asyncio
    async def test_update_title_and_category(self, service, test_db, alice):
        feed = await service.new(alice, "Old", FEED_URL)
        tech = test_db.categories.create(alice, "Tech")

        updated = service.update(alice, feed.id, title="New", category_id=tech.id)

        assert updated.title == "New"
        assert updated.category_id == tech.id

    @pytest.mark.asyncio
    async def test_update_to_other_users_category_not_found(self, service, test_db, alice, bob):
        feed = await service.new(alice, "Mine", FEED_URL)
        bobs = test_db.categories.create(bob, "Bob's")
        with pytest.raises(NotFoundError):
            service.update(alice, feed.id, category_id=bobs.id)

    @pytest.mark.asyncio
    async def test_delete(self, service, alice):
        feed = await service.new(alice, "Gone", FEED_URL)
        service.delete(alice, feed.id)
        with pytest.raises(NotFoundError):
            service.get(alice, feed.id)

    @pytest.mark.asyncio
    async def test_other_user_cannot_see_feed(self, service, alice, bob):
        feed = await service.new(alice, "Mine", FEED_URL)
        with pytest.raises(NotFoundError):
            service.get(bob, feed.id)
        assert service.list(bob) == ([], "")

    @pytest.mark.asyncio
    async def test_mark_feed(self, service, fake_puller, alice):
        fake_puller.serve(FEED_URL, "g1", "g2")
        feed = await service.new(alice, "F", FEED_URL)

        service.mark(alice, feed.id, Marker.SAVED)

        stats = service.stats(alice, feed.id)
        assert (stats.saved, stats.unread) == (2, 0)

    @pytest.mark.asyncio
    async def test_entries_filtered_by_marker(self, service, fake_puller, test_db, alice):
        fake_puller.serve(FEED_URL, "g1", "g2")
        feed = await service.new(alice, "F", FEED_URL)
        first = test_db.entries.get_by_guid(alice, feed, "g1")
        test_db.entries.mark(alice, first.id, Marker.READ)

        entries, _ = service.entries(alice, feed.id, Page(marker=Marker.UNREAD))

        assert [e.guid for e in entries] == ["g2"]
