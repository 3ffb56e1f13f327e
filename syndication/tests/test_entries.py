"""
Tests for the entry service.
"""

import pytest

from syndication.database import Marker, Page
from syndication.exceptions import BadRequestError, NotFoundError
from syndication.services import EntryService
from syndication.tests.conftest import make_entries


@pytest.fixture
def service(test_db):
    return EntryService(test_db)


@pytest.fixture
def feed(test_db, alice):
    feed = test_db.feeds.create(
        alice, test_db.categories.uncategorized(alice), "F", "https://example.com/f"
    )
    test_db.entries.add_many(alice, feed, make_entries("a", "b", "c"))
    return feed


class TestEntries:
    """Tests for reading and marking entries."""

    def test_get(self, service, test_db, alice, feed):
        entry = test_db.entries.get_by_guid(alice, feed, "a")
        fetched = service.get(alice, entry.id)
        assert fetched.title == "Entry a"
        assert fetched.feed_id == feed.id
        assert fetched.marker is Marker.UNREAD

    def test_other_user_cannot_read(self, service, test_db, alice, bob, feed):
        entry = test_db.entries.get_by_guid(alice, feed, "a")
        with pytest.raises(NotFoundError):
            service.get(bob, entry.id)
        with pytest.raises(NotFoundError):
            service.mark(bob, entry.id, Marker.READ)

    def test_mark_returns_updated_entry(self, service, test_db, alice, feed):
        entry = test_db.entries.get_by_guid(alice, feed, "b")
        assert service.mark(alice, entry.id, Marker.SAVED).marker is Marker.SAVED

    def test_mark_with_any_is_bad_request(self, service, test_db, alice, feed):
        entry = test_db.entries.get_by_guid(alice, feed, "b")
        with pytest.raises(BadRequestError):
            service.mark(alice, entry.id, Marker.ANY)

    def test_list_by_marker(self, service, test_db, alice, feed):
        entry = test_db.entries.get_by_guid(alice, feed, "b")
        service.mark(alice, entry.id, Marker.READ)

        read, _ = service.list(alice, Page(marker=Marker.READ))
        unread, _ = service.list(alice, Page(marker=Marker.UNREAD))

        assert [e.guid for e in read] == ["b"]
        assert [e.guid for e in unread] == ["c", "a"]

    def test_mark_all_and_stats(self, service, alice, feed):
        assert service.stats(alice).unread == 3

        service.mark_all(alice, Marker.READ)

        stats = service.stats(alice)
        assert (stats.unread, stats.read, stats.total) == (0, 3, 3)

    def test_mark_all_does_not_touch_other_users(self, service, test_db, alice, bob, feed):
        bobs_feed = test_db.feeds.create(
            bob, test_db.categories.uncategorized(bob), "B", "https://example.com/b"
        )
        test_db.entries.add_many(bob, bobs_feed, make_entries("x"))

        service.mark_all(alice, Marker.READ)

        assert service.stats(bob).unread == 1
