"""
Tests for the tag service.
"""

import pytest

from syndication.database import Page
from syndication.exceptions import BadRequestError, ConflictError, NotFoundError
from syndication.services import TagService
from syndication.tests.conftest import make_entries


@pytest.fixture
def service(test_db):
    return TagService(test_db)


@pytest.fixture
def entries(test_db, alice):
    feed = test_db.feeds.create(
        alice, test_db.categories.uncategorized(alice), "F", "https://example.com/f"
    )
    test_db.entries.add_many(alice, feed, make_entries("a", "b", "c"))
    return [test_db.entries.get_by_guid(alice, feed, guid) for guid in ("a", "b", "c")]


class TestTags:
    """Tests for tag management."""

    def test_new_and_rename(self, service, alice):
        tag = service.new(alice, "later")
        assert service.rename(alice, tag.id, "soon").name == "soon"

    def test_duplicate_name_conflicts(self, service, alice):
        service.new(alice, "later")
        with pytest.raises(ConflictError):
            service.new(alice, "later")

    def test_rename_onto_existing_conflicts(self, service, alice):
        service.new(alice, "later")
        other = service.new(alice, "soon")
        with pytest.raises(ConflictError):
            service.rename(alice, other.id, "later")

    def test_empty_name_is_bad_request(self, service, alice):
        with pytest.raises(BadRequestError):
            service.new(alice, "")

    def test_delete(self, service, alice):
        tag = service.new(alice, "later")
        service.delete(alice, tag.id)
        with pytest.raises(NotFoundError):
            service.get(alice, tag.id)


class TestApplyTag:
    """Tests for tagging entries."""

    def test_apply_and_list_entries(self, service, alice, entries):
        tag = service.new(alice, "later")

        assert service.apply(alice, tag.id, [entries[0].id, entries[2].id]) == 2

        tagged, _ = service.entries(alice, tag.id, Page(newest_first=False))
        assert [e.guid for e in tagged] == ["a", "c"]

    def test_apply_twice_is_idempotent(self, service, alice, entries):
        tag = service.new(alice, "later")
        service.apply(alice, tag.id, [entries[0].id])
        assert service.apply(alice, tag.id, [entries[0].id]) == 0

    def test_apply_with_foreign_entry_tags_nothing(self, service, test_db, alice, bob, entries):
        bobs_feed = test_db.feeds.create(
            bob, test_db.categories.uncategorized(bob), "B", "https://example.com/b"
        )
        test_db.entries.add_many(bob, bobs_feed, make_entries("x"))
        foreign = test_db.entries.get_by_guid(bob, bobs_feed, "x")
        tag = service.new(alice, "later")

        with pytest.raises(NotFoundError):
            service.apply(alice, tag.id, [entries[0].id, foreign.id])

        tagged, _ = service.entries(alice, tag.id, Page())
        assert tagged == []

    def test_other_users_tag_not_found(self, service, alice, bob, entries):
        tag = service.new(alice, "later")
        with pytest.raises(NotFoundError):
            service.apply(bob, tag.id, [entries[0].id])
