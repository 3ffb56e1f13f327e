"""
OPML service: import and export a user's subscriptions.
"""

import logging

from ..database import Database
from ..database.models import DBCategory, DBUser, UNCATEGORIZED
from ..opml import OPMLFeed, generate_opml, parse_opml

logger = logging.getLogger(__name__)


class OPMLService:
    """Service for OPML import/export."""

    def __init__(self, db: Database):
        self.db = db

    def export_user(self, user: DBUser) -> bytes:
        """
        Export the user's subscriptions as OPML 2.0.

        Each category becomes a folder of feeds; Uncategorized feeds sit at
        the top level.
        """
        categories = self._all_categories(user)
        names = {c.pk: None if c.is_uncategorized else c.name for c in categories}

        feeds = [
            OPMLFeed(url=feed.subscription, title=feed.title or None, category=names.get(feed.category_pk))
            for feed in self.db.feeds.get_all(user)
        ]
        folders = [c.name for c in categories if not c.is_uncategorized]
        return generate_opml(feeds, folders, title=f"{user.username} subscriptions").encode("utf-8")

    def import_user(self, user: DBUser, data: bytes | str) -> int:
        """
        Add the subscriptions in an OPML document to the user's account.

        Missing categories are created by name and feeds the user already
        subscribes to are skipped. Feeds are not pulled here; the next sync
        tick fetches them. Malformed documents import nothing.

        Returns:
            Number of feeds added
        """
        try:
            document = parse_opml(data)
        except ValueError as e:
            logger.debug(f"Ignoring unparsable OPML import for {user.username}: {e}")
            return 0

        resolved: dict[str, DBCategory] = {}

        def category_for(name: str | None) -> DBCategory:
            key = (name or UNCATEGORIZED).lower()
            if key not in resolved:
                if key == UNCATEGORIZED:
                    resolved[key] = self.db.categories.uncategorized(user)
                else:
                    resolved[key] = (
                        self.db.categories.get_by_name(user, name)
                        or self.db.categories.create(user, name)
                    )
            return resolved[key]

        for name in document.categories:
            category_for(name)

        added = 0
        for opml_feed in document.feeds:
            if self.db.feeds.get_by_subscription(user, opml_feed.url):
                continue
            category = category_for(opml_feed.category)
            self.db.feeds.create(user, category, opml_feed.title or "", opml_feed.url)
            added += 1

        logger.info(f"Imported {added} feeds from OPML for {user.username}")
        return added

    def _all_categories(self, user: DBUser) -> list[DBCategory]:
        categories: list[DBCategory] = []
        continuation = ""
        while True:
            page, continuation = self.db.categories.list(user, continuation)
            categories.extend(page)
            if not continuation:
                return categories
