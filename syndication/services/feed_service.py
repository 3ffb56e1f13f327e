"""
Feed service: business logic for feed subscriptions.

Handles subscribing with an eager first pull, editing, and per-feed
entry listing, marking and stats.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..database import Database
from ..database.models import DBEntry, DBFeed, DBUser, Marker, Page, Stats
from ..exceptions import BadRequestError, PullError, require_category, require_feed
from ..sync import pull_feed

if TYPE_CHECKING:
    from ..puller import FeedPuller

logger = logging.getLogger(__name__)


class FeedService:
    """Service for feed-related business logic."""

    def __init__(self, db: Database, puller: "FeedPuller | None" = None):
        self.db = db
        self.puller = puller

    # ─────────────────────────────────────────────────────────────
    # Feed Management
    # ─────────────────────────────────────────────────────────────

    async def new(
        self,
        user: DBUser,
        title: str,
        subscription: str,
        category_id: str | None = None
    ) -> DBFeed:
        """
        Subscribe to a feed.

        The feed is created in the given category, or Uncategorized when
        none is given, then pulled once. A failed pull is logged; the
        subscription is kept either way.

        Args:
            user: Owner of the new feed
            title: Display title, may be empty to use the publisher's title
            subscription: Feed URL
            category_id: Category to file the feed under

        Returns:
            The created feed, reflecting the first pull if it succeeded

        Raises:
            NotFoundError: If the user has no such category
        """
        subscription = (subscription or "").strip()
        if not subscription:
            raise BadRequestError("Subscription URL cannot be empty")

        if category_id:
            category = require_category(self.db.categories.get(user, category_id))
        else:
            category = self.db.categories.uncategorized(user)
        feed = self.db.feeds.create(user, category, (title or "").strip(), subscription)

        if self.puller is not None:
            try:
                inserted = await pull_feed(self.db, self.puller, user, feed)
                logger.info(f"Subscribed {user.username} to {subscription} ({inserted} entries)")
            except PullError as e:
                logger.warning(f"First pull of {subscription} failed: {e}")

        return require_feed(self.db.feeds.get(user, feed.id))

    def get(self, user: DBUser, feed_id: str) -> DBFeed:
        return require_feed(self.db.feeds.get(user, feed_id))

    def list(self, user: DBUser, continuation: str = "", count: int = 100) -> tuple[list[DBFeed], str]:
        return self.db.feeds.list(user, continuation=continuation, count=count)

    def update(
        self,
        user: DBUser,
        feed_id: str,
        title: str | None = None,
        category_id: str | None = None
    ) -> DBFeed:
        """
        Edit a feed's title or move it to another category.

        Raises:
            NotFoundError: If the feed or target category is not the user's
            BadRequestError: If the new title is empty
        """
        if title is not None:
            title = title.strip()
            if not title:
                raise BadRequestError("Feed title cannot be empty")
        category = None
        if category_id is not None:
            category = require_category(self.db.categories.get(user, category_id))
        return self.db.feeds.update(user, feed_id, title=title, category=category)

    def delete(self, user: DBUser, feed_id: str) -> None:
        """Unsubscribe from a feed, removing its entries."""
        self.db.feeds.delete(user, feed_id)

    # ─────────────────────────────────────────────────────────────
    # Entries
    # ─────────────────────────────────────────────────────────────

    def entries(self, user: DBUser, feed_id: str, page: Page) -> tuple[list[DBEntry], str]:
        feed = self.get(user, feed_id)
        return self.db.entries.list(user, page, feed=feed)

    def mark(self, user: DBUser, feed_id: str, marker: Marker) -> int:
        feed = self.get(user, feed_id)
        return self.db.entries.mark_feed(user, feed, marker)

    def stats(self, user: DBUser, feed_id: str) -> Stats:
        feed = self.get(user, feed_id)
        return self.db.entries.stats(user, feed=feed)
