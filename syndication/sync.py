"""
Feed Synchronizer.

Background task that periodically pulls every user's subscriptions and
stores the entries it has not seen before.
"""

import asyncio
import logging
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING

from .database.converters import utcnow
from .exceptions import NotModifiedError, PullError

if TYPE_CHECKING:
    from .database import Database, DBFeed, DBUser
    from .puller import FeedPuller


logger = logging.getLogger(__name__)


async def pull_feed(db: "Database", puller: "FeedPuller", user: "DBUser", feed: "DBFeed") -> int:
    """
    Pull one feed and store its new entries. Returns the number inserted.

    A not-modified answer counts as a successful pull with no entries.

    Raises:
        PullError: If the feed is unreachable or its content is unusable
    """
    try:
        result = await puller.pull(feed.subscription, feed.etag, feed.last_modified)
    except NotModifiedError:
        logger.debug(f"Feed {feed.subscription} not modified")
        db.feeds.update_fetched(feed, utcnow())
        return 0

    inserted = db.entries.add_many(user, feed, result.entries)
    db.feeds.update_fetched(
        feed,
        utcnow(),
        title=None if feed.title else (result.title or None),
        source=result.link or None,
        etag=result.etag,
        last_modified=result.last_modified,
    )
    return inserted


class SyncState(Enum):
    IDLE = "idle"
    TICKING = "ticking"
    STOPPING = "stopping"


class Synchronizer:
    """
    Background scheduler for feed synchronization.

    Every interval, one tick walks all users and pulls each of their feeds
    with at most `workers` pulls in flight. Failures are isolated per feed.
    """

    def __init__(
        self,
        db: "Database",
        puller: "FeedPuller",
        interval: timedelta = timedelta(minutes=15),
        workers: int = 4,
        delete_after_days: int = 0,
        shutdown_timeout: float = 30.0,
    ):
        self.db = db
        self.puller = puller
        self.interval = interval
        self.workers = max(1, workers)
        self.delete_after_days = delete_after_days
        self.shutdown_timeout = shutdown_timeout
        self._state = SyncState.IDLE
        self._task: asyncio.Task | None = None
        self._wakeup = asyncio.Event()
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def state(self) -> SyncState:
        return self._state

    async def start(self):
        """Start the periodic loop."""
        if self._task is not None or self._state is SyncState.STOPPING:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Synchronizer started (interval: {self.interval})")

    async def stop(self):
        """
        Stop the loop and wait for the running tick to drain.

        The wait is bounded by shutdown_timeout; a tick still running after
        that is cancelled.
        """
        self._state = SyncState.STOPPING
        self._wakeup.set()

        try:
            await asyncio.wait_for(self._idle.wait(), timeout=self.shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning("Synchronizer did not drain in time, cancelling")
            if self._task is not None:
                self._task.cancel()

        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Synchronizer stopped")

    async def tick(self) -> int:
        """
        Run one synchronization pass over every user.

        Returns the number of new entries stored. Does nothing once stopping.
        """
        if self._state is SyncState.STOPPING:
            logger.warning("Synchronizer is stopping, tick skipped")
            return 0
        if not self._idle.is_set():
            logger.warning("Previous tick still running, tick skipped")
            return 0

        self._idle.clear()
        self._state = SyncState.TICKING
        started = utcnow()
        total = 0
        try:
            for user in self._all_users():
                if self._state is SyncState.STOPPING:
                    break
                total += await self.sync_user(user)
        finally:
            if self._state is SyncState.TICKING:
                self._state = SyncState.IDLE
            self._idle.set()

        elapsed = (utcnow() - started).total_seconds()
        logger.info(f"Sync tick stored {total} new entries in {elapsed:.1f}s")
        return total

    async def sync_user(self, user: "DBUser") -> int:
        """Pull all of one user's feeds, then apply entry retention."""
        semaphore = asyncio.Semaphore(self.workers)

        async def bounded(feed: "DBFeed") -> int:
            async with semaphore:
                return await self.sync_feed(user, feed)

        counts = await asyncio.gather(*(bounded(feed) for feed in self.db.feeds.get_all(user)))

        if self.delete_after_days > 0:
            cutoff = utcnow() - timedelta(days=self.delete_after_days)
            purged = self.db.entries.delete_older_than(user, cutoff)
            if purged:
                logger.info(f"Purged {purged} old entries for {user.username}")

        return sum(counts)

    async def sync_feed(self, user: "DBUser", feed: "DBFeed") -> int:
        """Pull one feed. Errors are logged and reported as zero new entries."""
        try:
            inserted = await pull_feed(self.db, self.puller, user, feed)
        except PullError as e:
            logger.warning(f"Failed to pull {feed.subscription}: {e}")
            return 0
        except Exception as e:
            logger.exception(f"Error syncing feed {feed.id}: {e}")
            return 0

        if inserted:
            logger.debug(f"Feed {feed.subscription}: {inserted} new entries")
        return inserted

    def _all_users(self):
        continuation = ""
        while True:
            users, continuation = self.db.users.list(continuation)
            yield from users
            if not continuation:
                return

    async def _loop(self):
        """Main sync loop."""
        while self._state is not SyncState.STOPPING:
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=self.interval.total_seconds())
            except asyncio.TimeoutError:
                pass
            if self._state is SyncState.STOPPING:
                break

            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception(f"Error in sync loop: {e}")
