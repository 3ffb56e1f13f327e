"""
Feed routes: subscriptions, entries, marking and stats.
"""

from fastapi import APIRouter

from ..schemas import (
    AddFeedRequest,
    EntryListResponse,
    FeedListResponse,
    FeedResponse,
    StatsResponse,
    UpdateFeedRequest,
)
from ..services import CurrentUser, FeedServiceDep
from .pagination import MarkerDep, PageDep

router = APIRouter(prefix="/feeds", tags=["feeds"])


# ─────────────────────────────────────────────────────────────
# Feed Management
# ─────────────────────────────────────────────────────────────

@router.get("")
async def list_feeds(
    service: FeedServiceDep,
    user: CurrentUser,
    continuation: str = "",
    count: int = 100
) -> FeedListResponse:
    """List all subscribed feeds."""
    feeds, next_token = service.list(user, continuation, count)
    return FeedListResponse(feeds=[FeedResponse.from_db(f) for f in feeds], continuation=next_token)


@router.post("", status_code=201)
async def add_feed(request: AddFeedRequest, service: FeedServiceDep, user: CurrentUser) -> FeedResponse:
    """Subscribe to a new feed and pull it once."""
    return FeedResponse.from_db(await service.new(user, request.title, request.subscription, request.category))


@router.get("/{feed_id}")
async def get_feed(feed_id: str, service: FeedServiceDep, user: CurrentUser) -> FeedResponse:
    return FeedResponse.from_db(service.get(user, feed_id))


@router.put("/{feed_id}")
async def update_feed(
    feed_id: str,
    request: UpdateFeedRequest,
    service: FeedServiceDep,
    user: CurrentUser
) -> FeedResponse:
    """Rename a feed or move it to another category."""
    return FeedResponse.from_db(service.update(user, feed_id, request.title, request.category))


@router.delete("/{feed_id}", status_code=204)
async def remove_feed(feed_id: str, service: FeedServiceDep, user: CurrentUser) -> None:
    """Unsubscribe from a feed."""
    service.delete(user, feed_id)


# ─────────────────────────────────────────────────────────────
# Entries
# ─────────────────────────────────────────────────────────────

@router.get("/{feed_id}/entries")
async def feed_entries(
    feed_id: str,
    page: PageDep,
    service: FeedServiceDep,
    user: CurrentUser
) -> EntryListResponse:
    return EntryListResponse.from_page(service.entries(user, feed_id, page))


@router.put("/{feed_id}/mark", status_code=204)
async def mark_feed(feed_id: str, marker: MarkerDep, service: FeedServiceDep, user: CurrentUser) -> None:
    service.mark(user, feed_id, marker)


@router.get("/{feed_id}/stats")
async def feed_stats(feed_id: str, service: FeedServiceDep, user: CurrentUser) -> StatsResponse:
    return StatsResponse.from_stats(service.stats(user, feed_id))
