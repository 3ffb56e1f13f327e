"""
Category routes: management, feeds, entries, marking and stats.
"""

from fastapi import APIRouter

from ..schemas import (
    AddFeedsRequest,
    CategoryListResponse,
    CategoryRequest,
    CategoryResponse,
    EntryListResponse,
    FeedListResponse,
    FeedResponse,
    StatsResponse,
)
from ..services import CategoryServiceDep, CurrentUser
from .pagination import MarkerDep, PageDep

router = APIRouter(prefix="/categories", tags=["categories"])


# ─────────────────────────────────────────────────────────────
# Category Management
# ─────────────────────────────────────────────────────────────

@router.get("")
async def list_categories(
    service: CategoryServiceDep,
    user: CurrentUser,
    continuation: str = "",
    count: int = 100
) -> CategoryListResponse:
    categories, next_token = service.list(user, continuation, count)
    return CategoryListResponse(
        categories=[CategoryResponse.from_db(c) for c in categories],
        continuation=next_token,
    )


@router.post("", status_code=201)
async def new_category(
    request: CategoryRequest,
    service: CategoryServiceDep,
    user: CurrentUser
) -> CategoryResponse:
    return CategoryResponse.from_db(service.new(user, request.name))


@router.get("/{category_id}")
async def get_category(category_id: str, service: CategoryServiceDep, user: CurrentUser) -> CategoryResponse:
    return CategoryResponse.from_db(service.get(user, category_id))


@router.put("/{category_id}")
async def rename_category(
    category_id: str,
    request: CategoryRequest,
    service: CategoryServiceDep,
    user: CurrentUser
) -> CategoryResponse:
    return CategoryResponse.from_db(service.rename(user, category_id, request.name))


@router.delete("/{category_id}", status_code=204)
async def delete_category(category_id: str, service: CategoryServiceDep, user: CurrentUser) -> None:
    """Delete a category. Its feeds move to Uncategorized."""
    service.delete(user, category_id)


# ─────────────────────────────────────────────────────────────
# Contents
# ─────────────────────────────────────────────────────────────

@router.get("/{category_id}/feeds")
async def category_feeds(
    category_id: str,
    service: CategoryServiceDep,
    user: CurrentUser,
    continuation: str = "",
    count: int = 100
) -> FeedListResponse:
    feeds, next_token = service.feeds(user, category_id, continuation, count)
    return FeedListResponse(feeds=[FeedResponse.from_db(f) for f in feeds], continuation=next_token)


@router.put("/{category_id}/feeds", status_code=204)
async def add_feeds(
    category_id: str,
    request: AddFeedsRequest,
    service: CategoryServiceDep,
    user: CurrentUser
) -> None:
    """Move feeds into the category."""
    service.add_feeds(user, category_id, request.feeds)


@router.get("/{category_id}/entries")
async def category_entries(
    category_id: str,
    page: PageDep,
    service: CategoryServiceDep,
    user: CurrentUser
) -> EntryListResponse:
    return EntryListResponse.from_page(service.entries(user, category_id, page))


@router.put("/{category_id}/mark", status_code=204)
async def mark_category(
    category_id: str,
    marker: MarkerDep,
    service: CategoryServiceDep,
    user: CurrentUser
) -> None:
    service.mark(user, category_id, marker)


@router.get("/{category_id}/stats")
async def category_stats(category_id: str, service: CategoryServiceDep, user: CurrentUser) -> StatsResponse:
    return StatsResponse.from_stats(service.stats(user, category_id))
