"""
Entry routes: listing, marking and stats across all feeds.
"""

from fastapi import APIRouter

from ..schemas import EntryListResponse, EntryResponse, StatsResponse
from ..services import CurrentUser, EntryServiceDep
from .pagination import MarkerDep, PageDep

router = APIRouter(prefix="/entries", tags=["entries"])


@router.get("")
async def list_entries(page: PageDep, service: EntryServiceDep, user: CurrentUser) -> EntryListResponse:
    return EntryListResponse.from_page(service.list(user, page))


# Registered before /{entry_id} so the literal paths win
@router.put("/mark", status_code=204)
async def mark_all(marker: MarkerDep, service: EntryServiceDep, user: CurrentUser) -> None:
    service.mark_all(user, marker)


@router.get("/stats")
async def entry_stats(service: EntryServiceDep, user: CurrentUser) -> StatsResponse:
    return StatsResponse.from_stats(service.stats(user))


@router.get("/{entry_id}")
async def get_entry(entry_id: str, service: EntryServiceDep, user: CurrentUser) -> EntryResponse:
    return EntryResponse.from_db(service.get(user, entry_id))


@router.put("/{entry_id}/mark")
async def mark_entry(
    entry_id: str,
    marker: MarkerDep,
    service: EntryServiceDep,
    user: CurrentUser
) -> EntryResponse:
    return EntryResponse.from_db(service.mark(user, entry_id, marker))
