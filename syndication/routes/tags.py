"""
Tag routes.
"""

from fastapi import APIRouter

from ..schemas import ApplyTagRequest, EntryListResponse, TagListResponse, TagRequest, TagResponse
from ..services import CurrentUser, TagServiceDep
from .pagination import PageDep

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("")
async def list_tags(
    service: TagServiceDep,
    user: CurrentUser,
    continuation: str = "",
    count: int = 100
) -> TagListResponse:
    tags, next_token = service.list(user, continuation, count)
    return TagListResponse(tags=[TagResponse.from_db(t) for t in tags], continuation=next_token)


@router.post("", status_code=201)
async def new_tag(request: TagRequest, service: TagServiceDep, user: CurrentUser) -> TagResponse:
    return TagResponse.from_db(service.new(user, request.name))


@router.get("/{tag_id}")
async def get_tag(tag_id: str, service: TagServiceDep, user: CurrentUser) -> TagResponse:
    return TagResponse.from_db(service.get(user, tag_id))


@router.put("/{tag_id}")
async def rename_tag(tag_id: str, request: TagRequest, service: TagServiceDep, user: CurrentUser) -> TagResponse:
    return TagResponse.from_db(service.rename(user, tag_id, request.name))


@router.delete("/{tag_id}", status_code=204)
async def delete_tag(tag_id: str, service: TagServiceDep, user: CurrentUser) -> None:
    service.delete(user, tag_id)


@router.put("/{tag_id}/entries", status_code=204)
async def apply_tag(
    tag_id: str,
    request: ApplyTagRequest,
    service: TagServiceDep,
    user: CurrentUser
) -> None:
    """Tag entries. One unknown entry id fails the whole request."""
    service.apply(user, tag_id, request.entries)


@router.get("/{tag_id}/entries")
async def tag_entries(tag_id: str, page: PageDep, service: TagServiceDep, user: CurrentUser) -> EntryListResponse:
    return EntryListResponse.from_page(service.entries(user, tag_id, page))
