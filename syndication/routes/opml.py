"""
OPML routes: export and import of a user's subscriptions.
"""

from fastapi import APIRouter, Request, Response

from ..schemas import OPMLImportResponse
from ..services import CurrentUser, OPMLServiceDep

router = APIRouter(prefix="/opml", tags=["opml"])


@router.get("")
async def export_opml(service: OPMLServiceDep, user: CurrentUser) -> Response:
    return Response(
        content=service.export_user(user),
        media_type="text/x-opml",
        headers={"Content-Disposition": "attachment; filename=subscriptions.opml"}
    )


@router.post("")
async def import_opml(request: Request, service: OPMLServiceDep, user: CurrentUser) -> OPMLImportResponse:
    """Import subscriptions from an OPML request body. Malformed documents import nothing."""
    return OPMLImportResponse(imported=service.import_user(user, await request.body()))
