"""
Query parameters shared by paginated listings.
"""

from typing import Annotated

from fastapi import Depends, Query

from ..database import Marker, Page


def page_params(
    continuation: str = "",
    count: int = 100,
    marker: str = "",
    newest_first: bool = True,
) -> Page:
    """Build a Page from the request's query string."""
    return Page(
        continuation=continuation,
        count=count,
        marker=Marker.from_string(marker),
        newest_first=newest_first,
    ).validate()


def marker_param(marker: Annotated[str, Query(alias="as")]) -> Marker:
    """Parse the ?as= marker of a mark request. The wildcard is rejected."""
    return Marker.from_string(marker).require_storable()


PageDep = Annotated[Page, Depends(page_params)]
MarkerDep = Annotated[Marker, Depends(marker_param)]
