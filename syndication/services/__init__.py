"""
Service layer for business logic.

Services encapsulate business logic, keeping routes as thin HTTP adapters.
Each service receives its dependencies via constructor injection.

Usage in routes:
    from ..services import CurrentUser, FeedServiceDep

    @router.get("/feeds")
    async def list_feeds(service: FeedServiceDep, user: CurrentUser):
        return service.list(user)
"""

from typing import Annotated

from fastapi import Depends

from ..auth import get_current_user
from ..config import get_db, state
from ..database import Database, DBUser

from .category_service import CategoryService
from .entry_service import EntryService
from .feed_service import FeedService
from .opml_service import OPMLService
from .tag_service import TagService
from .user_service import UserService

__all__ = [
    # Services
    "CategoryService",
    "EntryService",
    "FeedService",
    "OPMLService",
    "TagService",
    "UserService",
    # Dependency factories
    "get_category_service",
    "get_entry_service",
    "get_feed_service",
    "get_opml_service",
    "get_tag_service",
    # Type aliases for dependency injection
    "CategoryServiceDep",
    "CurrentUser",
    "EntryServiceDep",
    "FeedServiceDep",
    "OPMLServiceDep",
    "TagServiceDep",
]


def get_category_service(db: Annotated[Database, Depends(get_db)]) -> CategoryService:
    """Dependency to get CategoryService instance."""
    return CategoryService(db=db)


def get_feed_service(db: Annotated[Database, Depends(get_db)]) -> FeedService:
    """Dependency to get FeedService instance."""
    return FeedService(db=db, puller=state.puller)


def get_tag_service(db: Annotated[Database, Depends(get_db)]) -> TagService:
    """Dependency to get TagService instance."""
    return TagService(db=db)


def get_entry_service(db: Annotated[Database, Depends(get_db)]) -> EntryService:
    """Dependency to get EntryService instance."""
    return EntryService(db=db)


def get_opml_service(db: Annotated[Database, Depends(get_db)]) -> OPMLService:
    """Dependency to get OPMLService instance."""
    return OPMLService(db=db)


CurrentUser = Annotated[DBUser, Depends(get_current_user)]
CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]
FeedServiceDep = Annotated[FeedService, Depends(get_feed_service)]
TagServiceDep = Annotated[TagService, Depends(get_tag_service)]
EntryServiceDep = Annotated[EntryService, Depends(get_entry_service)]
OPMLServiceDep = Annotated[OPMLService, Depends(get_opml_service)]
