"""
API route modules.
"""

from .auth import router as auth_router
from .categories import router as categories_router
from .entries import router as entries_router
from .feeds import router as feeds_router
from .opml import router as opml_router
from .tags import router as tags_router

__all__ = [
    "auth_router",
    "categories_router",
    "entries_router",
    "feeds_router",
    "opml_router",
    "tags_router",
]
