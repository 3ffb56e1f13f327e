"""
Syndication API Server

FastAPI application providing endpoints for:
- Registration, login and token renewal
- Category, feed and tag management
- Entry listing, marking and stats
- OPML import/export

Alongside the API, the lifespan runs the feed synchronizer and the admin
channel, and stops both on shutdown.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .admin import AdminService
from .auth import AuthService
from .config import config, state
from .database import Database
from .exceptions import (
    BadRequestError,
    ConfigError,
    ConflictError,
    NotFoundError,
    ProtectedError,
    SyndicationError,
    UnauthorizedError,
)
from .puller import FeedPuller
from .routes import (
    auth_router,
    categories_router,
    entries_router,
    feeds_router,
    opml_router,
    tags_router,
)
from .sync import Synchronizer

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFoundError: 404,
    ConflictError: 409,
    UnauthorizedError: 401,
    ProtectedError: 403,
    BadRequestError: 400,
}


def open_database() -> Database:
    """
    Open the configured Store backend.

    Raises:
        ConfigError: For backends this build does not ship
    """
    if config.DB_TYPE != "sqlite":
        raise ConfigError(f"Database type {config.DB_TYPE} is not supported by this build")
    return Database(Path(config.DB_CONNECTION))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup application resources."""
    # Startup - skip if already initialized (e.g., by tests)
    if state.db is None:
        config.validate()
        state.db = open_database()
        state.auth = AuthService(
            state.db,
            config.auth_secret(),
            access_ttl=config.access_key_ttl(),
            refresh_ttl=config.refresh_key_ttl(),
        )
        state.puller = FeedPuller(timeout=config.pull_timeout())
        state.synchronizer = Synchronizer(
            state.db,
            state.puller,
            interval=config.sync_interval(),
            workers=config.SYNC_WORKERS,
            delete_after_days=config.SYNC_DELETE_AFTER_DAYS,
            shutdown_timeout=config.shutdown_timeout(),
        )
        state.admin = AdminService(
            state.db,
            config.ADMIN_SOCKET_PATH,
            max_connections=config.ADMIN_MAX_CONNECTIONS,
            shutdown_timeout=config.shutdown_timeout(),
        )
        await state.admin.start()
        await state.synchronizer.start()

    yield

    # Shutdown
    if state.synchronizer:
        await state.synchronizer.stop()
    if state.admin:
        await state.admin.stop()


app = FastAPI(
    title="Syndication API",
    version=__version__,
    lifespan=lifespan
)


@app.exception_handler(SyndicationError)
async def syndication_error_handler(request: Request, exc: SyndicationError) -> JSONResponse:
    """Translate error kinds into HTTP statuses."""
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
            return JSONResponse(status_code=status_code, content={"detail": exc.message}, headers=headers)

    logger.error(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/status", tags=["misc"])
async def health_check() -> dict:
    """API health check."""
    return {
        "status": "ok",
        "version": __version__,
        "sync_state": state.synchronizer.state.value if state.synchronizer else None,
    }


# Include routers
app.include_router(auth_router)
app.include_router(categories_router)
app.include_router(feeds_router)
app.include_router(tags_router)
app.include_router(entries_router)
app.include_router(opml_router)
