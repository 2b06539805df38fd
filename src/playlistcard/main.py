"""FastAPI application factory.

Run with:
    uvicorn playlistcard.main:app --reload
"""

from fastapi import FastAPI

from playlistcard import __version__
from playlistcard.api.exception_handlers import register_exception_handlers
from playlistcard.api.routers import api_router, health
from playlistcard.config import Settings, get_settings
from playlistcard.infrastructure.lifecycle import lifespan
from playlistcard.infrastructure.observability import RequestLoggingMiddleware


# Hey future me - tests call create_app(Settings(...)) so they never touch env vars or the
# get_settings() cache. The settings land on app.state BEFORE the lifespan runs; lifespan
# reads them from there.
def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Explicit settings; defaults to get_settings()

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Playlist Card",
        description="Search Spotify, pick 12 tracks, download them as a playlist card image.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")
    app.include_router(health.router, prefix="/health", tags=["Health"])

    return app


app = create_app()
