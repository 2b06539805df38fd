"""Application lifecycle management for startup and shutdown tasks.

This module holds the FastAPI lifespan context manager that builds the long-lived
services (Spotify client, auth/catalog services, playlist composer) and tears them down.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from playlistcard.application.services.auth_service import SpotifyAuthService
from playlistcard.application.services.catalog_service import CatalogService
from playlistcard.application.services.render.artwork_loader import ArtworkLoader
from playlistcard.application.services.render.composer import PlaylistComposer
from playlistcard.application.services.render.fonts import FontRegistry
from playlistcard.application.services.render.template import TemplateLoader
from playlistcard.config import Settings, get_settings
from playlistcard.infrastructure.integrations.http_pool import HttpClientPool
from playlistcard.infrastructure.integrations.spotify_client import SpotifyClient
from playlistcard.infrastructure.observability import configure_logging

logger = logging.getLogger(__name__)


def build_composer(settings: Settings) -> PlaylistComposer:
    """Wire a PlaylistComposer from render settings."""
    render = settings.render
    return PlaylistComposer(
        template_loader=TemplateLoader(render.template_path),
        artwork_loader=ArtworkLoader(
            timeout=render.artwork_timeout,
            allowed_hosts=render.artwork_allowed_hosts,
            max_bytes=render.artwork_max_bytes,
            max_pixels=render.artwork_max_pixels,
        ),
        fonts=FontRegistry(
            semibold_path=render.semibold_font_path,
            regular_path=render.regular_font_path,
        ),
        output_filename=render.output_filename,
    )


# Listen future me, @asynccontextmanager makes this a CONTEXT MANAGER for FastAPI lifespan!
# Everything before `yield` runs at STARTUP, everything after runs at SHUTDOWN. Services land
# on app.state so api/dependencies.py can hand them to routes. A missing template or missing
# Spotify credentials do NOT stop startup - they surface per request (FAILED render, 503).
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles:
    - Logging configuration
    - Spotify client + auth/catalog services
    - Playlist composer
    - HTTP client cleanup
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()
    app.state.settings = settings

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    spotify_client = SpotifyClient(settings.spotify)
    try:
        if not settings.spotify.has_credentials:
            logger.warning(
                "Spotify credentials not configured - token, search and login endpoints "
                "will answer 503 until SPOTIFY_CLIENT_ID/SPOTIFY_CLIENT_SECRET are set"
            )
        if not settings.render.template_path.is_file():
            logger.warning(
                "Template %s not found - playlist image exports will fail",
                settings.render.template_path,
            )

        app.state.spotify_client = spotify_client
        app.state.auth_service = SpotifyAuthService(spotify_client, settings.spotify)
        app.state.catalog_service = CatalogService(
            spotify_client, default_limit=settings.spotify.search_limit
        )
        app.state.composer = build_composer(settings)
        logger.info("Application startup complete")

        yield

    except Exception as e:
        logger.exception("Error during application startup: %s", e)
        raise
    finally:
        logger.info("Shutting down application")

        try:
            await spotify_client.close()
            logger.info("Spotify client closed")
        except Exception as e:
            logger.exception("Error closing Spotify client: %s", e)

        # Release the shared artwork connections
        try:
            await HttpClientPool.close()
        except Exception as e:
            logger.exception("Error closing HTTP client pool: %s", e)
