"""Dependency injection for API endpoints."""

import logging
from typing import cast

from fastapi import Header, HTTPException, Request

from playlistcard.application.services.auth_service import SpotifyAuthService
from playlistcard.application.services.catalog_service import CatalogService
from playlistcard.application.services.render.composer import PlaylistComposer
from playlistcard.config.settings import Settings
from playlistcard.domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


# Hey future me, every service is built ONCE in lifecycle.py and parked on app.state. If an
# attribute is missing the lifespan never ran (or crashed) - answer 503 instead of an
# AttributeError turning into a 500.
def _from_state(request: Request, name: str) -> object:
    if not hasattr(request.app.state, name):
        raise HTTPException(status_code=503, detail=f"{name} not initialized")
    return getattr(request.app.state, name)


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with."""
    return cast(Settings, _from_state(request, "settings"))


def get_auth_service(request: Request) -> SpotifyAuthService:
    return cast(SpotifyAuthService, _from_state(request, "auth_service"))


def get_catalog_service(request: Request) -> CatalogService:
    return cast(CatalogService, _from_state(request, "catalog_service"))


def get_composer(request: Request) -> PlaylistComposer:
    return cast(PlaylistComposer, _from_state(request, "composer"))


def _parse_bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_optional_bearer_token(
    authorization: str | None = Header(default=None),
) -> str | None:
    """Caller's bearer token if an Authorization: Bearer header was sent."""
    return _parse_bearer(authorization)


async def require_bearer_token(
    authorization: str | None = Header(default=None),
) -> str:
    """Caller's bearer token, 401 when absent."""
    token = _parse_bearer(authorization)
    if token is None:
        raise AuthenticationError("Missing bearer token - log in with Spotify first")
    return token
