"""Spotify authentication endpoints: app token, login redirect, OAuth callback."""

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse

from playlistcard.api.dependencies import get_auth_service
from playlistcard.api.schemas.auth import AppTokenResponse
from playlistcard.application.services.auth_service import SpotifyAuthService

logger = logging.getLogger(__name__)

router = APIRouter()


def _request_origin(request: Request) -> str:
    return str(request.base_url).rstrip("/")


@router.get("/spotify/token", response_model=AppTokenResponse)
async def get_app_token(
    auth_service: SpotifyAuthService = Depends(get_auth_service),
) -> AppTokenResponse:
    """App-level token for catalog search (client credentials grant).

    503 when SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET are not set, Spotify's own status
    when the accounts service refuses.
    """
    token = await auth_service.get_app_token()
    return AppTokenResponse(access_token=token.access_token, expires_in=token.expires_in)


@router.get("/auth/login")
async def login(
    request: Request,
    auth_service: SpotifyAuthService = Depends(get_auth_service),
) -> RedirectResponse:
    """Send the browser to Spotify's consent page."""
    url = auth_service.build_login_url(_request_origin(request))
    return RedirectResponse(url=url, status_code=307)


# Yo, Spotify redirects the BROWSER here, so every outcome is another redirect (to the profile
# page) rather than a JSON error. handle_callback() picks the target.
@router.get("/auth/callback")
async def callback(
    request: Request,
    code: str | None = Query(default=None),
    error: str | None = Query(default=None),
    state: str | None = Query(default=None),
    auth_service: SpotifyAuthService = Depends(get_auth_service),
) -> RedirectResponse:
    """OAuth callback: exchange the code and redirect to the profile page."""
    target = await auth_service.handle_callback(
        request_origin=_request_origin(request),
        code=code,
        error=error,
        state=state,
    )
    return RedirectResponse(url=target, status_code=307)
