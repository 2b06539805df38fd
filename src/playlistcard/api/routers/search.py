"""Track search endpoint used by the track picker."""

import logging

from fastapi import APIRouter, Depends, Query

from playlistcard.api.dependencies import (
    get_auth_service,
    get_catalog_service,
    get_optional_bearer_token,
)
from playlistcard.api.schemas.tracks import TrackSchema
from playlistcard.application.services.auth_service import SpotifyAuthService
from playlistcard.application.services.catalog_service import CatalogService
from playlistcard.domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

router = APIRouter()


# Hey future me - the browser MAY send its own user token. Without one we search with the
# cached app token. If Spotify rejects OUR app token (revoked early, clock skew) we drop it and
# retry exactly once with a fresh one; a rejected USER token is the caller's problem -> 401.
@router.get("/tracks", response_model=list[TrackSchema])
async def search_tracks(
    q: str = Query(default="", description="Free-text search query"),
    limit: int | None = Query(default=None, ge=1, le=50),
    bearer_token: str | None = Depends(get_optional_bearer_token),
    catalog: CatalogService = Depends(get_catalog_service),
    auth_service: SpotifyAuthService = Depends(get_auth_service),
) -> list[TrackSchema]:
    """Search Spotify tracks. Blank query returns an empty list without calling Spotify."""
    if not q.strip():
        return []

    if bearer_token is not None:
        tracks = await catalog.search_tracks(q, bearer_token, limit=limit)
    else:
        token = await auth_service.get_app_token()
        try:
            tracks = await catalog.search_tracks(q, token.access_token, limit=limit)
        except AuthenticationError:
            logger.warning("Cached app token rejected by Spotify, fetching a new one")
            auth_service.invalidate_app_token()
            token = await auth_service.get_app_token()
            tracks = await catalog.search_tracks(q, token.access_token, limit=limit)

    return [TrackSchema.from_entity(track) for track in tracks]
