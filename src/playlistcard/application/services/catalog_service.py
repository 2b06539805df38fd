"""Catalog search: Spotify search results -> Track entities."""

import logging
from typing import Any, NoReturn

import httpx

from playlistcard.domain.entities import Track
from playlistcard.domain.exceptions import (
    AuthenticationError,
    ExternalServiceError,
    RateLimitExceededError,
)
from playlistcard.domain.ports import ISpotifyClient

logger = logging.getLogger(__name__)


def track_from_spotify(item: dict[str, Any]) -> Track:
    """Map one Spotify track object to a Track.

    Only the FIRST artist and the FIRST (largest) album image are kept; the card has
    room for one of each.
    """
    artists = item.get("artists") or []
    album = item.get("album") or {}
    images = album.get("images") or []
    return Track(
        id=str(item.get("id") or ""),
        name=item.get("name") or "",
        artist=(artists[0].get("name") or "") if artists else "",
        album=album.get("name") or "",
        image_url=(images[0].get("url") or "") if images else "",
    )


def raise_for_spotify_status(e: httpx.HTTPStatusError, action: str) -> NoReturn:
    """Translate a Spotify HTTP error into the domain exception family. Always raises."""
    status_code = e.response.status_code
    if status_code == 401:
        raise AuthenticationError(
            f"Spotify rejected the access token while trying to {action}"
        ) from e
    if status_code == 429:
        retry_after = e.response.headers.get("Retry-After")
        raise RateLimitExceededError(
            f"Spotify rate limit hit while trying to {action}",
            retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
        ) from e
    raise ExternalServiceError(
        f"Spotify API error while trying to {action}: {status_code}",
        http_status=status_code,
    ) from e


class CatalogService:
    """Track search used by the track picker."""

    def __init__(self, spotify_client: ISpotifyClient, default_limit: int = 10) -> None:
        self._spotify = spotify_client
        self._default_limit = default_limit

    async def search_tracks(
        self, query: str, access_token: str, limit: int | None = None
    ) -> list[Track]:
        """Search tracks by free text.

        Args:
            query: What the user typed; blank means "no search"
            access_token: Bearer token (user token or app token)
            limit: Max results, defaults to the configured search limit

        Returns:
            Tracks in Spotify's relevance order

        Raises:
            AuthenticationError: Token rejected (401)
            RateLimitExceededError: Spotify kept answering 429
            ExternalServiceError: Any other Spotify failure
        """
        query = query.strip()
        if not query:
            return []

        try:
            response = await self._spotify.search_tracks(
                query, access_token, limit=limit or self._default_limit
            )
        except httpx.HTTPStatusError as e:
            raise_for_spotify_status(e, "search tracks")
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Spotify search failed: {e}") from e

        items = (response.get("tracks") or {}).get("items") or []
        tracks = [track_from_spotify(item) for item in items if item]
        logger.debug("Search %r returned %d tracks", query, len(tracks))
        return tracks
