"""Application services - catalog search, Spotify auth, playlist card rendering."""

from playlistcard.application.services.auth_service import (
    AppToken,
    SpotifyAuthService,
)
from playlistcard.application.services.catalog_service import CatalogService

__all__ = ["AppToken", "CatalogService", "SpotifyAuthService"]
