"""External service integrations."""

from playlistcard.infrastructure.integrations.http_pool import HttpClientPool
from playlistcard.infrastructure.integrations.spotify_client import SpotifyClient

__all__ = ["HttpClientPool", "SpotifyClient"]
