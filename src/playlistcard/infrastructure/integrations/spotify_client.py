"""Spotify HTTP client: accounts service (tokens) + Web API (search, profile)."""

import asyncio
import logging
from typing import Any, cast
from urllib.parse import urlencode

import httpx

from playlistcard.config.settings import SpotifySettings
from playlistcard.domain.exceptions import ConfigurationError
from playlistcard.domain.ports import ISpotifyClient

logger = logging.getLogger(__name__)


class SpotifyClient(ISpotifyClient):
    """HTTP client for Spotify token exchange and Web API calls."""

    AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
    TOKEN_URL = "https://accounts.spotify.com/api/token"  # nosec B105 - public endpoint URL, not a password
    API_BASE_URL = "https://api.spotify.com/v1"

    # Spotify sometimes answers Retry-After: 3600 - we don't hold a request open that long
    MAX_RETRY_AFTER_SECONDS = 10

    # Hey future me, this init is deceptively simple - we DON'T create the HTTP client here
    # because we need to be async-friendly. The actual client gets lazy-loaded in _get_client().
    # Tests pass their own client (or let pytest-httpx patch the transport).
    def __init__(
        self, settings: SpotifySettings, client: httpx.AsyncClient | None = None
    ) -> None:
        """
        Initialize Spotify client.

        Args:
            settings: Spotify configuration settings
            client: Optional preconfigured httpx client
        """
        self.settings = settings
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=30.0)
        return self._client

    # Hey, this close() is IMPORTANT - if you don't call it, you'll leak connections. lifecycle.py
    # closes the app-wide instance on shutdown. A client handed in from outside is NOT closed here.
    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _require_credentials(self) -> None:
        if not self.settings.has_credentials:
            raise ConfigurationError(
                "Spotify credentials are not configured. "
                "Set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET in your environment/.env. "
                "Get credentials at https://developer.spotify.com/dashboard"
            )

    # Hey future me - CENTRALIZED Web API request. All api.spotify.com calls go through here so
    # 429 handling lives in one place: honour Retry-After (capped), retry up to max_retries,
    # then hand the 429 response back and let the caller's raise_for_status() deal with it.
    async def _api_request(
        self,
        method: str,
        url: str,
        access_token: str,
        params: dict[str, Any] | None = None,
        max_retries: int = 2,
    ) -> httpx.Response:
        """Make an API request with automatic retry on 429.

        Args:
            method: HTTP method
            url: Full URL to request
            access_token: Bearer token
            params: Query parameters
            max_retries: Max retries on 429

        Returns:
            httpx.Response object
        """
        client = await self._get_client()
        headers = {"Authorization": f"Bearer {access_token}"}

        for attempt in range(max_retries + 1):
            response = await client.request(
                method=method, url=url, params=params, headers=headers
            )
            if response.status_code != 429 or attempt >= max_retries:
                return response

            retry_after_str = response.headers.get("Retry-After")
            try:
                retry_after = int(retry_after_str) if retry_after_str else 1
            except ValueError:
                retry_after = 1
            wait_time = min(max(retry_after, 0), self.MAX_RETRY_AFTER_SECONDS)
            logger.warning(
                f"Spotify 429 Rate Limit (attempt {attempt + 1}/{max_retries}): "
                f"waiting {wait_time}s before retrying {url}"
            )
            await asyncio.sleep(wait_time)

        return response

    # Yo future me, client credentials = app-level token, no user involved. Good enough for
    # catalog search, NOT for /me. Spotify wants HTTP Basic auth with id:secret and a
    # form-encoded body - httpx's auth=(id, secret) builds that header for us.
    async def request_client_token(self) -> dict[str, Any]:
        """
        Get an app access token via the client credentials grant.

        Returns:
            Token response with access_token, token_type, expires_in

        Raises:
            ConfigurationError: If credentials are missing
            httpx.HTTPStatusError: If Spotify rejects the request
        """
        self._require_credentials()
        client = await self._get_client()

        response = await client.post(
            self.TOKEN_URL,
            data={"grant_type": "client_credentials"},
            auth=(self.settings.client_id, self.settings.client_secret),
        )
        response.raise_for_status()
        return cast(dict[str, Any], response.json())

    # Listen future me, this builds the URL to send users to Spotify for login. Scopes are minimal
    # (email + private profile) because all we show is the profile. redirect_uri MUST match the one
    # used in exchange_code() byte for byte or Spotify rejects the code.
    def get_authorization_url(self, state: str, redirect_uri: str) -> str:
        """
        Generate Spotify OAuth authorization URL.

        Args:
            state: Opaque state echoed back to the callback
            redirect_uri: Callback URL

        Returns:
            Authorization URL

        Raises:
            ConfigurationError: If client_id is not configured
        """
        if not self.settings.client_id.strip():
            raise ConfigurationError(
                "SPOTIFY_CLIENT_ID is not configured. "
                "Get credentials at https://developer.spotify.com/dashboard"
            )

        params = {
            "client_id": self.settings.client_id,
            "response_type": "code",
            "redirect_uri": redirect_uri,
            "scope": " ".join(self.settings.scopes),
            "state": state,
        }
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    # Yo future me, this is THE critical step after user auth. The code is single-use and expires
    # in 10 minutes. Body HAS to be form-urlencoded, not JSON.
    async def exchange_code(self, code: str, redirect_uri: str) -> dict[str, Any]:
        """
        Exchange authorization code for access token.

        Args:
            code: Authorization code
            redirect_uri: Callback URL used for the authorize request

        Returns:
            Token response with access_token, refresh_token, expires_in

        Raises:
            ConfigurationError: If credentials are missing
            httpx.HTTPStatusError: If Spotify rejects the code
        """
        self._require_credentials()
        client = await self._get_client()

        response = await client.post(
            self.TOKEN_URL,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
            },
            auth=(self.settings.client_id, self.settings.client_secret),
        )
        response.raise_for_status()
        return cast(dict[str, Any], response.json())

    async def search_tracks(
        self, query: str, access_token: str, limit: int = 10
    ) -> dict[str, Any]:
        """
        Search for tracks.

        Args:
            query: Search query
            access_token: Bearer token (app or user)
            limit: Maximum number of results

        Returns:
            Search results

        Raises:
            httpx.HTTPError: If the request fails
        """
        params: dict[str, Any] = {
            "q": query,
            "type": "track",
            "limit": limit,
        }

        response = await self._api_request(
            method="GET",
            url=f"{self.API_BASE_URL}/search",
            access_token=access_token,
            params=params,
        )
        response.raise_for_status()
        return cast(dict[str, Any], response.json())

    async def get_current_user(self, access_token: str) -> dict[str, Any]:
        """
        Get the current user's profile.

        Args:
            access_token: User bearer token

        Returns:
            User object (id, display_name, email, images, country, product, followers)

        Raises:
            httpx.HTTPError: If the request fails
        """
        response = await self._api_request(
            method="GET",
            url=f"{self.API_BASE_URL}/me",
            access_token=access_token,
        )
        response.raise_for_status()
        return cast(dict[str, Any], response.json())

    async def __aenter__(self) -> "SpotifyClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
