"""Spotify authentication service.

Hey future me - two unrelated token flows live here:

1. App token (client credentials). Used for catalog search when the caller has no user token.
   One token per process, cached in memory until shortly before it expires. No refresh token
   exists for this grant - we just ask again.

2. User login (authorization code). build_login_url() sends the browser to Spotify, Spotify
   sends it back to /api/auth/callback, handle_callback() trades the code for tokens and
   returns WHERE to redirect the browser next (the profile page, with tokens or an error code
   in the query string). The service stores nothing about users.

The public origin of the app is carried through the OAuth round trip inside `state`
(base64 JSON {"baseUrl": ...}), so the callback redirects back to the same host the login
started from even behind proxies.
"""

import asyncio
import base64
import binascii
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from playlistcard.application.services.catalog_service import raise_for_spotify_status
from playlistcard.config.settings import SpotifySettings
from playlistcard.domain.exceptions import ExternalServiceError
from playlistcard.domain.ports import ISpotifyClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppToken:
    """App-level bearer token and its remaining lifetime in seconds."""

    access_token: str
    expires_in: int


def encode_state(base_url: str) -> str:
    """Pack the app origin into the OAuth state parameter."""
    payload = json.dumps({"baseUrl": base_url}).encode()
    return base64.b64encode(payload).decode("ascii")


def decode_state(state: str | None) -> str | None:
    """Extract baseUrl from an OAuth state. Returns None for anything unparseable."""
    if not state:
        return None
    try:
        decoded = json.loads(base64.b64decode(state, validate=True))
    except (binascii.Error, ValueError) as e:
        logger.warning("Ignoring undecodable OAuth state: %s", e)
        return None
    if not isinstance(decoded, dict):
        return None
    base_url = decoded.get("baseUrl")
    return base_url if isinstance(base_url, str) and base_url else None


class SpotifyAuthService:
    """App token cache + OAuth login/callback handling."""

    # Refresh a bit early so a token never expires between "cached" and "used"
    TOKEN_EXPIRY_SKEW_SECONDS = 60

    def __init__(
        self,
        spotify_client: ISpotifyClient,
        settings: SpotifySettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._spotify = spotify_client
        self._settings = settings
        self._clock = clock
        self._app_token: str | None = None
        self._app_token_expires_at = 0.0
        self._lock = asyncio.Lock()

    # === App token ===

    async def get_app_token(self) -> AppToken:
        """Return a valid app token, fetching a new one only when needed.

        Raises:
            ConfigurationError: Credentials missing
            ExternalServiceError: Spotify refused or was unreachable
        """
        async with self._lock:
            now = self._clock()
            if self._app_token and now < self._app_token_expires_at:
                return AppToken(self._app_token, int(self._app_token_expires_at - now))

            try:
                data = await self._spotify.request_client_token()
            except httpx.HTTPStatusError as e:
                raise ExternalServiceError(
                    "Failed to get access token", http_status=e.response.status_code
                ) from e
            except httpx.HTTPError as e:
                raise ExternalServiceError(f"Spotify accounts service unreachable: {e}") from e

            expires_in = int(data.get("expires_in") or 3600)
            self._app_token = data["access_token"]
            self._app_token_expires_at = now + max(
                expires_in - self.TOKEN_EXPIRY_SKEW_SECONDS, 0
            )
            logger.info("Fetched new Spotify app token (expires in %ds)", expires_in)
            return AppToken(self._app_token, expires_in)

    def invalidate_app_token(self) -> None:
        """Forget the cached app token (e.g. after Spotify answered 401 with it)."""
        self._app_token = None
        self._app_token_expires_at = 0.0

    # === User login ===

    def redirect_uri(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}{self._settings.redirect_path}"

    def build_login_url(self, base_url: str) -> str:
        """Spotify authorize URL for a login started from base_url."""
        return self._spotify.get_authorization_url(
            state=encode_state(base_url), redirect_uri=self.redirect_uri(base_url)
        )

    def _profile_redirect(self, base_url: str, **params: str) -> str:
        url = f"{base_url.rstrip('/')}{self._settings.profile_path}"
        return f"{url}?{urlencode(params)}" if params else url

    # Listen future me, this NEVER raises. Every outcome is a redirect to the profile page,
    # the page reads `error` / the tokens from its query string. Order matters: an explicit
    # error from Spotify wins over a missing code.
    async def handle_callback(
        self,
        request_origin: str,
        code: str | None,
        error: str | None,
        state: str | None,
    ) -> str:
        """Finish the authorization code flow.

        Args:
            request_origin: Origin of the callback request, used when state has no baseUrl
            code: Authorization code from Spotify
            error: Error code from Spotify (e.g. "access_denied")
            state: State sent with the login URL

        Returns:
            Absolute URL to redirect the browser to
        """
        base_url = decode_state(state) or request_origin

        if error:
            logger.warning("Spotify login returned error: %s", error)
            return self._profile_redirect(base_url, error=error)
        if not code:
            return self._profile_redirect(base_url, error="no_code")

        try:
            data = await self._spotify.exchange_code(code, self.redirect_uri(base_url))
        except httpx.HTTPStatusError as e:
            details = self._error_details(e.response)
            logger.error(
                "Spotify token exchange rejected (%d): %s",
                e.response.status_code,
                details,
            )
            return self._profile_redirect(base_url, error="token_error", details=details)
        except Exception:
            logger.exception("Error exchanging code for token")
            return self._profile_redirect(base_url, error="exchange_error")

        logger.info("Spotify login completed")
        return self._profile_redirect(
            base_url,
            access_token=str(data.get("access_token") or ""),
            refresh_token=str(data.get("refresh_token") or ""),
            expires_in=str(data.get("expires_in") or ""),
        )

    @staticmethod
    def _error_details(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return str(body.get("error_description") or body.get("error") or "")
        return str(body)

    # === Profile ===

    async def get_user_profile(self, access_token: str) -> dict[str, Any]:
        """Spotify /me for a user token.

        Raises:
            AuthenticationError: Token missing scopes, expired or revoked (401)
            ExternalServiceError: Any other Spotify failure
        """
        try:
            return await self._spotify.get_current_user(access_token)
        except httpx.HTTPStatusError as e:
            raise_for_spotify_status(e, "load the user profile")
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Spotify profile request failed: {e}") from e
