"""Ports (interfaces) the application layer depends on."""

from abc import ABC, abstractmethod
from typing import Any, Protocol


class ISpotifyClient(ABC):
    """Port for the Spotify Web API + accounts service."""

    @abstractmethod
    async def request_client_token(self) -> dict[str, Any]:
        """
        Get an app-level access token (client credentials grant).

        Returns:
            Token response with access_token, token_type, expires_in
        """
        pass

    @abstractmethod
    def get_authorization_url(self, state: str, redirect_uri: str) -> str:
        """
        Build the Spotify authorize URL for the authorization code flow.

        Args:
            state: Opaque state echoed back to the callback
            redirect_uri: Callback URL registered with Spotify

        Returns:
            Authorization URL
        """
        pass

    @abstractmethod
    async def exchange_code(self, code: str, redirect_uri: str) -> dict[str, Any]:
        """
        Exchange an authorization code for user tokens.

        Args:
            code: Authorization code from the callback
            redirect_uri: Must match the one used for the authorize URL

        Returns:
            Token response with access_token, refresh_token, expires_in
        """
        pass

    @abstractmethod
    async def search_tracks(
        self, query: str, access_token: str, limit: int = 10
    ) -> dict[str, Any]:
        """
        Search the catalog for tracks.

        Args:
            query: Free-text query
            access_token: Bearer token
            limit: Maximum number of results

        Returns:
            Raw Spotify search response
        """
        pass

    @abstractmethod
    async def get_current_user(self, access_token: str) -> dict[str, Any]:
        """
        Get the profile of the user owning the token.

        Args:
            access_token: User bearer token

        Returns:
            Raw Spotify user object
        """
        pass


class DownloadSink(Protocol):
    """Receiver of a finished export (the "file download").

    PlaylistComposer calls deliver() exactly once per successful run,
    and never for a failed one.
    """

    def deliver(self, filename: str, mime_type: str, data: bytes) -> None: ...


__all__ = ["DownloadSink", "ISpotifyClient"]
