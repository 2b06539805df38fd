"""Tests for SpotifyClient against a mocked Spotify (pytest-httpx)."""

import base64
import re
from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
from pytest_httpx import HTTPXMock

from playlistcard.config.settings import SpotifySettings
from playlistcard.domain.exceptions import ConfigurationError
from playlistcard.infrastructure.integrations.spotify_client import SpotifyClient

SEARCH_URL = re.compile(r"https://api\.spotify\.com/v1/search\?.*")


@pytest.fixture
async def http_client():
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture
def spotify(http_client: httpx.AsyncClient) -> SpotifyClient:
    return SpotifyClient(
        SpotifySettings(client_id="my-id", client_secret="my-secret"), client=http_client
    )


class TestClientCredentials:
    async def test_posts_basic_auth_form(
        self, spotify: SpotifyClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            method="POST",
            url=SpotifyClient.TOKEN_URL,
            json={"access_token": "app", "token_type": "Bearer", "expires_in": 3600},
        )

        data = await spotify.request_client_token()

        assert data["access_token"] == "app"
        request = httpx_mock.get_request()
        assert request is not None
        expected = base64.b64encode(b"my-id:my-secret").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"
        assert request.content == b"grant_type=client_credentials"

    async def test_missing_credentials_never_call_spotify(
        self, http_client: httpx.AsyncClient
    ) -> None:
        client = SpotifyClient(SpotifySettings(client_id="", client_secret=""), client=http_client)
        with pytest.raises(ConfigurationError):
            await client.request_client_token()

    async def test_rejection_raises_status_error(
        self, spotify: SpotifyClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            method="POST", url=SpotifyClient.TOKEN_URL, status_code=400,
            json={"error": "invalid_client"},
        )
        with pytest.raises(httpx.HTTPStatusError):
            await spotify.request_client_token()


class TestAuthorizationCode:
    def test_authorization_url(self, spotify: SpotifyClient) -> None:
        url = spotify.get_authorization_url(
            state="abc", redirect_uri="http://localhost:8000/api/auth/callback"
        )

        parts = urlsplit(url)
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == SpotifyClient.AUTHORIZE_URL
        assert parse_qs(parts.query) == {
            "client_id": ["my-id"],
            "response_type": ["code"],
            "redirect_uri": ["http://localhost:8000/api/auth/callback"],
            "scope": ["user-read-email user-read-private"],
            "state": ["abc"],
        }

    def test_authorization_url_requires_client_id(self) -> None:
        client = SpotifyClient(SpotifySettings(client_id=" ", client_secret="x"))
        with pytest.raises(ConfigurationError):
            client.get_authorization_url(state="s", redirect_uri="http://x/cb")

    async def test_exchange_code(self, spotify: SpotifyClient, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            method="POST",
            url=SpotifyClient.TOKEN_URL,
            json={"access_token": "user", "refresh_token": "r", "expires_in": 3600},
        )

        data = await spotify.exchange_code("the-code", "http://app/api/auth/callback")

        assert data["refresh_token"] == "r"
        request = httpx_mock.get_request()
        assert request is not None
        assert parse_qs(request.content.decode()) == {
            "grant_type": ["authorization_code"],
            "code": ["the-code"],
            "redirect_uri": ["http://app/api/auth/callback"],
        }


class TestWebApi:
    async def test_search_sends_bearer_and_params(
        self, spotify: SpotifyClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(method="GET", url=SEARCH_URL, json={"tracks": {"items": []}})

        data = await spotify.search_tracks("daft punk", "tok", limit=5)

        assert data == {"tracks": {"items": []}}
        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["Authorization"] == "Bearer tok"
        assert parse_qs(request.url.query.decode()) == {
            "q": ["daft punk"],
            "type": ["track"],
            "limit": ["5"],
        }

    async def test_current_user(self, spotify: SpotifyClient, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            method="GET", url="https://api.spotify.com/v1/me", json={"id": "me"}
        )
        assert await spotify.get_current_user("tok") == {"id": "me"}

    async def test_current_user_401(self, spotify: SpotifyClient, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(method="GET", url="https://api.spotify.com/v1/me", status_code=401)
        with pytest.raises(httpx.HTTPStatusError):
            await spotify.get_current_user("expired")


class TestRateLimitRetry:
    async def test_retries_after_429(
        self, spotify: SpotifyClient, httpx_mock: HTTPXMock, mocker
    ) -> None:
        sleep = mocker.patch(
            "playlistcard.infrastructure.integrations.spotify_client.asyncio.sleep",
            new_callable=AsyncMock,
        )
        httpx_mock.add_response(
            method="GET", url=SEARCH_URL, status_code=429, headers={"Retry-After": "3"}
        )
        httpx_mock.add_response(method="GET", url=SEARCH_URL, json={"tracks": {"items": []}})

        data = await spotify.search_tracks("q", "tok")

        assert data == {"tracks": {"items": []}}
        sleep.assert_awaited_once_with(3)

    async def test_retry_after_is_capped(
        self, spotify: SpotifyClient, httpx_mock: HTTPXMock, mocker
    ) -> None:
        sleep = mocker.patch(
            "playlistcard.infrastructure.integrations.spotify_client.asyncio.sleep",
            new_callable=AsyncMock,
        )
        httpx_mock.add_response(
            method="GET", url=SEARCH_URL, status_code=429, headers={"Retry-After": "3600"}
        )
        httpx_mock.add_response(method="GET", url=SEARCH_URL, json={"tracks": {"items": []}})

        await spotify.search_tracks("q", "tok")

        sleep.assert_awaited_once_with(SpotifyClient.MAX_RETRY_AFTER_SECONDS)

    async def test_gives_up_after_max_retries(
        self, spotify: SpotifyClient, httpx_mock: HTTPXMock, mocker
    ) -> None:
        mocker.patch(
            "playlistcard.infrastructure.integrations.spotify_client.asyncio.sleep",
            new_callable=AsyncMock,
        )
        for _ in range(3):
            httpx_mock.add_response(method="GET", url=SEARCH_URL, status_code=429)

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await spotify.search_tracks("q", "tok")

        assert exc_info.value.response.status_code == 429
        assert len(httpx_mock.get_requests()) == 3


class TestLifecycle:
    async def test_injected_client_is_not_closed(self, http_client: httpx.AsyncClient) -> None:
        client = SpotifyClient(SpotifySettings(), client=http_client)
        await client.close()
        assert not http_client.is_closed

    async def test_owned_client_is_closed(self) -> None:
        client = SpotifyClient(SpotifySettings())
        inner = await client._get_client()
        await client.close()
        assert inner.is_closed
