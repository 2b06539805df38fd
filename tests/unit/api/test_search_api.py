"""Tests for GET /api/search/tracks."""

import re

from fastapi.testclient import TestClient
from pytest_httpx import HTTPXMock

from playlistcard.infrastructure.integrations.spotify_client import SpotifyClient

SEARCH_URL = re.compile(r"https://api\.spotify\.com/v1/search\?.*")

ITEM = {
    "id": "abc",
    "name": "Get Lucky",
    "artists": [{"name": "Daft Punk"}],
    "album": {"name": "Random Access Memories", "images": [{"url": "https://i.scdn.co/image/ram"}]},
}


def test_blank_query_returns_empty_list(client: TestClient) -> None:
    response = client.get("/api/search/tracks", params={"q": "   "})
    assert response.status_code == 200
    assert response.json() == []


def test_search_with_app_token(client: TestClient, httpx_mock: HTTPXMock) -> None:
    httpx_mock.add_response(
        method="POST", url=SpotifyClient.TOKEN_URL,
        json={"access_token": "app", "expires_in": 3600},
    )
    httpx_mock.add_response(method="GET", url=SEARCH_URL, json={"tracks": {"items": [ITEM]}})

    response = client.get("/api/search/tracks", params={"q": "get lucky"})

    assert response.status_code == 200
    assert response.json() == [
        {
            "id": "abc",
            "name": "Get Lucky",
            "artist": "Daft Punk",
            "album": "Random Access Memories",
            "image_url": "https://i.scdn.co/image/ram",
        }
    ]
    search_request = httpx_mock.get_requests(url=SEARCH_URL)[0]
    assert search_request.headers["Authorization"] == "Bearer app"


def test_user_token_skips_app_token(client: TestClient, httpx_mock: HTTPXMock) -> None:
    httpx_mock.add_response(method="GET", url=SEARCH_URL, json={"tracks": {"items": []}})

    response = client.get(
        "/api/search/tracks",
        params={"q": "x"},
        headers={"Authorization": "Bearer user-token"},
    )

    assert response.status_code == 200
    request = httpx_mock.get_request()
    assert request is not None
    assert request.headers["Authorization"] == "Bearer user-token"


def test_rejected_app_token_is_refreshed_once(
    client: TestClient, httpx_mock: HTTPXMock
) -> None:
    httpx_mock.add_response(
        method="POST", url=SpotifyClient.TOKEN_URL,
        json={"access_token": "stale", "expires_in": 3600},
    )
    httpx_mock.add_response(method="GET", url=SEARCH_URL, status_code=401)
    httpx_mock.add_response(
        method="POST", url=SpotifyClient.TOKEN_URL,
        json={"access_token": "fresh", "expires_in": 3600},
    )
    httpx_mock.add_response(method="GET", url=SEARCH_URL, json={"tracks": {"items": [ITEM]}})

    response = client.get("/api/search/tracks", params={"q": "get lucky"})

    assert response.status_code == 200
    assert len(response.json()) == 1
    searches = httpx_mock.get_requests(url=SEARCH_URL)
    assert [r.headers["Authorization"] for r in searches] == ["Bearer stale", "Bearer fresh"]


def test_rejected_user_token_is_401(client: TestClient, httpx_mock: HTTPXMock) -> None:
    httpx_mock.add_response(method="GET", url=SEARCH_URL, status_code=401)

    response = client.get(
        "/api/search/tracks", params={"q": "x"}, headers={"Authorization": "Bearer expired"}
    )

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_limit_is_validated(client: TestClient) -> None:
    response = client.get("/api/search/tracks", params={"q": "x", "limit": 0})
    assert response.status_code == 422
