"""Tests for the playlist image endpoints."""

import base64
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient
from pytest_httpx import HTTPXMock

from playlistcard.application.services.render.composer import PlaylistComposer
from playlistcard.config.settings import Settings
from playlistcard.domain.exceptions import ComposerBusyError
from playlistcard.main import create_app

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def slot(index: int, image_url: str = "") -> dict[str, Any]:
    return {
        "id": f"t{index}",
        "name": f"Song {index}",
        "artist": f"Artist {index}",
        "album": f"Album {index}",
        "image_url": image_url,
    }


def body_with(*filled: dict[str, Any]) -> dict[str, Any]:
    slots: list[dict[str, Any] | None] = list(filled)
    slots.extend([None] * (12 - len(slots)))
    return {"slots": slots}


def parse_sse(text: str) -> list[tuple[str, dict[str, Any]]]:
    events: list[tuple[str, dict[str, Any]]] = []
    name, data = "message", ""
    for line in text.splitlines():
        if line.startswith("event:"):
            name = line.partition(":")[2].strip()
        elif line.startswith("data:"):
            data = line.partition(":")[2].strip()
        elif not line and data:
            events.append((name, json.loads(data)))
            name, data = "message", ""
    if data:
        events.append((name, json.loads(data)))
    return events


class TestImageDownload:
    def test_returns_png_attachment(
        self, client: TestClient, httpx_mock: HTTPXMock, png_factory: Callable[..., bytes]
    ) -> None:
        httpx_mock.add_response(url="https://i.scdn.co/image/a", content=png_factory("blue"))
        httpx_mock.add_response(url="https://i.scdn.co/image/b", content=png_factory("green"))

        response = client.post(
            "/api/playlist/image",
            json=body_with(
                slot(0, "https://i.scdn.co/image/a"),
                slot(1, "https://i.scdn.co/image/b"),
                slot(2),
            ),
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.headers["content-disposition"] == 'attachment; filename="my-playlist.png"'
        assert response.content.startswith(PNG_SIGNATURE)

    def test_all_empty_slots_still_render(self, client: TestClient) -> None:
        response = client.post("/api/playlist/image", json=body_with())

        assert response.status_code == 200
        assert response.content.startswith(PNG_SIGNATURE)

    def test_wrong_slot_count_is_422(self, client: TestClient) -> None:
        response = client.post("/api/playlist/image", json={"slots": [None] * 11})
        assert response.status_code == 422

    def test_missing_template_is_500_with_status_trail(
        self, tmp_path: Path, settings_factory: Callable[..., Settings]
    ) -> None:
        settings = settings_factory(tmp_path / "missing.jpg")
        with TestClient(create_app(settings)) as client:
            response = client.post("/api/playlist/image", json=body_with(slot(0)))

        assert response.status_code == 500
        body = response.json()
        assert body["state"] == "failed"
        assert body["detail"] == "Failed to load the template"
        assert [e["state"] for e in body["events"]] == ["loading_template", "failed"]

    def test_concurrent_export_is_409(self, client: TestClient) -> None:
        composer = MagicMock(spec=PlaylistComposer)
        composer.generate = AsyncMock(side_effect=ComposerBusyError())
        client.app.state.composer = composer

        response = client.post("/api/playlist/image", json=body_with())

        assert response.status_code == 409
        assert response.json() == {"detail": "A playlist image is already being generated"}


class TestImageEvents:
    def test_streams_status_then_done(self, client: TestClient) -> None:
        response = client.post("/api/playlist/image/events", json=body_with(slot(0)))

        assert response.status_code == 200
        events = parse_sse(response.text)
        names = [name for name, _ in events]
        assert names[-1] == "done"
        assert set(names[:-1]) == {"status"}
        assert events[0][1] == {"state": "loading_template", "message": "Loading template..."}

        done = events[-1][1]
        assert done["filename"] == "my-playlist.png"
        assert done["mime_type"] == "image/png"
        assert base64.b64decode(done["data"]).startswith(PNG_SIGNATURE)

    def test_streams_failure(
        self, tmp_path: Path, settings_factory: Callable[..., Settings]
    ) -> None:
        settings = settings_factory(tmp_path / "missing.jpg")
        with TestClient(create_app(settings)) as client:
            response = client.post("/api/playlist/image/events", json=body_with())

        events = parse_sse(response.text)
        name, data = events[-1]
        assert name == "failed"
        assert data["detail"] == "Failed to load the template"

    def test_busy_composer_is_409_before_streaming(self, client: TestClient) -> None:
        composer = MagicMock(spec=PlaylistComposer)
        composer.is_busy = True
        client.app.state.composer = composer

        response = client.post("/api/playlist/image/events", json=body_with())

        assert response.status_code == 409


class TestArtworkHosts:
    def test_internal_artwork_url_is_skipped_not_fetched(
        self, client: TestClient, httpx_mock: HTTPXMock
    ) -> None:
        response = client.post(
            "/api/playlist/image",
            json=body_with(
                slot(0, "http://169.254.169.254/latest/meta-data/iam/"),
                slot(1, "https://localhost:8000/health/live"),
            ),
        )

        assert response.status_code == 200
        assert response.content.startswith(PNG_SIGNATURE)
        assert httpx_mock.get_requests() == []
