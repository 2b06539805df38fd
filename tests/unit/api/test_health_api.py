"""Tests for the health probes."""

from collections.abc import Callable
from pathlib import Path

from fastapi.testclient import TestClient

from playlistcard import __version__
from playlistcard.config.settings import Settings
from playlistcard.main import create_app


def test_liveness(client: TestClient) -> None:
    response = client.get("/health/live")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "alive"
    assert body["version"] == __version__


def test_ready_with_template(client: TestClient) -> None:
    response = client.get("/health/ready")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ready"
    assert body["template"] is True
    assert body["spotify_configured"] is True


def test_not_ready_without_template(
    tmp_path: Path, settings_factory: Callable[..., Settings]
) -> None:
    settings = settings_factory(tmp_path / "nope.jpg", client_id="", client_secret="")
    with TestClient(create_app(settings)) as client:
        response = client.get("/health/ready")

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "not_ready"
    assert body["composer"] is True
    assert body["template"] is False
    assert body["spotify_configured"] is False


def test_correlation_id_header_on_every_response(client: TestClient) -> None:
    response = client.get("/health/live", headers={"X-Correlation-ID": "probe-1"})
    assert response.headers["X-Correlation-ID"] == "probe-1"
