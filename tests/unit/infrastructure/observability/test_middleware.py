"""Tests for RequestLoggingMiddleware."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from playlistcard.infrastructure.observability.logging import get_correlation_id
from playlistcard.infrastructure.observability.middleware import RequestLoggingMiddleware


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/echo")
    async def echo() -> dict[str, str]:
        return {"correlation_id": get_correlation_id()}

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("kaputt")

    return TestClient(app, raise_server_exceptions=True)


def test_incoming_correlation_id_is_used_and_echoed(client: TestClient) -> None:
    response = client.get("/echo", headers={"X-Correlation-ID": "abc-123"})

    assert response.status_code == 200
    assert response.json() == {"correlation_id": "abc-123"}
    assert response.headers["X-Correlation-ID"] == "abc-123"


def test_correlation_id_generated_when_absent(client: TestClient) -> None:
    response = client.get("/echo")

    generated = response.headers["X-Correlation-ID"]
    assert len(generated) == 36
    assert response.json() == {"correlation_id": generated}


def test_exceptions_propagate(client: TestClient) -> None:
    with pytest.raises(RuntimeError, match="kaputt"):
        client.get("/boom")
