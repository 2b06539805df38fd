"""Shared test fixtures."""

import io
import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
import sse_starlette.sse
from fastapi.testclient import TestClient
from PIL import Image

from playlistcard.config.settings import (
    ObservabilitySettings,
    RenderSettings,
    Settings,
    SpotifySettings,
)
from playlistcard.domain.entities import SLOT_COUNT, Track
from playlistcard.main import create_app


def make_png(color: str | tuple[int, ...] = "red", size: tuple[int, int] = (64, 64)) -> bytes:
    """Encode a solid-colour PNG in memory."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_track(index: int, image_url: str | None = None) -> Track:
    return Track(
        id=f"track-{index}",
        name=f"Song {index}",
        artist=f"Artist {index}",
        album=f"Album {index}",
        image_url=image_url if image_url is not None else f"https://i.scdn.co/image/{index}",
    )


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    return make_png


@pytest.fixture
def full_selection() -> list[Track]:
    """12 distinct tracks, each with its own artwork URL."""
    return [make_track(i) for i in range(SLOT_COUNT)]


@pytest.fixture
def template_path(tmp_path: Path) -> Path:
    """A 1080x1350 JPEG template on disk."""
    path = tmp_path / "template.jpg"
    Image.new("RGB", (1080, 1350), (245, 240, 230)).save(path, format="JPEG")
    return path


@pytest.fixture(autouse=True)
def _reset_sse_app_status() -> None:
    """sse-starlette keeps a module-level exit event bound to the first event loop."""
    app_status = getattr(sse_starlette.sse, "AppStatus", None)
    if app_status is not None and hasattr(app_status, "should_exit_event"):
        app_status.should_exit_event = None


@pytest.fixture
def track_factory() -> Callable[..., Track]:
    return make_track


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    """configure_logging() (run by the app lifespan) replaces root handlers; put them back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def settings_factory(template_path: Path) -> Callable[..., Settings]:
    """Settings built explicitly, never from env vars or .env."""

    def build(
        template: Path | None = None,
        client_id: str = "id",
        client_secret: str = "secret",
    ) -> Settings:
        return Settings(
            spotify=SpotifySettings(client_id=client_id, client_secret=client_secret),
            render=RenderSettings(template_path=template or template_path),
            observability=ObservabilitySettings(json_format=False),
        )

    return build


@pytest.fixture
def client(settings_factory: Callable[..., Settings]) -> Iterator[TestClient]:
    """TestClient around a fully started app (lifespan included)."""
    with TestClient(create_app(settings_factory())) as test_client:
        yield test_client
