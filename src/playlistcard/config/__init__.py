"""Configuration module for playlistcard."""

from .settings import (
    ObservabilitySettings,
    RenderSettings,
    Settings,
    SpotifySettings,
    get_settings,
)

__all__ = [
    "ObservabilitySettings",
    "RenderSettings",
    "Settings",
    "SpotifySettings",
    "get_settings",
]
