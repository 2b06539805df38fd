"""Application settings loaded from environment variables / .env."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SpotifySettings(BaseSettings):
    """Spotify app credentials and OAuth settings."""

    model_config = SettingsConfigDict(
        env_prefix="SPOTIFY_", env_file=".env", extra="ignore"
    )

    client_id: str = Field(default="", description="Spotify app client ID")
    client_secret: str = Field(default="", description="Spotify app client secret")
    # Hey future me - the callback URL is built from the request origin (or the baseUrl
    # carried in the OAuth state) + this path. Register the resulting URL in the
    # Spotify dashboard, e.g. http://localhost:8000/api/auth/callback
    redirect_path: str = Field(default="/api/auth/callback")
    profile_path: str = Field(
        default="/profile", description="Where the OAuth callback sends the user"
    )
    scopes: list[str] = Field(
        default_factory=lambda: ["user-read-email", "user-read-private"]
    )
    search_limit: int = Field(default=10, ge=1, le=50)

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id.strip() and self.client_secret.strip())


class RenderSettings(BaseSettings):
    """Playlist card rendering settings."""

    model_config = SettingsConfigDict(
        env_prefix="RENDER_", env_file=".env", extra="ignore"
    )

    template_path: Path = Field(
        default=Path("assets/template.jpg"),
        description="1080x1350 background image the tracks are drawn onto",
    )
    semibold_font_path: Path | None = Field(
        default=None, description="Semi-bold (600) face for track names"
    )
    regular_font_path: Path | None = Field(
        default=None, description="Regular (400) face for artist names"
    )
    output_filename: str = Field(default="my-playlist.png")
    artwork_timeout: float = Field(default=15.0, gt=0)
    # Hey future me - artwork URLs arrive in the render request body, so only these hosts
    # are ever fetched. Env value is JSON: RENDER_ARTWORK_ALLOWED_HOSTS='["i.scdn.co"]'
    artwork_allowed_hosts: list[str] = Field(
        default_factory=lambda: ["i.scdn.co", "mosaic.scdn.co", "*.spotifycdn.com"],
        description='Artwork hosts; "*.domain" allows subdomains',
    )
    artwork_max_bytes: int = Field(default=5 * 1024 * 1024, gt=0)
    artwork_max_pixels: int = Field(default=4096 * 4096, gt=0)


class ObservabilitySettings(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_", env_file=".env", extra="ignore")

    json_format: bool = Field(default=False, description="Emit JSON log lines")

    @property
    def log_json_format(self) -> bool:
        return self.json_format


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = Field(default="playlistcard")
    log_level: str = Field(default="INFO")

    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    render: RenderSettings = Field(default_factory=RenderSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)


# Yo, settings are cached for the process lifetime! Tests should build Settings(...) directly
# and pass it to create_app() instead of poking env vars + cache_clear().
@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
