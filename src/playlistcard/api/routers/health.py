# Hey future me - this router is for Docker/Kubernetes health checks!
#
# Endpoints:
# - /health/live   -> Liveness probe (process is running)
# - /health/ready  -> Readiness probe (services built, template present, Spotify configured)
#
# Docker HEALTHCHECK: curl -f http://localhost:8000/health/live || exit 1
"""Health check endpoints for Docker/Kubernetes probes."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from playlistcard import __version__

router = APIRouter()


class LivenessStatus(BaseModel):
    """Simple liveness probe response."""

    status: str = Field(description="alive or dead")
    timestamp: str = Field(description="ISO timestamp")
    version: str = Field(default=__version__, description="Application version")


class ReadinessStatus(BaseModel):
    """Readiness probe response."""

    status: str = Field(description="ready or not_ready")
    timestamp: str = Field(description="ISO timestamp")
    composer: bool = Field(description="Playlist composer initialized")
    template: bool = Field(description="Template asset found on disk")
    spotify_configured: bool = Field(description="Spotify credentials present")


@router.get("/live", response_model=LivenessStatus)
async def liveness_probe() -> LivenessStatus:
    """Liveness probe. 200 whenever the process can answer at all."""
    return LivenessStatus(
        status="alive",
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready", response_model=ReadinessStatus)
async def readiness_probe(request: Request) -> JSONResponse:
    """Readiness probe. 503 until the composer exists and the template is on disk.

    Missing Spotify credentials are reported but don't make the app "not ready" - the
    export itself doesn't need Spotify.
    """
    state = request.app.state
    composer_ok = hasattr(state, "composer")
    settings = getattr(state, "settings", None)
    template_ok = bool(settings and settings.render.template_path.is_file())
    spotify_ok = bool(settings and settings.spotify.has_credentials)

    ready = composer_ok and template_ok
    body = ReadinessStatus(
        status="ready" if ready else "not_ready",
        timestamp=datetime.now(UTC).isoformat(),
        composer=composer_ok,
        template=template_ok,
        spotify_configured=spotify_ok,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(),
    )
