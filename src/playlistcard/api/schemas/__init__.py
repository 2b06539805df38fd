"""Pydantic request/response models of the HTTP API."""

from playlistcard.api.schemas.auth import AppTokenResponse
from playlistcard.api.schemas.playlist import (
    RenderFailureResponse,
    RenderRequest,
    StatusEventSchema,
)
from playlistcard.api.schemas.profile import UserProfileResponse
from playlistcard.api.schemas.tracks import TrackSchema

__all__ = [
    "AppTokenResponse",
    "RenderFailureResponse",
    "RenderRequest",
    "StatusEventSchema",
    "TrackSchema",
    "UserProfileResponse",
]
