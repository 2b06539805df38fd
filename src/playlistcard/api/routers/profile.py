"""Current Spotify user profile."""

from fastapi import APIRouter, Depends

from playlistcard.api.dependencies import get_auth_service, require_bearer_token
from playlistcard.api.schemas.profile import UserProfileResponse
from playlistcard.application.services.auth_service import SpotifyAuthService

router = APIRouter()


@router.get("", response_model=UserProfileResponse)
async def get_profile(
    access_token: str = Depends(require_bearer_token),
    auth_service: SpotifyAuthService = Depends(get_auth_service),
) -> UserProfileResponse:
    """Profile of the user owning the bearer token (401 without a valid user token)."""
    data = await auth_service.get_user_profile(access_token)
    return UserProfileResponse.from_spotify(data)
