"""Auth schemas."""

from pydantic import BaseModel, Field


class AppTokenResponse(BaseModel):
    """App-level Spotify token handed to the browser for catalog search."""

    access_token: str
    expires_in: int = Field(..., description="Seconds until the token expires")
