"""Spotify user profile schema."""

from typing import Any

from pydantic import BaseModel, Field


class UserProfileResponse(BaseModel):
    """The subset of Spotify's /me object the profile page shows."""

    id: str
    display_name: str | None = None
    email: str | None = None
    country: str | None = None
    product: str | None = None
    followers: int = 0
    image_url: str | None = Field(default=None, description="First profile image, if any")

    @classmethod
    def from_spotify(cls, data: dict[str, Any]) -> "UserProfileResponse":
        images = data.get("images") or []
        return cls(
            id=str(data.get("id") or ""),
            display_name=data.get("display_name"),
            email=data.get("email"),
            country=data.get("country"),
            product=data.get("product"),
            followers=int((data.get("followers") or {}).get("total") or 0),
            image_url=images[0].get("url") if images else None,
        )
