"""Track schema shared by search results and render requests."""

from pydantic import BaseModel, Field

from playlistcard.domain.entities import Track


class TrackSchema(BaseModel):
    """A catalog track as the browser sees it."""

    id: str = Field(..., description="Spotify track ID")
    name: str = Field(..., description="Track title")
    artist: str = Field(..., description="Primary artist name")
    album: str = Field(default="", description="Album name")
    image_url: str = Field(default="", description="Album artwork URL, empty if none")

    @classmethod
    def from_entity(cls, track: Track) -> "TrackSchema":
        return cls(
            id=track.id,
            name=track.name,
            artist=track.artist,
            album=track.album,
            image_url=track.image_url,
        )

    def to_entity(self) -> Track:
        return Track(
            id=self.id,
            name=self.name,
            artist=self.artist,
            album=self.album,
            image_url=self.image_url,
        )
