"""Playlist image render schemas."""

from pydantic import BaseModel, Field

from playlistcard.api.schemas.tracks import TrackSchema
from playlistcard.application.services.render.composer import (
    RenderOutcome,
    StatusEvent,
)
from playlistcard.domain.entities import SLOT_COUNT, Selection


class RenderRequest(BaseModel):
    """The 12-slot selection to render. Empty slots are null."""

    slots: list[TrackSchema | None] = Field(
        ...,
        min_length=SLOT_COUNT,
        max_length=SLOT_COUNT,
        description="Exactly 12 entries in card order (column 1 top to bottom, then column 2)",
    )

    def to_selection(self) -> Selection:
        return Selection.from_slots(
            [slot.to_entity() if slot is not None else None for slot in self.slots]
        )


class StatusEventSchema(BaseModel):
    state: str
    message: str

    @classmethod
    def from_event(cls, event: StatusEvent) -> "StatusEventSchema":
        return cls(state=event.state.value, message=event.message)


class RenderFailureResponse(BaseModel):
    """Body of a failed render: final status message plus every status seen."""

    detail: str
    state: str
    events: list[StatusEventSchema] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: RenderOutcome) -> "RenderFailureResponse":
        return cls(
            detail=outcome.message,
            state=outcome.state.value,
            events=[StatusEventSchema.from_event(e) for e in outcome.events],
        )
