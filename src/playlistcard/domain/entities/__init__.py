"""Domain entities: catalog tracks and the 12-slot playlist selection."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from playlistcard.domain.exceptions import BusinessRuleViolation, ValidationError

SLOT_COUNT = 12


@dataclass(frozen=True)
class Track:
    """A track as returned by the catalog search.

    Immutable once fetched. image_url is "" when the album has no artwork.
    """

    id: str
    name: str
    artist: str
    album: str
    image_url: str = ""

    @property
    def has_artwork(self) -> bool:
        return bool(self.image_url)


# Hey future me - Selection is the in-memory "what the user picked" state. There are ALWAYS
# exactly 12 slots; a slot is either a Track or None. Order is meaningful: slot index decides
# where the track lands on the card (see render/layout.py). We do NOT prevent the same track
# from sitting in two slots - the product never asked for de-duplication.
class Selection:
    """Ordered, fixed-size list of 12 optional tracks."""

    def __init__(self, slots: Sequence[Track | None] | None = None) -> None:
        if slots is None:
            self._slots: list[Track | None] = [None] * SLOT_COUNT
            return
        if len(slots) != SLOT_COUNT:
            raise ValidationError(
                f"Selection needs exactly {SLOT_COUNT} slots, got {len(slots)}"
            )
        self._slots = list(slots)

    @classmethod
    def from_slots(cls, slots: Sequence[Track | None]) -> Selection:
        return cls(slots)

    @property
    def slots(self) -> tuple[Track | None, ...]:
        return tuple(self._slots)

    @property
    def filled_count(self) -> int:
        return sum(1 for track in self._slots if track is not None)

    @property
    def is_complete(self) -> bool:
        return self.filled_count == SLOT_COUNT

    def _check_index(self, index: int) -> None:
        if not 0 <= index < SLOT_COUNT:
            raise ValidationError(
                f"Slot index {index} out of range (0-{SLOT_COUNT - 1})"
            )

    def add(self, track: Track) -> int:
        """Put a track into the first empty slot.

        Returns:
            Index of the slot that received the track

        Raises:
            BusinessRuleViolation: If every slot is already filled
        """
        for index, current in enumerate(self._slots):
            if current is None:
                self._slots[index] = track
                return index
        raise BusinessRuleViolation(
            f"Selection is full ({SLOT_COUNT}/{SLOT_COUNT} slots)"
        )

    def remove(self, index: int) -> Track | None:
        """Empty a slot. Other slots keep their positions."""
        self._check_index(index)
        removed = self._slots[index]
        self._slots[index] = None
        return removed

    # Yo, this is drag-reorder. Same semantics as an "array move": pull the slot out at
    # old_index and insert it at new_index, everything in between shifts by one. Empty
    # slots move too, so the list stays exactly 12 long.
    def move(self, old_index: int, new_index: int) -> None:
        """Move the slot at old_index to new_index."""
        self._check_index(old_index)
        self._check_index(new_index)
        if old_index == new_index:
            return
        slot = self._slots.pop(old_index)
        self._slots.insert(new_index, slot)

    def __len__(self) -> int:
        return SLOT_COUNT

    def __iter__(self) -> Iterator[Track | None]:
        return iter(tuple(self._slots))

    def __getitem__(self, index: int) -> Track | None:
        self._check_index(index)
        return self._slots[index]

    def __repr__(self) -> str:
        return f"Selection(filled={self.filled_count}/{SLOT_COUNT})"


__all__ = ["SLOT_COUNT", "Selection", "Track"]
