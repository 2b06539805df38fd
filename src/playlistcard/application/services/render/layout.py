"""Slot grid geometry of the playlist card template.

Hey future me - every number in here is measured off the template artwork (the two
columns of numbered rows printed on template.jpg). They are NOT derived at runtime.
New template = re-measure and update GridGeometry, nothing else should change.
"""

from dataclasses import dataclass

from playlistcard.domain.entities import SLOT_COUNT
from playlistcard.domain.exceptions import ValidationError

CANVAS_WIDTH = 1080
CANVAS_HEIGHT = 1350

# The printed list on the template is tilted; we draw into a rotated scope around this pivot.
# Canvas convention: negative = counter-clockwise on screen.
ROTATION_DEGREES = -3.8
ROTATION_PIVOT = (540.0, 600.0)


@dataclass(frozen=True)
class GridGeometry:
    """Template contract for the 2-column x 6-row track list."""

    base_x: int = 200
    base_y: int = 340
    row_height: int = 70
    column_gap: int = 340
    rows_per_column: int = 6
    artwork_size: int = 50
    text_offset: int = 12
    corner_radius: int = 6
    max_text_width: int = 250
    name_baseline_offset: int = -5
    artist_baseline_offset: int = 14

    def slot(self, index: int) -> "LayoutSlot":
        """Map a slot index to its grid cell and pixel anchor."""
        if not 0 <= index < SLOT_COUNT:
            raise ValidationError(
                f"Slot index {index} out of range (0-{SLOT_COUNT - 1})"
            )
        column = 0 if index < self.rows_per_column else 1
        row = index if index < self.rows_per_column else index - self.rows_per_column
        return LayoutSlot(
            index=index,
            column=column,
            row=row,
            x=self.base_x + column * self.column_gap,
            y=self.base_y + row * self.row_height,
            geometry=self,
        )


@dataclass(frozen=True)
class LayoutSlot:
    """Pixel anchor of one slot. (x, y) is the left edge / vertical center of the row."""

    index: int
    column: int
    row: int
    x: int
    y: int
    geometry: GridGeometry

    @property
    def artwork_box(self) -> tuple[float, float, int, int]:
        """(x, y, width, height) of the artwork, vertically centered on the row."""
        size = self.geometry.artwork_size
        return (self.x, self.y - size / 2, size, size)

    @property
    def text_x(self) -> int:
        return self.x + self.geometry.artwork_size + self.geometry.text_offset

    @property
    def name_baseline(self) -> int:
        return self.y + self.geometry.name_baseline_offset

    @property
    def artist_baseline(self) -> int:
        return self.y + self.geometry.artist_baseline_offset


DEFAULT_GEOMETRY = GridGeometry()


def slot_position(index: int, geometry: GridGeometry = DEFAULT_GEOMETRY) -> LayoutSlot:
    """Pure function from slot index (0..11) to its layout slot."""
    return geometry.slot(index)
