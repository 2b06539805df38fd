"""Font presets and the async font-readiness gate."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from PIL import ImageFont

from playlistcard.domain.exceptions import InvalidStateException

logger = logging.getLogger(__name__)

SEMIBOLD_WEIGHT = 600


@dataclass(frozen=True)
class FontPreset:
    """One text style of the card: family weight, pixel size and fill colour."""

    name: str
    weight: int
    size: int
    fill: str


TRACK_NAME = FontPreset(name="track_name", weight=600, size=17, fill="#1a1a1a")
ARTIST = FontPreset(name="artist", weight=400, size=14, fill="#666666")


class FontRegistry:
    """Loads font faces once per (weight, size) and hands them out to the renderer.

    Hey future me - text MUST NOT be measured or drawn before ensure_ready() returned for that
    preset. Measuring with a fallback face and drawing with the real one (or the other way round)
    gives truncation that doesn't match what ends up on the card. get() enforces that.
    """

    def __init__(
        self,
        semibold_path: Path | None = None,
        regular_path: Path | None = None,
    ) -> None:
        self._semibold_path = semibold_path
        self._regular_path = regular_path
        self._fonts: dict[tuple[int, int], ImageFont.FreeTypeFont] = {}
        self._lock = asyncio.Lock()

    def _path_for(self, weight: int) -> Path | None:
        return self._semibold_path if weight >= SEMIBOLD_WEIGHT else self._regular_path

    def _load(self, preset: FontPreset) -> ImageFont.FreeTypeFont:
        path = self._path_for(preset.weight)
        if path is not None:
            try:
                return ImageFont.truetype(str(path), preset.size)
            except OSError as e:
                logger.warning(
                    "Font %s unusable for preset %s (%s), using Pillow default face",
                    path,
                    preset.name,
                    e,
                )
        return ImageFont.load_default(size=preset.size)

    async def ensure_ready(self, *presets: FontPreset) -> None:
        """Load every preset that is not loaded yet. Safe to call repeatedly."""
        async with self._lock:
            for preset in presets:
                key = (preset.weight, preset.size)
                if key in self._fonts:
                    continue
                self._fonts[key] = await asyncio.to_thread(self._load, preset)
                logger.debug("Font ready: %s (%dpx)", preset.name, preset.size)

    def is_ready(self, preset: FontPreset) -> bool:
        return (preset.weight, preset.size) in self._fonts

    def get(self, preset: FontPreset) -> ImageFont.FreeTypeFont:
        """Return the loaded face for preset.

        Raises:
            InvalidStateException: If ensure_ready() has not loaded this preset
        """
        try:
            return self._fonts[(preset.weight, preset.size)]
        except KeyError:
            raise InvalidStateException(
                f"Font preset {preset.name!r} used before ensure_ready()"
            ) from None
