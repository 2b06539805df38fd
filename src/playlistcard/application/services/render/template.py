"""Loads the card background template from disk."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from playlistcard.application.services.render.layout import CANVAS_HEIGHT, CANVAS_WIDTH
from playlistcard.domain.exceptions import TemplateLoadError

logger = logging.getLogger(__name__)


class TemplateLoader:
    """Reads and decodes the template image, scaled to the card size."""

    def __init__(
        self,
        path: Path,
        size: tuple[int, int] = (CANVAS_WIDTH, CANVAS_HEIGHT),
    ) -> None:
        self.path = Path(path)
        self.size = size

    def _read(self) -> Image.Image:
        with Image.open(self.path) as img:
            img.load()
            template = img.convert("RGBA")
        if template.size != self.size:
            logger.info(
                "Template %s is %dx%d, scaling to %dx%d",
                self.path,
                template.width,
                template.height,
                *self.size,
            )
            template = template.resize(self.size, Image.Resampling.LANCZOS)
        return template

    async def load(self) -> Image.Image:
        """Decode the template off the event loop.

        Raises:
            TemplateLoadError: Missing, unreadable or undecodable file
        """
        try:
            return await asyncio.to_thread(self._read)
        except (OSError, UnidentifiedImageError) as e:
            raise TemplateLoadError(str(self.path), str(e)) from e
