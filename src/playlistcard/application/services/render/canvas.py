"""Owned raster drawing surface with a save/restore graphics-state stack.

Hey future me - Pillow has no notion of "current transform" or "current clip" like an HTML
canvas context does, so this class adds exactly the pieces the composer needs:

- saved():  context manager = ctx.save() / ctx.restore(). Clip and rotation installed inside
            the block are undone when the block exits, ALSO when it exits with an exception.
- rotate(): starts a transparent layer for the current scope. Everything drawn until the scope
            closes lands on that layer in un-rotated coordinates; on exit the layer is rotated
            around the pivot and alpha-composited onto the parent surface. Same pixels as
            drawing through a rotated transform, without per-call matrix math.
- clip():   intersect the current clip with an L-mode mask (see clipping.py).

One Canvas belongs to ONE render run. Never share it between tasks.
"""

from __future__ import annotations

import io
import math
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace

from PIL import Image, ImageChops, ImageDraw, ImageFont

from playlistcard.domain.exceptions import (
    CanvasUnavailableError,
    InvalidStateException,
)

# (a, b, c, d, e, f) as in CanvasRenderingContext2D.setTransform():
#   x' = a*x + c*y + e
#   y' = b*x + d*y + f
Affine = tuple[float, float, float, float, float, float]
IDENTITY: Affine = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

Color = str | tuple[int, ...]


def rotation_about(degrees: float, pivot: tuple[float, float]) -> Affine:
    """translate(pivot) . rotate(degrees) . translate(-pivot), y axis pointing down."""
    theta = math.radians(degrees)
    cos, sin = math.cos(theta), math.sin(theta)
    cx, cy = pivot
    return (cos, sin, -sin, cos, cx - cos * cx + sin * cy, cy - sin * cx - cos * cy)


def multiply(parent: Affine, child: Affine) -> Affine:
    """Apply child first, then parent."""
    pa, pb, pc, pd, pe, pf = parent
    ca, cb, cc, cd, ce, cf = child
    return (
        pa * ca + pc * cb,
        pb * ca + pd * cb,
        pa * cc + pc * cd,
        pb * cc + pd * cd,
        pa * ce + pc * cf + pe,
        pb * ce + pd * cf + pf,
    )


@dataclass
class _GraphicsState:
    surface: Image.Image
    clip: Image.Image | None = None
    transform: Affine = IDENTITY
    # set only on the scope that called rotate(); applied when that scope's layer is flattened
    layer_rotation: tuple[float, tuple[float, float]] | None = None


class Canvas:
    """RGBA drawing surface of a fixed size."""

    def __init__(
        self, width: int, height: int, background: Color = (0, 0, 0, 0)
    ) -> None:
        if width <= 0 or height <= 0:
            raise CanvasUnavailableError(f"Invalid canvas size {width}x{height}")
        try:
            root = Image.new("RGBA", (width, height), background)
        except (ValueError, MemoryError) as e:
            raise CanvasUnavailableError(
                f"Cannot allocate {width}x{height} canvas: {e}"
            ) from e

        self._root = root
        self._state = _GraphicsState(surface=root)
        self._stack: list[_GraphicsState] = []

    @property
    def size(self) -> tuple[int, int]:
        return self._root.size

    @property
    def width(self) -> int:
        return self._root.width

    @property
    def height(self) -> int:
        return self._root.height

    @property
    def depth(self) -> int:
        """Number of currently open saved() scopes."""
        return len(self._stack)

    @property
    def current_transform(self) -> Affine:
        return self._state.transform

    def transform_point(self, x: float, y: float) -> tuple[float, float]:
        """Where (x, y) in current user space lands on the final image."""
        a, b, c, d, e, f = self._state.transform
        return (a * x + c * y + e, b * x + d * y + f)

    # === Graphics state ===

    @contextmanager
    def saved(self) -> Iterator[Canvas]:
        """save() on enter, restore() on exit - on every exit path."""
        self._stack.append(self._state)
        self._state = replace(self._state, layer_rotation=None)
        try:
            yield self
        finally:
            self._restore()

    def _restore(self) -> None:
        closing = self._state
        self._state = self._stack.pop()
        if closing.layer_rotation is not None:
            degrees, pivot = closing.layer_rotation
            # PIL rotates counter-clockwise for positive angles, canvas rotate() clockwise.
            flattened = closing.surface.rotate(
                -degrees, resample=Image.Resampling.BICUBIC, center=pivot
            )
            self._composite(flattened, 0, 0)

    def rotate(self, degrees: float, pivot: tuple[float, float]) -> None:
        """Rotate everything drawn in the current scope around pivot.

        Raises:
            InvalidStateException: Outside a saved() scope, or if this scope already rotated
        """
        if not self._stack:
            raise InvalidStateException("rotate() needs an open saved() scope")
        if self._state.layer_rotation is not None:
            raise InvalidStateException(
                "Only one rotate() per saved() scope - open a nested scope"
            )
        layer = Image.new("RGBA", self._state.surface.size, (0, 0, 0, 0))
        self._state = replace(
            self._state,
            surface=layer,
            clip=None,
            transform=multiply(self._state.transform, rotation_about(degrees, pivot)),
            layer_rotation=(degrees, pivot),
        )

    def clip(self, mask: Image.Image) -> None:
        """Intersect the current clip region with an L-mode, canvas-sized mask."""
        if mask.size != self.size:
            raise InvalidStateException(
                f"Clip mask size {mask.size} does not match canvas {self.size}"
            )
        mask = mask.convert("L")
        if self._state.clip is not None:
            mask = ImageChops.multiply(self._state.clip, mask)
        self._state = replace(self._state, clip=mask)

    # === Drawing ===

    def _composite(self, tile: Image.Image, x: int, y: int) -> None:
        surface = self._state.surface
        # alpha_composite() rejects negative offsets, so crop the tile to the surface first
        left, top = max(x, 0), max(y, 0)
        right = min(x + tile.width, surface.width)
        bottom = min(y + tile.height, surface.height)
        if right <= left or bottom <= top:
            return

        tile = tile.crop((left - x, top - y, right - x, bottom - y))
        if self._state.clip is not None:
            region = self._state.clip.crop((left, top, right, bottom))
            tile.putalpha(ImageChops.multiply(tile.getchannel("A"), region))
        surface.alpha_composite(tile, dest=(left, top))

    def draw_image(
        self, image: Image.Image, x: float, y: float, width: float, height: float
    ) -> None:
        """Draw image scaled to fill the (x, y, width, height) rectangle."""
        size = (max(1, round(width)), max(1, round(height)))
        tile = image if image.mode == "RGBA" else image.convert("RGBA")
        if tile.size != size:
            tile = tile.resize(size, Image.Resampling.LANCZOS)
        self._composite(tile, round(x), round(y))

    def fill_rect(
        self, x: float, y: float, width: float, height: float, fill: Color
    ) -> None:
        size = (max(1, round(width)), max(1, round(height)))
        self._composite(Image.new("RGBA", size, fill), round(x), round(y))

    def fill_text(
        self,
        text: str,
        x: float,
        y: float,
        font: ImageFont.FreeTypeFont,
        fill: Color,
    ) -> None:
        """Draw one line of text with its alphabetic baseline starting at (x, y)."""
        if not text:
            return
        left, top, right, bottom = font.getbbox(text, anchor="ls")
        left, top = math.floor(left), math.floor(top)
        right, bottom = math.ceil(right), math.ceil(bottom)
        if right <= left or bottom <= top:
            return

        tile = Image.new("RGBA", (right - left, bottom - top), (0, 0, 0, 0))
        ImageDraw.Draw(tile).text((-left, -top), text, font=font, fill=fill, anchor="ls")
        self._composite(tile, round(x) + left, round(y) + top)

    def measure_text(self, text: str, font: ImageFont.FreeTypeFont) -> float:
        """Advance width of text in pixels under font."""
        return float(font.getlength(text))

    # === Export ===

    def snapshot(self) -> Image.Image:
        """Copy of the base surface (open rotated layers are not included)."""
        return self._root.copy()

    def encode_png(self) -> bytes:
        """Serialize the canvas to PNG bytes.

        Raises:
            InvalidStateException: If a saved() scope is still open
        """
        if self._stack:
            raise InvalidStateException(
                f"{len(self._stack)} saved() scope(s) still open - restore before export"
            )
        buffer = io.BytesIO()
        self._root.save(buffer, format="PNG")
        return buffer.getvalue()
