"""Playlist card rendering.

Hey future me - leaf to root: text_fitter / layout (pure), canvas + clipping (Pillow drawing),
fonts / template / artwork_loader (async resource loading), composer (the state machine that
ties it all together). Only the composer touches every piece.
"""

from playlistcard.application.services.render.artwork_loader import ArtworkLoader
from playlistcard.application.services.render.canvas import Canvas
from playlistcard.application.services.render.clipping import (
    draw_rounded_image,
    rounded_rect_path,
)
from playlistcard.application.services.render.composer import (
    ComposerState,
    Download,
    MemoryDownloadSink,
    PlaylistComposer,
    RenderOutcome,
    StatusEvent,
)
from playlistcard.application.services.render.fonts import (
    ARTIST,
    TRACK_NAME,
    FontPreset,
    FontRegistry,
)
from playlistcard.application.services.render.layout import (
    DEFAULT_GEOMETRY,
    GridGeometry,
    LayoutSlot,
    slot_position,
)
from playlistcard.application.services.render.template import TemplateLoader
from playlistcard.application.services.render.text_fitter import ELLIPSIS, fit_text

__all__ = [
    "ARTIST",
    "DEFAULT_GEOMETRY",
    "ELLIPSIS",
    "TRACK_NAME",
    "ArtworkLoader",
    "Canvas",
    "ComposerState",
    "Download",
    "FontPreset",
    "FontRegistry",
    "GridGeometry",
    "LayoutSlot",
    "MemoryDownloadSink",
    "PlaylistComposer",
    "RenderOutcome",
    "StatusEvent",
    "TemplateLoader",
    "draw_rounded_image",
    "fit_text",
    "rounded_rect_path",
    "slot_position",
]
