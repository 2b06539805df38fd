"""Playlist card composer - the export state machine.

Hey future me - this is where the whole "generate and download" flow lives:

    IDLE -> LOADING_TEMPLATE -> DRAWING_TEMPLATE -> LOADING_ARTWORK -> DRAWING_LIST
         -> EXPORTING_BLOB -> DONE
    FAILED from: canvas acquisition, LOADING_TEMPLATE, EXPORTING_BLOB (+ anything unexpected)

Rules that MUST hold:
- generate() never raises to the caller except ComposerBusyError (second call while one runs)
  and ValidationError (a plain sequence that is not 12 slots long). Neither enters a state.
  Every other failure ends in FAILED with a status message.
- The rotation lives inside `with canvas.saved()` and is gone before EXPORTING_BLOB.
- No drawing happens until ALL artwork loads settled. Slots draw strictly 0 -> 11.
- A slot without Track or without loaded artwork draws NOTHING (no placeholder, no text).
- The sink gets exactly one delivery, and only from DONE.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from PIL import Image

from playlistcard.application.services.render.artwork_loader import ArtworkLoader
from playlistcard.application.services.render.canvas import Canvas
from playlistcard.application.services.render.clipping import draw_rounded_image
from playlistcard.application.services.render.fonts import (
    ARTIST,
    TRACK_NAME,
    FontRegistry,
)
from playlistcard.application.services.render.layout import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    DEFAULT_GEOMETRY,
    ROTATION_DEGREES,
    ROTATION_PIVOT,
    GridGeometry,
)
from playlistcard.application.services.render.template import TemplateLoader
from playlistcard.application.services.render.text_fitter import fit_text
from playlistcard.domain.entities import SLOT_COUNT, Selection, Track
from playlistcard.domain.exceptions import (
    CanvasUnavailableError,
    ComposerBusyError,
    EncodingError,
    InvalidStateException,
    TemplateLoadError,
)
from playlistcard.domain.ports import DownloadSink
from playlistcard.infrastructure.observability.logger_template import (
    log_slow_operation,
)

logger = logging.getLogger(__name__)

OUTPUT_FILENAME = "my-playlist.png"
OUTPUT_MIME_TYPE = "image/png"


class ComposerState(str, Enum):
    """Stages of one export run."""

    IDLE = "idle"
    LOADING_TEMPLATE = "loading_template"
    DRAWING_TEMPLATE = "drawing_template"
    LOADING_ARTWORK = "loading_artwork"
    DRAWING_LIST = "drawing_list"
    EXPORTING_BLOB = "exporting_blob"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ComposerState.DONE, ComposerState.FAILED)


STATUS_MESSAGES: dict[ComposerState, str] = {
    ComposerState.LOADING_TEMPLATE: "Loading template...",
    ComposerState.DRAWING_TEMPLATE: "Drawing template...",
    ComposerState.LOADING_ARTWORK: "Loading album artwork...",
    ComposerState.DRAWING_LIST: "Building track list...",
    ComposerState.EXPORTING_BLOB: "Preparing download...",
    ComposerState.DONE: "Download complete!",
}

FAILURE_MESSAGES: dict[type[Exception], str] = {
    CanvasUnavailableError: "Could not prepare the drawing surface",
    TemplateLoadError: "Failed to load the template",
    EncodingError: "Failed to encode the image",
}
GENERIC_FAILURE_MESSAGE = "Something went wrong while generating the image"


@dataclass(frozen=True)
class StatusEvent:
    """One state transition, published to the listener and recorded on the outcome."""

    state: ComposerState
    message: str


@dataclass(frozen=True)
class Download:
    filename: str
    mime_type: str
    data: bytes


@dataclass
class RenderOutcome:
    """Result of one generate() call. state is always DONE or FAILED."""

    state: ComposerState
    message: str
    download: Download | None = None
    error: Exception | None = None
    events: list[StatusEvent] = field(default_factory=list)
    rendered_slots: list[int] = field(default_factory=list)
    skipped_slots: list[int] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is ComposerState.DONE


class MemoryDownloadSink:
    """DownloadSink that just keeps what it was given (HTTP layer, tests)."""

    def __init__(self) -> None:
        self.deliveries: list[Download] = []

    def deliver(self, filename: str, mime_type: str, data: bytes) -> None:
        self.deliveries.append(Download(filename, mime_type, data))

    @property
    def last(self) -> Download | None:
        return self.deliveries[-1] if self.deliveries else None


StatusListener = Callable[[StatusEvent], None]
CanvasFactory = Callable[[], Canvas]


def _default_canvas() -> Canvas:
    return Canvas(CANVAS_WIDTH, CANVAS_HEIGHT)


class _Run:
    """Per-call bookkeeping: current state, emitted events, listener fan-out."""

    def __init__(self, listener: StatusListener | None) -> None:
        self.listener = listener
        self.state = ComposerState.IDLE
        self.events: list[StatusEvent] = []
        self.rendered: list[int] = []
        self.skipped: list[int] = []

    def enter(self, state: ComposerState, message: str | None = None) -> None:
        self.state = state
        event = StatusEvent(state, message or STATUS_MESSAGES.get(state, state.value))
        self.events.append(event)
        logger.debug("Composer -> %s", state.value)
        if self.listener is not None:
            self.listener(event)

    def outcome(
        self,
        download: Download | None = None,
        error: Exception | None = None,
    ) -> RenderOutcome:
        return RenderOutcome(
            state=self.state,
            message=self.events[-1].message if self.events else "",
            download=download,
            error=error,
            events=list(self.events),
            rendered_slots=list(self.rendered),
            skipped_slots=list(self.skipped),
        )


class PlaylistComposer:
    """Renders a 12-slot selection onto the template and hands the PNG to a sink.

    One composer per app. It owns no canvas between runs; canvas_factory creates a fresh
    one for every generate() call.
    """

    def __init__(
        self,
        template_loader: TemplateLoader,
        artwork_loader: ArtworkLoader,
        fonts: FontRegistry,
        geometry: GridGeometry = DEFAULT_GEOMETRY,
        canvas_factory: CanvasFactory = _default_canvas,
        output_filename: str = OUTPUT_FILENAME,
    ) -> None:
        self._template_loader = template_loader
        self._artwork_loader = artwork_loader
        self._fonts = fonts
        self._geometry = geometry
        self._canvas_factory = canvas_factory
        self._output_filename = output_filename
        self._busy = False

    @property
    def is_busy(self) -> bool:
        return self._busy

    async def generate(
        self,
        selection: Selection | Sequence[Track | None],
        sink: DownloadSink,
        listener: StatusListener | None = None,
    ) -> RenderOutcome:
        """Run one export.

        Args:
            selection: Exactly 12 slots (Selection or plain sequence)
            sink: Receives the PNG once, on DONE
            listener: Optional sync callback for every status event

        Returns:
            RenderOutcome in DONE or FAILED

        Raises:
            ComposerBusyError: Another generate() on this composer has not finished yet
            ValidationError: selection is a plain sequence that is not exactly 12 long
        """
        if self._busy:
            raise ComposerBusyError()
        if not isinstance(selection, Selection):
            selection = Selection.from_slots(list(selection))

        self._busy = True
        run = _Run(listener)
        try:
            return await self._generate(selection, sink, run)
        except Exception as e:
            # Listen, anything landing here is a bug, not a render failure mode. Still no
            # exception goes to the caller - log it with traceback and end in FAILED.
            logger.exception("Playlist image generation crashed in %s", run.state.value)
            run.enter(ComposerState.FAILED, GENERIC_FAILURE_MESSAGE)
            return run.outcome(error=e)
        finally:
            self._busy = False

    def _fail(self, run: _Run, error: Exception) -> RenderOutcome:
        message = FAILURE_MESSAGES.get(type(error), GENERIC_FAILURE_MESSAGE)
        logger.error("Playlist image export failed in %s: %s", run.state.value, error)
        run.enter(ComposerState.FAILED, message)
        return run.outcome(error=error)

    async def _generate(
        self, selection: Selection, sink: DownloadSink, run: _Run
    ) -> RenderOutcome:
        try:
            canvas = self._canvas_factory()
        except CanvasUnavailableError as e:
            return self._fail(run, e)

        run.enter(ComposerState.LOADING_TEMPLATE)
        try:
            template = await self._template_loader.load()
        except TemplateLoadError as e:
            return self._fail(run, e)

        run.enter(ComposerState.DRAWING_TEMPLATE)
        canvas.draw_image(template, 0, 0, canvas.width, canvas.height)

        with canvas.saved():
            canvas.rotate(ROTATION_DEGREES, ROTATION_PIVOT)

            run.enter(ComposerState.LOADING_ARTWORK)
            images = await self._artwork_loader.load_all(
                [track.image_url if track else None for track in selection]
            )

            run.enter(ComposerState.DRAWING_LIST)
            await self._fonts.ensure_ready(TRACK_NAME, ARTIST)
            self._draw_list(canvas, selection, images, run)

        run.enter(ComposerState.EXPORTING_BLOB)
        try:
            data = await self._encode(canvas)
        except EncodingError as e:
            return self._fail(run, e)

        run.enter(ComposerState.DONE)
        download = Download(self._output_filename, OUTPUT_MIME_TYPE, data)
        sink.deliver(download.filename, download.mime_type, download.data)
        logger.info(
            "Playlist image ready: %d slots rendered, %d skipped, %d bytes",
            len(run.rendered),
            len(run.skipped),
            len(data),
        )
        return run.outcome(download=download)

    def _draw_list(
        self,
        canvas: Canvas,
        selection: Selection,
        images: Sequence[Image.Image | None],
        run: _Run,
    ) -> None:
        name_font = self._fonts.get(TRACK_NAME)
        artist_font = self._fonts.get(ARTIST)
        geometry = self._geometry

        for index in range(SLOT_COUNT):
            track = selection[index]
            image = images[index] if index < len(images) else None
            if track is None:
                continue
            if image is None:
                run.skipped.append(index)
                continue

            slot = geometry.slot(index)
            x, y, width, height = slot.artwork_box
            draw_rounded_image(canvas, image, x, y, width, height, geometry.corner_radius)

            name = fit_text(
                track.name,
                lambda text: canvas.measure_text(text, name_font),
                geometry.max_text_width,
            )
            canvas.fill_text(
                name, slot.text_x, slot.name_baseline, name_font, TRACK_NAME.fill
            )

            artist = fit_text(
                track.artist,
                lambda text: canvas.measure_text(text, artist_font),
                geometry.max_text_width,
            )
            canvas.fill_text(
                artist, slot.text_x, slot.artist_baseline, artist_font, ARTIST.fill
            )
            run.rendered.append(index)

    async def _encode(self, canvas: Canvas) -> bytes:
        start = time.monotonic()
        try:
            data = await asyncio.to_thread(canvas.encode_png)
        except (OSError, ValueError, InvalidStateException) as e:
            raise EncodingError(f"PNG encoding failed: {e}") from e
        finally:
            log_slow_operation(
                logger,
                "png_encode",
                int((time.monotonic() - start) * 1000),
                threshold_ms=500,
            )
        if not data:
            raise EncodingError("PNG encoding produced no data")
        return data
