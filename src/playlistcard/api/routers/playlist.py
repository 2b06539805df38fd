"""Playlist image export endpoints.

Two ways to run the same composer:
- POST /api/playlist/image          -> waits, answers with the PNG as an attachment
- POST /api/playlist/image/events   -> Server-Sent Events: one `status` event per stage,
                                       then `done` (base64 PNG) or `failed`
"""

import asyncio
import base64
import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, Response
from sse_starlette.sse import EventSourceResponse

from playlistcard.api.dependencies import get_composer
from playlistcard.api.schemas.playlist import (
    RenderFailureResponse,
    RenderRequest,
    StatusEventSchema,
)
from playlistcard.application.services.render.composer import (
    Download,
    MemoryDownloadSink,
    PlaylistComposer,
    RenderOutcome,
    StatusEvent,
)
from playlistcard.domain.exceptions import ComposerBusyError

logger = logging.getLogger(__name__)

router = APIRouter()


def _png_response(download: Download) -> Response:
    return Response(
        content=download.data,
        media_type=download.mime_type,
        headers={
            "Content-Disposition": f'attachment; filename="{download.filename}"',
        },
    )


@router.post(
    "/image",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}}, "description": "The rendered card"},
        409: {"description": "Another export is in progress"},
        500: {"model": RenderFailureResponse, "description": "Export failed"},
    },
)
async def render_playlist_image(
    body: RenderRequest,
    composer: PlaylistComposer = Depends(get_composer),
) -> Response:
    """Render the 12-slot selection onto the template and return it as my-playlist.png."""
    selection = body.to_selection()
    sink = MemoryDownloadSink()
    outcome = await composer.generate(selection, sink)

    if not outcome.succeeded or outcome.download is None:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=RenderFailureResponse.from_outcome(outcome).model_dump(mode="json"),
        )
    return _png_response(outcome.download)


# Hey future me - the composer runs as its own task and pushes StatusEvents into a queue via
# the listener; the SSE generator drains the queue. The task puts None when generate() returns
# (or raises) so the generator never waits on a queue nobody will fill again. If the client
# disconnects, sse-starlette cancels the generator and we cancel the render with it.
@router.post("/image/events")
async def render_playlist_image_events(
    body: RenderRequest,
    composer: PlaylistComposer = Depends(get_composer),
) -> EventSourceResponse:
    """Render with live progress as Server-Sent Events.

    Example JS client:
    ```javascript
    // EventSource can't POST - use fetch() + a stream reader, or a small SSE helper lib
    source.addEventListener('status', (e) => showStatus(JSON.parse(e.data).message));
    source.addEventListener('done', (e) => saveBase64Png(JSON.parse(e.data)));
    ```
    """
    if composer.is_busy:
        raise ComposerBusyError()

    selection = body.to_selection()
    queue: asyncio.Queue[StatusEvent | None] = asyncio.Queue()
    sink = MemoryDownloadSink()

    async def run() -> RenderOutcome:
        try:
            return await composer.generate(selection, sink, listener=queue.put_nowait)
        finally:
            queue.put_nowait(None)

    async def event_generator() -> AsyncIterator[dict[str, str]]:
        task = asyncio.create_task(run())
        try:
            while (event := await queue.get()) is not None:
                yield {
                    "event": "status",
                    "data": StatusEventSchema.from_event(event).model_dump_json(),
                }

            try:
                outcome = await task
            except ComposerBusyError as e:
                yield {
                    "event": "failed",
                    "data": json.dumps({"detail": e.message, "state": "busy", "events": []}),
                }
                return

            if outcome.succeeded and outcome.download is not None:
                download = outcome.download
                yield {
                    "event": "done",
                    "data": json.dumps(
                        {
                            "filename": download.filename,
                            "mime_type": download.mime_type,
                            "data": base64.b64encode(download.data).decode("ascii"),
                        }
                    ),
                }
            else:
                yield {
                    "event": "failed",
                    "data": RenderFailureResponse.from_outcome(outcome).model_dump_json(),
                }
        finally:
            if not task.done():
                logger.info("SSE client went away, cancelling playlist render")
                task.cancel()

    return EventSourceResponse(event_generator())
