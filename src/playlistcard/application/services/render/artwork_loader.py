"""Concurrent artwork download for the twelve slots."""

from __future__ import annotations

import asyncio
import io
import logging
from collections.abc import Sequence

import httpx
from PIL import Image, UnidentifiedImageError

from playlistcard.domain.exceptions import ArtworkLoadError
from playlistcard.infrastructure.integrations.http_pool import HttpClientPool
from playlistcard.infrastructure.observability.logger_template import log_operation

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
# Spotify's image CDNs. "*.example.com" matches subdomains only, never example.com itself.
DEFAULT_ALLOWED_HOSTS: tuple[str, ...] = ("i.scdn.co", "mosaic.scdn.co", "*.spotifycdn.com")
DEFAULT_MAX_BYTES = 5 * 1024 * 1024
# Album covers top out at 640x640; anything near this is not a cover.
DEFAULT_MAX_PIXELS = 4096 * 4096
DEFAULT_MAX_REDIRECTS = 3


def is_allowed_host(host: str, allowed_hosts: Sequence[str]) -> bool:
    """Exact host match, or subdomain match for "*.domain" patterns."""
    host = host.lower().rstrip(".")
    if not host:
        return False
    for pattern in allowed_hosts:
        pattern = pattern.lower().strip()
        if pattern.startswith("*."):
            if host.endswith(pattern[1:]):
                return True
        elif host == pattern:
            return True
    return False


def _decode(data: bytes, max_pixels: int) -> Image.Image:
    with Image.open(io.BytesIO(data)) as img:
        # size comes from the header; nothing is decompressed yet
        width, height = img.size
        if width * height > max_pixels:
            raise Image.DecompressionBombError(
                f"{width}x{height} exceeds the {max_pixels} pixel limit"
            )
        img.load()
        return img.convert("RGBA")


class ArtworkLoader:
    """Fetches and decodes artwork images, one independent attempt per slot.

    Hey future me - load_all() NEVER fails as a whole. A 404, a timeout, a corrupt JPEG: each
    one turns into None for THAT slot and a warning in the log. The composer just skips None.
    Results come back in slot order, same length as the input, no matter which request finished
    first.

    The URLs come straight from the request body, so this is the one place where the server
    fetches something a client chose. Only https URLs on allowed_hosts are requested, every
    redirect hop is checked again, bodies are streamed up to max_bytes and images above
    max_pixels are never decoded. A refused URL is just another failed slot.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        allowed_hosts: Sequence[str] = DEFAULT_ALLOWED_HOSTS,
        max_bytes: int = DEFAULT_MAX_BYTES,
        max_pixels: int = DEFAULT_MAX_PIXELS,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._allowed_hosts = tuple(allowed_hosts)
        self._max_bytes = max_bytes
        self._max_pixels = max_pixels
        self._max_redirects = max_redirects

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return await HttpClientPool.get_client()

    def _check_url(self, slot_index: int, url: str) -> httpx.URL:
        try:
            target = httpx.URL(url)
        except httpx.InvalidURL as e:
            raise ArtworkLoadError(slot_index, url, f"invalid URL: {e}") from e
        if target.scheme != "https":
            raise ArtworkLoadError(
                slot_index, url, f"scheme {target.scheme!r} not allowed"
            )
        if not is_allowed_host(target.host, self._allowed_hosts):
            raise ArtworkLoadError(slot_index, url, f"host {target.host!r} not allowed")
        return target

    async def _read_capped(
        self, slot_index: int, url: str, response: httpx.Response
    ) -> bytes:
        declared = response.headers.get("Content-Length", "")
        if declared.isdigit() and int(declared) > self._max_bytes:
            raise ArtworkLoadError(
                slot_index, url, f"body of {declared} bytes exceeds {self._max_bytes}"
            )
        body = bytearray()
        async for chunk in response.aiter_bytes():
            body.extend(chunk)
            if len(body) > self._max_bytes:
                raise ArtworkLoadError(
                    slot_index, url, f"body exceeds {self._max_bytes} bytes"
                )
        return bytes(body)

    # Listen, redirects are followed by hand: the pool client would happily follow a CDN
    # redirect to 169.254.169.254. Each Location goes through _check_url() again.
    async def _fetch(self, slot_index: int, url: str) -> bytes:
        target = self._check_url(slot_index, url)
        client = await self._get_client()
        for _ in range(self._max_redirects + 1):
            async with client.stream(
                "GET", target, timeout=self._timeout, follow_redirects=False
            ) as response:
                if response.is_redirect:
                    location = response.headers.get("Location", "")
                    target = self._check_url(slot_index, str(response.url.join(location)))
                    continue
                response.raise_for_status()
                return await self._read_capped(slot_index, url, response)
        raise ArtworkLoadError(
            slot_index, url, f"more than {self._max_redirects} redirects"
        )

    async def load(self, slot_index: int, url: str) -> Image.Image:
        """Download and decode one artwork.

        Raises:
            ArtworkLoadError: URL not allowed, network error, non-2xx response, body too
                large or empty, image too large or undecodable
        """
        try:
            data = await self._fetch(slot_index, url)
        except httpx.HTTPStatusError as e:
            raise ArtworkLoadError(
                slot_index, url, f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ArtworkLoadError(slot_index, url, f"{type(e).__name__}: {e}") from e

        if not data:
            raise ArtworkLoadError(slot_index, url, "empty response body")

        try:
            return await asyncio.to_thread(_decode, data, self._max_pixels)
        except Image.DecompressionBombError as e:
            raise ArtworkLoadError(slot_index, url, f"image too large: {e}") from e
        except (UnidentifiedImageError, OSError) as e:
            raise ArtworkLoadError(slot_index, url, f"decode failed: {e}") from e

    async def _load_slot(self, slot_index: int, url: str | None) -> Image.Image | None:
        if not url:
            return None
        return await self.load(slot_index, url)

    async def load_all(self, urls: Sequence[str | None]) -> list[Image.Image | None]:
        """Start every download at once and wait until each one has settled.

        Args:
            urls: One entry per slot; None or "" means nothing to fetch

        Returns:
            Decoded images in slot order, None where the slot is empty or failed
        """
        requested = sum(1 for url in urls if url)
        async with log_operation(logger, "artwork_load", requested=requested):
            results = await asyncio.gather(
                *(self._load_slot(index, url) for index, url in enumerate(urls)),
                return_exceptions=True,
            )

        images: list[Image.Image | None] = []
        for index, result in enumerate(results):
            if isinstance(result, Exception):
                if not isinstance(result, ArtworkLoadError):
                    result = ArtworkLoadError(index, urls[index] or "", repr(result))
                logger.warning(
                    "Skipping slot %d: %s",
                    index,
                    result.message,
                    extra={"slot_index": index, "url": result.url},
                )
                images.append(None)
            elif isinstance(result, BaseException):
                # CancelledError and friends are not "this slot failed"
                raise result
            else:
                images.append(result)
        return images
