"""Shared HTTP client pool for connection reuse across services.

Hey future me - one export fires 12 artwork requests at the same CDN. Creating a fresh
httpx.AsyncClient per request throws away keep-alive and TLS sessions every time, so the
artwork loader (and anything else fetching plain URLs) borrows this shared client instead.

Usage:
    client = await HttpClientPool.get_client()
    response = await client.get("https://i.scdn.co/image/...")

lifecycle.py calls HttpClientPool.close() at shutdown.
"""

import asyncio
import logging
from typing import ClassVar

import httpx

logger = logging.getLogger(__name__)


class HttpClientPool:
    """Singleton HTTP client pool for connection reuse.

    - Lazy initialization (created on first use)
    - asyncio.Lock guards first creation
    - Proper cleanup at shutdown
    """

    _client: ClassVar[httpx.AsyncClient | None] = None
    _lock: ClassVar[asyncio.Lock | None] = None

    # Twelve parallel artwork fetches per export; leave headroom for a couple of exports.
    DEFAULT_TIMEOUT: ClassVar[float] = 30.0
    DEFAULT_MAX_KEEPALIVE: ClassVar[int] = 12
    DEFAULT_MAX_CONNECTIONS: ClassVar[int] = 24

    @classmethod
    def _ensure_lock(cls) -> asyncio.Lock:
        """Create the lock lazily so it binds to the running event loop."""
        if cls._lock is None:
            cls._lock = asyncio.Lock()
        return cls._lock

    @classmethod
    async def get_client(
        cls,
        timeout: float | None = None,
        max_keepalive: int | None = None,
        max_connections: int | None = None,
    ) -> httpx.AsyncClient:
        """Get the shared HTTP client instance.

        Config params only apply on the FIRST call; later calls return the same client.

        Args:
            timeout: Request timeout in seconds
            max_keepalive: Max idle connections to keep open
            max_connections: Max total concurrent connections

        Returns:
            Shared httpx.AsyncClient instance
        """
        async with cls._ensure_lock():
            if cls._client is None:
                effective_timeout = timeout or cls.DEFAULT_TIMEOUT
                effective_keepalive = max_keepalive or cls.DEFAULT_MAX_KEEPALIVE
                effective_max_conn = max_connections or cls.DEFAULT_MAX_CONNECTIONS

                cls._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(effective_timeout),
                    limits=httpx.Limits(
                        max_keepalive_connections=effective_keepalive,
                        max_connections=effective_max_conn,
                    ),
                    # CDNs multiplex nicely over HTTP/2
                    http2=True,
                    # Redirects are followed per call site; the artwork loader checks each hop
                    follow_redirects=False,
                )
                logger.info(
                    "HTTP client pool initialized (timeout=%.1fs, keepalive=%d, max_conn=%d)",
                    effective_timeout,
                    effective_keepalive,
                    effective_max_conn,
                )

            return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the shared HTTP client and release all connections.

        After close(), get_client() creates a new client instance.
        """
        async with cls._ensure_lock():
            if cls._client is not None:
                await cls._client.aclose()
                cls._client = None
                logger.info("HTTP client pool closed")

    @classmethod
    def is_initialized(cls) -> bool:
        """Check if the client pool has been initialized."""
        return cls._client is not None
