"""Shared logging helpers.

USAGE:
    logger = logging.getLogger(__name__)

    async with log_operation(logger, "artwork_load", slots=12):
        images = await fetch_everything()
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any


# Yo, this context manager logs start/end with automatic duration tracking. The **context
# args become extra fields on both log lines. On exception it logs "{operation}.failed" with
# the traceback and RE-RAISES - it never swallows anything.
@asynccontextmanager
async def log_operation(
    logger: logging.Logger,
    operation: str,
    **context: Any,
) -> AsyncIterator[None]:
    """Context manager for logging operation start/end with automatic timing.

    Logs:
    - {operation}.started with context fields
    - {operation}.completed with context + duration_ms
    - {operation}.failed with context + duration_ms + error details (if exception)

    Args:
        logger: Module logger
        operation: Operation name (e.g., "artwork_load", "png_encode")
        **context: Additional fields to include in logs
    """
    start = time.monotonic()
    logger.info(f"{operation}.started", extra=context)

    try:
        yield
    except Exception as e:
        duration_ms = int((time.monotonic() - start) * 1000)
        logger.error(
            f"{operation}.failed",
            extra={
                **context,
                "duration_ms": duration_ms,
                "error": str(e),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        raise

    duration_ms = int((time.monotonic() - start) * 1000)
    logger.info(
        f"{operation}.completed",
        extra={**context, "duration_ms": duration_ms},
    )


def log_slow_operation(
    logger: logging.Logger,
    operation: str,
    duration_ms: int,
    threshold_ms: int = 100,
    **context: Any,
) -> None:
    """Log a warning if an operation exceeded its threshold.

    Args:
        logger: Module logger
        operation: Operation name
        duration_ms: Actual operation duration
        threshold_ms: Threshold for "slow"
        **context: Additional fields
    """
    if duration_ms > threshold_ms:
        logger.warning(
            "operation.slow",
            extra={
                **context,
                "operation": operation,
                "duration_ms": duration_ms,
                "threshold_ms": threshold_ms,
            },
        )
