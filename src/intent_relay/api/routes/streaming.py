"""Helpers shared by streaming and blocking endpoints."""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, TypeVar

from fastapi import Request

from intent_relay.core.errors import GenerationFailure, TransportFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Not true SSE framing: every line is a standalone JSON document
STREAM_MEDIA_TYPE = "text/event-stream"
STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


async def bounded(awaitable: Awaitable[T], seconds: float) -> T:
    """Await ``awaitable`` with the request deadline.

    Raises:
        GenerationFailure: If the deadline passes first.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as e:
        raise GenerationFailure(f"Generation timed out after {seconds:g} seconds") from e


async def until_disconnect(request: Request, frames: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    """Forward frames until the client goes away, then close the relay."""
    sent = 0
    try:
        async for frame in frames:
            if await request.is_disconnected():
                raise TransportFailure("Client disconnected")
            yield frame
            sent += 1
    except TransportFailure as e:
        logger.info(f"Stopping relay after {sent} frames: {e.message}")
    finally:
        aclose = getattr(frames, "aclose", None)
        if aclose is not None:
            await aclose()
