"""Request-level deadline for streamed generation."""

import asyncio
import logging
from typing import AsyncIterator, TypeVar

from intent_relay.core.errors import GenerationFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_deadline(iterator: AsyncIterator[T], seconds: float) -> AsyncIterator[T]:
    """Yield from ``iterator`` until ``seconds`` have elapsed in total.

    Raises:
        GenerationFailure: When the deadline passes before the iterator ends.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + seconds
    try:
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise GenerationFailure(f"Generation timed out after {seconds:g} seconds")
            try:
                item = await asyncio.wait_for(anext(iterator), timeout=remaining)
            except StopAsyncIteration:
                return
            except asyncio.TimeoutError as e:
                logger.warning(f"Deadline of {seconds:g}s reached while waiting for the backend")
                raise GenerationFailure(f"Generation timed out after {seconds:g} seconds") from e
            yield item
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
