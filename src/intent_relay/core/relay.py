"""Relay encoder for newline-delimited JSON streams.

An object relay always looks like::

    {"type":"intent","intent":"recipe"}
    {"type":"partial","data":{...}}        (zero or more)
    {"type":"complete"}                    (or one {"type":"error",...})

Each frame is serialized and yielded as soon as its input arrives. The encoder
never raises past its own iterator: every failure after the first frame
becomes a terminal error frame.
"""

import logging
from typing import TYPE_CHECKING, Any, AsyncIterator

from intent_relay.core.chat import ToolCall, ToolResult
from intent_relay.core.errors import GenerationFailure, RelayError
from intent_relay.core.partial_json import is_refinement
from intent_relay.models.frames import (
    BaseFrame,
    CompleteFrame,
    ErrorFrame,
    FinishFrame,
    IntentFrame,
    PartialFrame,
    TextDeltaFrame,
    ToolCallFrame,
    ToolResultFrame,
)

if TYPE_CHECKING:
    from intent_relay.schemas.registry import SchemaSpec

logger = logging.getLogger(__name__)

OBJECT_STREAM_ERROR = "Failed to stream object"
TEXT_STREAM_ERROR = "Failed to stream text"


async def _aclose(iterator: AsyncIterator[Any]) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is not None:
        await aclose()


def encode_frame(frame: BaseFrame) -> bytes:
    """Serialize one frame.

    Raises:
        GenerationFailure: If the frame payload is not JSON-serializable.
    """
    try:
        return frame.to_line()
    except (TypeError, ValueError) as e:
        raise GenerationFailure(f"Failed to serialize {frame.type} frame", cause=str(e)) from e


def error_frame(error: Exception, fallback: str) -> bytes:
    """Build the terminal error frame for ``error``."""
    if isinstance(error, RelayError):
        return ErrorFrame(error=error.message, code=error.code).to_line()
    return ErrorFrame(error=fallback, code="INTERNAL_ERROR").to_line()


class RelayEncoder:
    """Turns backend output into newline-delimited JSON frames."""

    async def relay_object(
        self,
        label: str,
        partials: AsyncIterator[Any],
        spec: "SchemaSpec | None" = None,
    ) -> AsyncIterator[bytes]:
        """Relay partial objects for ``label``.

        Snapshots that would rewrite already-emitted values are dropped. When
        ``spec`` is given, the last emitted snapshot must validate against it
        before the complete frame is sent.

        Args:
            label: The detected intent, announced in the first frame.
            partials: Lazy sequence of partial objects; closed on exit.
            spec: Schema the final snapshot must satisfy.

        Yields:
            Encoded frames.
        """
        last: Any = None
        count = 0
        try:
            yield encode_frame(IntentFrame(intent=label))

            try:
                async for partial in partials:
                    if count and not is_refinement(last, partial):
                        logger.warning(f"Dropping non-refining snapshot for intent {label}")
                        continue
                    line = encode_frame(PartialFrame(data=partial))
                    last = partial
                    count += 1
                    yield line

                if spec is not None:
                    if count == 0:
                        raise GenerationFailure("No object generated: the response was empty")
                    spec.validate(last)
            except Exception as e:
                if isinstance(e, RelayError):
                    logger.error(f"Object stream for intent {label} failed: {e}")
                else:
                    logger.exception(f"Unexpected error while streaming intent {label}")
                yield error_frame(e, OBJECT_STREAM_ERROR)
                return

            logger.info(f"Streamed {count} partial objects for intent {label}")
            yield encode_frame(CompleteFrame())
        finally:
            await _aclose(partials)

    async def relay_text(
        self,
        deltas: AsyncIterator[str | ToolCall | ToolResult],
    ) -> AsyncIterator[bytes]:
        """Relay text deltas and tool activity, ending with a finish or error frame."""
        try:
            try:
                async for delta in deltas:
                    if isinstance(delta, ToolCall):
                        yield encode_frame(ToolCallFrame.of(delta.id, delta.name, delta.args))
                    elif isinstance(delta, ToolResult):
                        call = delta.call
                        yield encode_frame(ToolResultFrame.of(call.id, call.name, call.args, delta.result))
                    elif delta:
                        yield encode_frame(TextDeltaFrame.of(delta))
            except Exception as e:
                if isinstance(e, RelayError):
                    logger.error(f"Text stream failed: {e}")
                else:
                    logger.exception("Unexpected error while streaming text")
                yield error_frame(e, TEXT_STREAM_ERROR)
                return

            yield encode_frame(FinishFrame())
        finally:
            await _aclose(deltas)
