"""Wire models."""

from intent_relay.models.frames import (
    BaseFrame,
    CompleteFrame,
    ErrorFrame,
    FinishFrame,
    FrameType,
    IntentFrame,
    PartialFrame,
    StreamFrame,
    TextDeltaFrame,
    ToolCallFrame,
    ToolResultFrame,
    parse_frame,
)

__all__ = [
    "BaseFrame",
    "CompleteFrame",
    "ErrorFrame",
    "FinishFrame",
    "FrameType",
    "IntentFrame",
    "PartialFrame",
    "StreamFrame",
    "TextDeltaFrame",
    "ToolCallFrame",
    "ToolResultFrame",
    "parse_frame",
]
