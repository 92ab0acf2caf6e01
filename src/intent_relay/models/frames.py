"""Frame types for newline-delimited JSON streaming."""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class FrameType(str, Enum):
    """Types of stream frames."""

    # Structured object relay
    INTENT = "intent"
    PARTIAL = "partial"
    COMPLETE = "complete"

    # Text relay
    TEXT_DELTA = "text-delta"
    TOOL_CALL = "tool-call"
    TOOL_RESULT = "tool-result"
    FINISH = "finish"

    # Errors
    ERROR = "error"


class BaseFrame(BaseModel):
    """Base class for all frames."""

    type: str

    def to_line(self) -> bytes:
        """Serialize as one newline-terminated JSON document."""
        return (self.model_dump_json() + "\n").encode("utf-8")


class IntentFrame(BaseFrame):
    """Announces the detected label; always the first frame."""

    type: Literal["intent"] = "intent"
    intent: str


class PartialFrame(BaseFrame):
    """One snapshot of the object under construction."""

    type: Literal["partial"] = "partial"
    data: Any


class CompleteFrame(BaseFrame):
    """Successful end of an object stream."""

    type: Literal["complete"] = "complete"


class TextDeltaFrame(BaseFrame):
    """A chunk of generated text."""

    type: Literal["text-delta"] = "text-delta"
    data: dict[str, str]

    @classmethod
    def of(cls, text: str) -> "TextDeltaFrame":
        return cls(data={"text": text})


class ToolCallFrame(BaseFrame):
    """A tool invocation requested by the model."""

    type: Literal["tool-call"] = "tool-call"
    data: dict[str, Any]

    @classmethod
    def of(cls, call_id: str, name: str, args: dict[str, Any]) -> "ToolCallFrame":
        return cls(data={"toolCallId": call_id, "toolName": name, "args": args})


class ToolResultFrame(BaseFrame):
    """The output of an executed tool."""

    type: Literal["tool-result"] = "tool-result"
    data: dict[str, Any]

    @classmethod
    def of(cls, call_id: str, name: str, args: dict[str, Any], result: Any) -> "ToolResultFrame":
        return cls(data={"toolCallId": call_id, "toolName": name, "args": args, "result": result})


class FinishFrame(BaseFrame):
    """Successful end of a text stream."""

    type: Literal["finish"] = "finish"


class ErrorFrame(BaseFrame):
    """Failed end of any stream."""

    type: Literal["error"] = "error"
    error: str = ""
    code: str = "UNKNOWN"


StreamFrame = Annotated[
    Union[
        IntentFrame,
        PartialFrame,
        CompleteFrame,
        TextDeltaFrame,
        ToolCallFrame,
        ToolResultFrame,
        FinishFrame,
        ErrorFrame,
    ],
    Field(discriminator="type"),
]

_frame_adapter: TypeAdapter[StreamFrame] = TypeAdapter(StreamFrame)


def parse_frame(line: str | bytes) -> BaseFrame:
    """Decode one line of a relay stream into its frame model."""
    return _frame_adapter.validate_json(line)
