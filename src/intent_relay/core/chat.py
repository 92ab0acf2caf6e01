"""Conversation types for tool-calling text streams.

A tool-calling stream is a short conversation: the user prompt, then model
turns that may request tools, each followed by a turn carrying the tool
results. Backends translate these types to their own wire format.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ToolDeclaration:
    """A tool the model may call, with a JSON schema for its arguments."""

    name: str
    description: str
    parameters: dict[str, Any]


@dataclass
class ToolCall:
    """A tool invocation requested by the model.

    ``raw`` keeps the provider's original part so it can be echoed back
    unchanged in the next request.
    """

    id: str
    name: str
    args: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] | None = None


@dataclass
class ToolResult:
    """The outcome of executing a ToolCall."""

    call: ToolCall
    result: Any


@dataclass
class ChatMessage:
    """One turn of a tool-calling conversation."""

    role: str
    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)

    @classmethod
    def user(cls, text: str) -> "ChatMessage":
        return cls(role="user", text=text)

    @classmethod
    def model(cls, text: str, tool_calls: list[ToolCall]) -> "ChatMessage":
        return cls(role="model", text=text, tool_calls=list(tool_calls))

    @classmethod
    def tool(cls, results: list[ToolResult]) -> "ChatMessage":
        return cls(role="tool", tool_results=list(results))
