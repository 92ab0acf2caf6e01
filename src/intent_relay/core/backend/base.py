"""Generation backend abstract base class.

All backend providers must inherit from GenerationBackend and implement the
abstract methods.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

from intent_relay.config import BackendConfig
from intent_relay.core.chat import ChatMessage, ToolCall, ToolDeclaration
from intent_relay.core.errors import GenerationFailure
from intent_relay.core.partial_json import snapshots


class GenerationBackend(ABC):
    """Generation backend abstract base class.

    A backend wraps one hosted model. It produces plain text, a label from a
    fixed enumeration, or JSON values constrained by a JSON schema, either in
    one call or as a stream. Failures are raised as GenerationFailure.
    """

    # Whether stream_chat can declare tools to the model
    supports_tools: bool = False

    def __init__(self, config: BackendConfig) -> None:
        self.config = config

    @abstractmethod
    async def generate_text(self, prompt: str, system_prompt: str | None = None) -> str:
        """Generate a complete text response."""
        pass

    @abstractmethod
    async def stream_text(
        self,
        prompt: str,
        system_prompt: str | None = None,
    ) -> AsyncIterator[str]:
        """Generate text and yield deltas as they arrive."""
        pass

    @abstractmethod
    async def generate_enum(self, prompt: str, choices: list[str]) -> str:
        """Generate a single value constrained to ``choices``.

        Providers should ask the model to respect the set, but callers must not
        assume the returned value is a member.
        """
        pass

    @abstractmethod
    async def generate_object(self, prompt: str, schema: dict[str, Any] | None) -> Any:
        """Generate a JSON value matching ``schema`` (any JSON object if None)."""
        pass

    @abstractmethod
    async def stream_json(
        self,
        prompt: str,
        schema: dict[str, Any] | None,
    ) -> AsyncIterator[str]:
        """Generate a JSON document matching ``schema`` and yield raw text chunks."""
        pass

    async def stream_object(
        self,
        prompt: str,
        schema: dict[str, Any] | None,
    ) -> AsyncIterator[Any]:
        """Yield monotonically refining snapshots of a generated JSON value.

        The last snapshot is the complete value.
        """
        try:
            async for snapshot in snapshots(self.stream_json(prompt, schema)):
                yield snapshot
        except ValueError as e:
            raise GenerationFailure("No object generated: could not parse the response", cause=str(e)) from e

    async def stream_chat(
        self,
        messages: list[ChatMessage],
        tools: list[ToolDeclaration],
    ) -> AsyncIterator[str | ToolCall]:
        """Continue a conversation, yielding text deltas and requested tool calls.

        The stream ends after one model turn; the caller executes any yielded
        ToolCall and calls again with the results appended.

        Raises:
            GenerationFailure: If the provider cannot declare tools.
        """
        raise GenerationFailure(f"{type(self).__name__} does not support tool calling")
        yield  # pragma: no cover

    async def close(self) -> None:
        """Release resources (optional implementation)."""
        pass

    async def __aenter__(self) -> "GenerationBackend":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args) -> None:
        """Async context manager exit."""
        await self.close()
