"""Plain text generation: article summaries and streamed text."""

import logging
from typing import AsyncIterator

from intent_relay.core.backend.base import GenerationBackend
from intent_relay.core.chat import ChatMessage, ToolCall, ToolResult
from intent_relay.core.relay import RelayEncoder
from intent_relay.services.deadline import with_deadline
from intent_relay.services.tools import ToolRegistry

logger = logging.getLogger(__name__)

WRITER_SYSTEM_PROMPT = (
    "You are a professional writer. "
    "You write simple, clear, and concise content."
)

SUMMARY_PROMPT = "Summarize the following article in 3-5 sentences: {article}"


class TextGenerator:
    """Text generation on top of a backend.

    When ``tools`` are given and the backend can declare them, streamed
    answers may call tools: each model turn is relayed, requested tools are
    executed here and their results are sent back for the next turn, up to
    ``max_tool_steps`` model turns.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        encoder: RelayEncoder | None = None,
        tools: ToolRegistry | None = None,
        max_tool_steps: int = 5,
    ) -> None:
        self.backend = backend
        self.encoder = encoder or RelayEncoder()
        self.tools = tools
        self.max_tool_steps = max_tool_steps
        if tools and not backend.supports_tools:
            logger.warning(
                f"{type(backend).__name__} cannot call tools; streaming text without {tools.names}"
            )

    @property
    def uses_tools(self) -> bool:
        return bool(self.tools) and self.backend.supports_tools

    async def summarize(self, article: str) -> str:
        """Summarize an article in a few sentences."""
        return await self.backend.generate_text(
            SUMMARY_PROMPT.format(article=article),
            system_prompt=WRITER_SYSTEM_PROMPT,
        )

    def stream(self, prompt: str, deadline: float | None = None) -> AsyncIterator[bytes]:
        """Stream a free-form answer as text-delta and tool frames."""
        if self.uses_tools:
            deltas = self._converse(prompt)
        else:
            deltas = self.backend.stream_text(prompt)
        if deadline is not None:
            deltas = with_deadline(deltas, deadline)
        return self.encoder.relay_text(deltas)

    async def _converse(self, prompt: str) -> AsyncIterator[str | ToolCall | ToolResult]:
        """Run model turns, executing requested tools between them."""
        messages = [ChatMessage.user(prompt)]
        declarations = self.tools.declarations()

        for step in range(1, self.max_tool_steps + 1):
            text: list[str] = []
            calls: list[ToolCall] = []
            turn = self.backend.stream_chat(messages, declarations)
            try:
                async for item in turn:
                    if isinstance(item, ToolCall):
                        calls.append(item)
                    else:
                        text.append(item)
                    yield item
            finally:
                aclose = getattr(turn, "aclose", None)
                if aclose is not None:
                    await aclose()

            if not calls:
                return

            messages.append(ChatMessage.model("".join(text), calls))
            results: list[ToolResult] = []
            for call in calls:
                result = await self.tools.execute(call)
                results.append(result)
                yield result
            messages.append(ChatMessage.tool(results))
            logger.debug(f"Step {step}: executed {len(calls)} tool calls")

        logger.warning(f"Stopped after {self.max_tool_steps} tool steps")
