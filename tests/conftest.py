"""Shared fixtures: a scripted backend and sample documents."""

import asyncio
import json
from typing import Any, AsyncIterator

import pytest

from intent_relay.config import BackendConfig, reset_settings
from intent_relay.core.backend.base import GenerationBackend
from intent_relay.core.chat import ChatMessage, ToolCall, ToolDeclaration


class ScriptedBackend(GenerationBackend):
    """Backend that replays canned answers and records every call."""

    def __init__(
        self,
        labels: list[str] | None = None,
        objects: list[Any] | None = None,
        chunks: list[str] | None = None,
        deltas: list[str] | None = None,
        text: str = "",
        error: Exception | None = None,
        delay: float = 0.0,
        turns: list[list[str | ToolCall]] | None = None,
    ) -> None:
        super().__init__(BackendConfig(provider="scripted"))
        self.labels = list(labels or [])
        self.objects = list(objects or [])
        self.chunks = list(chunks or [])
        self.deltas = list(deltas or [])
        self.text = text
        self.error = error
        self.delay = delay
        self.turns = [list(turn) for turn in turns] if turns is not None else None
        self.supports_tools = turns is not None
        self.conversations: list[list[ChatMessage]] = []
        self.declared: list[str] = []
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    async def generate_text(self, prompt: str, system_prompt: str | None = None) -> str:
        self.calls.append(("text", prompt))
        if self.error:
            raise self.error
        return self.text

    async def stream_text(
        self,
        prompt: str,
        system_prompt: str | None = None,
    ) -> AsyncIterator[str]:
        self.calls.append(("stream_text", prompt))
        for delta in self.deltas:
            if self.delay:
                await asyncio.sleep(self.delay)
            yield delta
        if self.error:
            raise self.error

    async def generate_enum(self, prompt: str, choices: list[str]) -> str:
        self.calls.append(("enum", prompt))
        if self.error:
            raise self.error
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.labels.pop(0)

    async def generate_object(self, prompt: str, schema: dict[str, Any] | None) -> Any:
        self.calls.append(("object", prompt))
        if self.error:
            raise self.error
        return self.objects.pop(0)

    async def stream_json(
        self,
        prompt: str,
        schema: dict[str, Any] | None,
    ) -> AsyncIterator[str]:
        self.calls.append(("stream_json", prompt))
        for chunk in self.chunks:
            if self.delay:
                await asyncio.sleep(self.delay)
            yield chunk
        if self.error:
            raise self.error

    async def stream_chat(
        self,
        messages: list[ChatMessage],
        tools: list[ToolDeclaration],
    ) -> AsyncIterator[str | ToolCall]:
        self.calls.append(("chat", messages[0].text))
        self.conversations.append(list(messages))
        self.declared = [tool.name for tool in tools]
        for item in self.turns.pop(0):
            if self.delay:
                await asyncio.sleep(self.delay)
            yield item
        if self.error:
            raise self.error

    async def close(self) -> None:
        self.closed = True


def split_text(text: str, size: int) -> list[str]:
    """Split ``text`` into chunks of ``size`` characters."""
    return [text[i : i + size] for i in range(0, len(text), size)]


@pytest.fixture(autouse=True)
def cleanup_settings():
    """Reset cached settings around each test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def scripted_backend() -> type[ScriptedBackend]:
    """The scripted backend class."""
    return ScriptedBackend


@pytest.fixture
def chunker():
    """Helper splitting a string into fixed-size chunks."""
    return split_text


@pytest.fixture
def curry_recipe() -> dict[str, Any]:
    """A valid recipe document in wire form."""
    return {
        "recipe": {
            "name": "Chicken Curry",
            "cuisine": "Indian",
            "difficulty": "medium",
            "prepTime": "15 minutes",
            "cookTime": "35 minutes",
            "servings": 4,
            "ingredients": [
                {"name": "chicken thighs", "amount": "600", "unit": "g"},
                {"name": "coconut milk", "amount": "400", "unit": "ml"},
            ],
            "steps": [
                "Brown the chicken",
                "Add the spices and coconut milk",
                "Simmer until tender",
            ],
            "tags": ["spicy", "dinner"],
        }
    }


@pytest.fixture
def curry_json(curry_recipe: dict[str, Any]) -> str:
    """The recipe document serialized as the backend would send it."""
    return json.dumps(curry_recipe)


@pytest.fixture
def einstein() -> dict[str, Any]:
    """A valid person document in wire form."""
    return {
        "person": {
            "name": "Albert Einstein",
            "profession": "Physicist",
            "nationality": "German-born",
            "birthYear": 1879,
            "knownFor": ["Theory of relativity"],
            "achievements": ["Nobel Prize in Physics 1921"],
            "biography": "Theoretical physicist.",
            "funFacts": ["Played the violin"],
        }
    }
