"""Tools the model may call while streaming text.

Each tool pairs a pydantic argument model with an async handler that runs
inside the application. The demo tools simulate slow lookups with random
data.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator

from pydantic import BaseModel, Field, ValidationError

from intent_relay.core.chat import ToolCall, ToolDeclaration, ToolResult
from intent_relay.core.errors import GenerationFailure
from intent_relay.schemas import model_schema

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class Tool:
    """A callable tool.

    Attributes:
        name: Name the model calls the tool by.
        description: What the tool does, shown to the model.
        parameters: Pydantic model validating the call arguments.
        handler: Coroutine function receiving the validated arguments.
    """

    name: str
    description: str
    parameters: type[BaseModel]
    handler: ToolHandler

    def declaration(self) -> ToolDeclaration:
        return ToolDeclaration(
            name=self.name,
            description=self.description,
            parameters=model_schema(self.parameters),
        )


class ToolRegistry:
    """Named tools, in registration order."""

    def __init__(self, tools: list[Tool] | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """Add a tool.

        Raises:
            ValueError: If a tool with the same name exists.
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name!r} is already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def declarations(self) -> list[ToolDeclaration]:
        return [tool.declaration() for tool in self._tools.values()]

    async def execute(self, call: ToolCall) -> ToolResult:
        """Validate the arguments of ``call`` and run its handler.

        Raises:
            GenerationFailure: If the tool is unknown, the arguments do not
                validate or the handler fails.
        """
        tool = self._tools.get(call.name)
        if tool is None:
            raise GenerationFailure(f"Model called unknown tool: {call.name}")

        try:
            args = tool.parameters.model_validate(call.args)
        except ValidationError as e:
            raise GenerationFailure(
                f"Invalid arguments for tool {call.name}",
                cause=str(e),
            ) from e

        logger.info(f"Executing tool {call.name} ({call.id})")
        try:
            result = await tool.handler(args)
        except GenerationFailure:
            raise
        except Exception as e:
            logger.exception(f"Tool {call.name} failed")
            raise GenerationFailure(f"Tool {call.name} failed", cause=str(e)) from e
        return ToolResult(call=call, result=result)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)


class CityArgs(BaseModel):
    city: str = Field(description="The city to look up")


async def get_weather(args: CityArgs) -> dict[str, Any]:
    await asyncio.sleep(1.0)
    return {
        "city": args.city,
        "temperature": random.randint(10, 39),
        "condition": random.choice(["Sunny", "Cloudy", "Rainy"]),
    }


async def get_city_info(args: CityArgs) -> dict[str, Any]:
    await asyncio.sleep(0.8)
    return {
        "city": args.city,
        "population": f"{random.randint(0, 4)}M",
        "country": "Various",
        "famousFor": "Tourism and culture",
    }


DEMO_TOOLS = ToolRegistry(
    [
        Tool(
            name="getWeather",
            description="Get the weather for a location",
            parameters=CityArgs,
            handler=get_weather,
        ),
        Tool(
            name="getCityInfo",
            description="Get information about a city",
            parameters=CityArgs,
            handler=get_city_info,
        ),
    ]
)
