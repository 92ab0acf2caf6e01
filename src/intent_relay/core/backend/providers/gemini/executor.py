"""Gemini backend implementation.

Uses the Generative Language REST API over aiohttp. Blocking calls go to
``generateContent``; streams use ``streamGenerateContent`` with SSE framing.
"""

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Any, AsyncIterator

import aiohttp
import yaml

from intent_relay.config import BackendConfig
from intent_relay.core.backend.base import GenerationBackend
from intent_relay.core.backend.factory import BackendRegistry
from intent_relay.core.chat import ChatMessage, ToolCall, ToolDeclaration
from intent_relay.core.errors import GenerationFailure
from intent_relay.core.partial_json import parse_complete

logger = logging.getLogger(__name__)

# Load provider config
_config_path = Path(__file__).parent / "config.yaml"
with open(_config_path) as f:
    _config = yaml.safe_load(f)

_SCHEMA_KEYWORDS = set(_config.get("schema_keywords", []))
_STRING_FORMATS = set(_config.get("string_formats", []))


def _map_model(logical_model: str) -> str:
    """Map logical model name to a Gemini model id."""
    models = _config.get("models", {})
    if logical_model in models.values():
        return logical_model
    return models.get(logical_model, logical_model)


def to_gemini_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Convert a JSON schema into the OpenAPI subset accepted as ``responseSchema``.

    Types are upper-cased, unsupported keywords are dropped and objects get an
    explicit ``propertyOrdering`` so fields are generated in declaration order.
    """
    converted: dict[str, Any] = {}
    for key, value in schema.items():
        if key not in _SCHEMA_KEYWORDS:
            continue
        if key == "type":
            converted[key] = value.upper()
        elif key == "format":
            if value in _STRING_FORMATS:
                converted[key] = value
        elif key == "properties":
            converted[key] = {name: to_gemini_schema(sub) for name, sub in value.items()}
        elif key == "items":
            converted[key] = to_gemini_schema(value)
        else:
            converted[key] = value

    if "properties" in converted and "propertyOrdering" not in converted:
        converted["propertyOrdering"] = list(converted["properties"].keys())
    return converted


@BackendRegistry.register("gemini", default=True)
class GeminiBackend(GenerationBackend):
    """Backend using the Gemini Generative Language API.

    Handles request construction, SSE stream parsing and translation of
    transport and safety errors into GenerationFailure.
    """

    supports_tools = True

    def __init__(self, config: BackendConfig) -> None:
        """Initialize the backend.

        Args:
            config: Backend configuration (model, API key, base URL, timeout).
        """
        super().__init__(config)
        api = _config.get("api", {})
        self.model = _map_model(config.model)
        self.timeout = (
            config.timeout_seconds
            if config.timeout_seconds > 0
            else float(api.get("default_timeout_seconds", 120))
        )
        self._base_url = (config.base_url or api["base_url"]).rstrip("/")
        self._http_session: aiohttp.ClientSession | None = None

    async def _get_http_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._http_session is None or self._http_session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._http_session = aiohttp.ClientSession(timeout=timeout)
        return self._http_session

    def _headers(self) -> dict[str, str]:
        if not self.config.api_key:
            raise GenerationFailure("GOOGLE_API_KEY is not configured")
        return {
            "x-goog-api-key": self.config.api_key,
            "Content-Type": "application/json",
        }

    def _build_body(
        self,
        prompt: str,
        system_prompt: str | None = None,
        generation_config: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Build a generateContent request body."""
        body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        if generation_config:
            body["generationConfig"] = generation_config
        return body

    def _json_config(self, schema: dict[str, Any] | None) -> dict[str, Any]:
        generation_config: dict[str, Any] = {"responseMimeType": "application/json"}
        if schema is not None:
            generation_config["responseSchema"] = to_gemini_schema(schema)
        return generation_config

    def _candidate_parts(self, data: dict[str, Any]) -> list[dict[str, Any]]:
        """Return the parts of the first candidate, raising on blocked output."""
        feedback = data.get("promptFeedback") or {}
        if feedback.get("blockReason"):
            raise GenerationFailure(f"Prompt rejected by the model: {feedback['blockReason']}")

        candidates = data.get("candidates") or []
        if not candidates:
            return []

        candidate = candidates[0]
        finish_reason = candidate.get("finishReason")
        if finish_reason in ("SAFETY", "RECITATION", "BLOCKLIST", "PROHIBITED_CONTENT"):
            raise GenerationFailure(f"Response rejected by the model: {finish_reason}")

        return (candidate.get("content") or {}).get("parts") or []

    def _extract_text(self, data: dict[str, Any]) -> str:
        """Extract the text of the first candidate, skipping thoughts."""
        return "".join(
            part.get("text", "") for part in self._candidate_parts(data) if not part.get("thought")
        )

    async def _post(self, body: dict[str, Any]) -> dict[str, Any]:
        """Call generateContent and return the decoded response."""
        url = f"{self._base_url}/models/{self.model}:generateContent"
        logger.info(f"Calling Gemini generateContent with model={self.model}")

        try:
            http = await self._get_http_session()
            async with http.post(url, json=body, headers=self._headers()) as resp:
                if resp.status != 200:
                    error_text = await resp.text()
                    raise GenerationFailure(f"Gemini API error {resp.status}: {error_text[:300]}")
                return await resp.json()
        except aiohttp.ClientError as e:
            logger.error(f"HTTP error during generation: {e}")
            raise GenerationFailure(f"Connection error: {e}") from e
        except asyncio.TimeoutError as e:
            raise GenerationFailure(f"Generation timed out after {self.timeout} seconds") from e

    async def _stream_chunks(self, body: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
        """Call streamGenerateContent and yield decoded response chunks."""
        url = f"{self._base_url}/models/{self.model}:streamGenerateContent"
        logger.info(f"Streaming Gemini with model={self.model}")

        try:
            http = await self._get_http_session()
            async with http.post(
                url,
                params={"alt": "sse"},
                json=body,
                headers=self._headers(),
            ) as resp:
                if resp.status != 200:
                    error_text = await resp.text()
                    raise GenerationFailure(f"Gemini API error {resp.status}: {error_text[:300]}")

                async for line in resp.content:
                    data = self._parse_sse_line(line)
                    if data is not None:
                        yield data
        except aiohttp.ClientError as e:
            logger.error(f"HTTP error during streaming: {e}")
            raise GenerationFailure(f"Connection error: {e}") from e
        except asyncio.TimeoutError as e:
            raise GenerationFailure(f"Generation timed out after {self.timeout} seconds") from e

    async def _stream(self, body: dict[str, Any]) -> AsyncIterator[str]:
        """Stream text deltas."""
        async for data in self._stream_chunks(body):
            text = self._extract_text(data)
            if text:
                yield text

    def _parse_sse_line(self, line: bytes) -> dict[str, Any] | None:
        """Parse SSE line into a response chunk."""
        line_str = line.decode("utf-8", errors="replace").strip()
        if not line_str or line_str.startswith(":"):
            return None

        if line_str.startswith("data:"):
            line_str = line_str[5:].strip()
        if not line_str:
            return None

        try:
            return json.loads(line_str)
        except json.JSONDecodeError:
            logger.debug(f"Non-JSON event line: {line_str[:50]}")
            return None

    async def generate_text(self, prompt: str, system_prompt: str | None = None) -> str:
        """Generate a complete text response."""
        data = await self._post(self._build_body(prompt, system_prompt))
        return self._extract_text(data)

    async def stream_text(
        self,
        prompt: str,
        system_prompt: str | None = None,
    ) -> AsyncIterator[str]:
        """Generate text and yield deltas as they arrive."""
        async for delta in self._stream(self._build_body(prompt, system_prompt)):
            yield delta

    async def generate_enum(self, prompt: str, choices: list[str]) -> str:
        """Generate one of ``choices`` using the API's enum response mode."""
        body = self._build_body(
            prompt,
            generation_config={
                "responseMimeType": "text/x.enum",
                "responseSchema": {"type": "STRING", "enum": list(choices)},
            },
        )
        data = await self._post(body)
        return self._extract_text(data).strip()

    async def generate_object(self, prompt: str, schema: dict[str, Any] | None) -> Any:
        """Generate a JSON value matching ``schema``."""
        data = await self._post(self._build_body(prompt, generation_config=self._json_config(schema)))
        text = self._extract_text(data)
        try:
            return parse_complete(text)
        except ValueError as e:
            raise GenerationFailure(
                "No object generated: could not parse the response",
                text=text,
                cause=str(e),
            ) from e

    async def stream_json(
        self,
        prompt: str,
        schema: dict[str, Any] | None,
    ) -> AsyncIterator[str]:
        """Generate a JSON document and yield raw text chunks."""
        body = self._build_body(prompt, generation_config=self._json_config(schema))
        async for delta in self._stream(body):
            yield delta

    def _contents(self, messages: list[ChatMessage]) -> list[dict[str, Any]]:
        """Translate a conversation into ``contents`` entries."""
        contents: list[dict[str, Any]] = []
        for message in messages:
            if message.role == "model":
                parts: list[dict[str, Any]] = []
                if message.text:
                    parts.append({"text": message.text})
                for call in message.tool_calls:
                    parts.append(call.raw or {"functionCall": {"name": call.name, "args": call.args}})
                contents.append({"role": "model", "parts": parts})
            elif message.role == "tool":
                parts = []
                for outcome in message.tool_results:
                    response = outcome.result if isinstance(outcome.result, dict) else {"result": outcome.result}
                    function_response: dict[str, Any] = {"name": outcome.call.name, "response": response}
                    # Only echo ids the API generated itself
                    if outcome.call.raw and "id" in outcome.call.raw.get("functionCall", {}):
                        function_response["id"] = outcome.call.id
                    parts.append({"functionResponse": function_response})
                contents.append({"role": "user", "parts": parts})
            else:
                contents.append({"role": "user", "parts": [{"text": message.text}]})
        return contents

    async def stream_chat(
        self,
        messages: list[ChatMessage],
        tools: list[ToolDeclaration],
    ) -> AsyncIterator[str | ToolCall]:
        """Stream one model turn with ``tools`` declared as functions."""
        body: dict[str, Any] = {"contents": self._contents(messages)}
        if tools:
            body["tools"] = [
                {
                    "functionDeclarations": [
                        {
                            "name": tool.name,
                            "description": tool.description,
                            "parameters": to_gemini_schema(tool.parameters),
                        }
                        for tool in tools
                    ]
                }
            ]

        async for data in self._stream_chunks(body):
            for part in self._candidate_parts(data):
                if part.get("thought"):
                    continue
                function_call = part.get("functionCall")
                if function_call:
                    yield ToolCall(
                        id=function_call.get("id") or f"call_{uuid.uuid4().hex[:12]}",
                        name=function_call.get("name", ""),
                        args=function_call.get("args") or {},
                        raw=part,
                    )
                elif part.get("text"):
                    yield part["text"]

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._http_session and not self._http_session.closed:
            await self._http_session.close()
