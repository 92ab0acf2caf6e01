"""Claude CLI backend implementation.

Uses subprocess to call the Claude CLI. Structured output is requested through
the system prompt and parsed from the streamed text.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, AsyncIterator

import yaml

from intent_relay.config import BackendConfig
from intent_relay.core.backend.base import GenerationBackend
from intent_relay.core.backend.factory import BackendRegistry
from intent_relay.core.errors import GenerationFailure
from intent_relay.core.partial_json import parse_complete

logger = logging.getLogger(__name__)

# Load provider config
_config_path = Path(__file__).parent / "config.yaml"
with open(_config_path) as f:
    _config = yaml.safe_load(f)

ENUM_SYSTEM_PROMPT = (
    "You are a classifier. Answer with exactly one of the following values and "
    "nothing else: {choices}"
)

JSON_SYSTEM_PROMPT = (
    "Respond only with a JSON document, without markdown fences or commentary. "
    "{shape}"
)


def _map_model(logical_model: str) -> str:
    """Map logical model name to Claude CLI model name."""
    models = _config.get("models", {})
    # If it's already a valid model name, return as-is
    if logical_model in models.values():
        return logical_model
    # Otherwise try to map it
    return models.get(logical_model, logical_model)


@BackendRegistry.register("claude_cli")
class ClaudeCLIBackend(GenerationBackend):
    """Backend using Claude CLI subprocess.

    Handles spawning Claude CLI processes, parsing stream-json output,
    and killing the process when the consumer stops reading.
    """

    def __init__(self, config: BackendConfig) -> None:
        """Initialize the backend.

        Args:
            config: Backend configuration. Only model and timeout are used.
        """
        super().__init__(config)
        self.model = _map_model(config.model) if config.model else "sonnet"
        self.timeout = config.timeout_seconds

    def _build_command(self, prompt: str, system_prompt: str | None = None) -> list[str]:
        """Build the Claude CLI command."""
        args = _config.get("cli", {}).get("streaming", [])

        cmd = ["claude"] + list(args) + ["--model", self.model]

        if system_prompt:
            cmd.extend(["--system-prompt", system_prompt])

        cmd.append("--")
        cmd.append(prompt)
        return cmd

    def _parse_stream_line(self, line: str) -> tuple[str, str] | None:
        """Parse a single line of stream-json output.

        Returns:
            A ``(kind, text)`` pair where kind is "delta", "result" or "error",
            or None for lines that carry no text.
        """
        line = line.strip()
        if not line:
            return None

        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            logger.warning(f"Failed to parse JSON line: {line[:100]}")
            return None

        msg_type = data.get("type", "")

        if msg_type == "stream_event":
            data = data.get("event", {})
            msg_type = data.get("type", "")

        if msg_type == "content_block_delta":
            delta = data.get("delta", {})
            if delta.get("type") == "text_delta":
                return "delta", delta.get("text", "")
            return None
        elif msg_type == "result":
            result = data.get("result", "")
            if not isinstance(result, str):
                result = json.dumps(result)
            return ("error" if data.get("is_error") else "result"), result
        elif msg_type == "error":
            error = data.get("error", {})
            message = error.get("message", str(data)) if isinstance(error, dict) else str(error)
            return "error", message

        logger.debug(f"Ignoring message type: {msg_type}")
        return None

    async def _run(self, prompt: str, system_prompt: str | None = None) -> AsyncIterator[str]:
        """Run the CLI and yield text deltas.

        Falls back to the final result text when the CLI emitted no deltas.
        """
        cmd = self._build_command(prompt, system_prompt)
        logger.info(f"Streaming Claude CLI with model={self.model}")
        logger.debug(f"Command: {' '.join(cmd[:6])}...")

        try:
            # Tool results and long documents can exceed the default 64KB line limit
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=10 * 1024 * 1024,  # 10MB
            )
        except FileNotFoundError as e:
            raise GenerationFailure(
                "Claude CLI not found. Please ensure 'claude' is installed and in PATH."
            ) from e

        saw_delta = False
        result_text: str | None = None
        try:
            if process.stdout is not None:
                async for line in process.stdout:
                    parsed = self._parse_stream_line(line.decode("utf-8", errors="replace"))
                    if parsed is None:
                        continue
                    kind, text = parsed
                    if kind == "error":
                        raise GenerationFailure(f"Claude CLI error: {text}")
                    if kind == "result":
                        result_text = text
                    elif text:
                        saw_delta = True
                        yield text

            await process.wait()
            if process.returncode != 0:
                stderr = ""
                if process.stderr:
                    stderr = (await process.stderr.read()).decode("utf-8", errors="replace")
                raise GenerationFailure(f"Process exited with code {process.returncode}: {stderr}")

            if not saw_delta and result_text:
                yield result_text
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

    async def _collect(self, prompt: str, system_prompt: str | None = None) -> str:
        """Run the CLI to completion and return the full text."""

        async def read_all() -> str:
            return "".join([delta async for delta in self._run(prompt, system_prompt)])

        if self.timeout <= 0:
            return await read_all()
        try:
            return await asyncio.wait_for(read_all(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise GenerationFailure(f"Execution timed out after {self.timeout} seconds") from e

    def _json_system_prompt(self, schema: dict[str, Any] | None) -> str:
        if schema is None:
            shape = "Choose whatever structure best fits the request."
        else:
            shape = "The document must validate against this JSON schema:\n" + json.dumps(schema, indent=2)
        return JSON_SYSTEM_PROMPT.format(shape=shape)

    async def generate_text(self, prompt: str, system_prompt: str | None = None) -> str:
        """Generate a complete text response."""
        return await self._collect(prompt, system_prompt)

    async def stream_text(
        self,
        prompt: str,
        system_prompt: str | None = None,
    ) -> AsyncIterator[str]:
        """Generate text and yield deltas as they arrive."""
        async for delta in self._run(prompt, system_prompt):
            yield delta

    async def generate_enum(self, prompt: str, choices: list[str]) -> str:
        """Ask for one of ``choices`` and return the trimmed answer."""
        system_prompt = ENUM_SYSTEM_PROMPT.format(choices=", ".join(choices))
        answer = await self._collect(prompt, system_prompt)
        return answer.strip().strip("\"'`.").strip()

    async def generate_object(self, prompt: str, schema: dict[str, Any] | None) -> Any:
        """Generate a JSON value matching ``schema``."""
        text = await self._collect(prompt, self._json_system_prompt(schema))
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
        async for delta in self._run(prompt, self._json_system_prompt(schema)):
            yield delta
