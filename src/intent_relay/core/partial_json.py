"""Incremental JSON parsing for streamed structured output.

The backend delivers a JSON document a few characters at a time. ``parse_partial``
turns any prefix of that document into the largest value that contains only
*completed* scalars: an unterminated string or a number that may still grow is
held back, and open objects/arrays are closed. Successive snapshots of a growing
prefix therefore only ever add fields or array elements, never rewrite them.
"""

import json
import logging
import re
from typing import Any, AsyncIterator

from json_repair import repair_json

logger = logging.getLogger(__name__)

_CODE_BLOCK_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_DELIMITERS = ",}] \t\r\n"
_CLOSERS = {"{": "}", "[": "]"}


def _closers(stack: list[str]) -> str:
    return "".join(_CLOSERS[c] for c in reversed(stack))


def _find_start(text: str) -> int:
    """Index of the first ``{`` or ``[``, skipping any leading prose or fence."""
    positions = [p for p in (text.find("{"), text.find("[")) if p >= 0]
    return min(positions) if positions else -1


def _safe_prefix(text: str) -> str | None:
    """Cut ``text`` at the last complete value and close open containers.

    Returns None when no container has been opened yet.
    """
    start = _find_start(text)
    if start < 0:
        return None

    stack: list[str] = []
    expect_key = False
    in_string = False
    string_is_key = False
    escape = False
    in_literal = False
    safe: str | None = None

    for i in range(start, len(text)):
        ch = text[i]

        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
                if not string_is_key:
                    safe = text[start : i + 1] + _closers(stack)
            continue

        if in_literal:
            if ch not in _DELIMITERS:
                continue
            # Numbers and true/false/null are only complete once delimited
            in_literal = False
            safe = text[start:i] + _closers(stack)

        if ch == '"':
            in_string = True
            string_is_key = bool(stack) and stack[-1] == "{" and expect_key
        elif ch in "{[":
            stack.append(ch)
            expect_key = ch == "{"
            safe = text[start : i + 1] + _closers(stack)
        elif ch in "}]":
            if not stack:
                break
            stack.pop()
            expect_key = False
            safe = text[start : i + 1] + _closers(stack)
            if not stack:
                break
        elif ch == ",":
            expect_key = bool(stack) and stack[-1] == "{"
        elif ch == ":":
            expect_key = False
        elif not ch.isspace():
            in_literal = True

    return safe


def _loads(json_str: str) -> Any:
    """Parse JSON, falling back to json-repair for malformed model output."""
    try:
        return json.loads(json_str)
    except json.JSONDecodeError:
        logger.debug("JSON parse failed, attempting repair...")
        repaired = repair_json(json_str)
        return json.loads(repaired)


def parse_partial(text: str) -> Any | None:
    """Parse a JSON prefix into a snapshot of its completed values.

    Args:
        text: Accumulated model output so far.

    Returns:
        The snapshot (dict or list), or None if nothing usable has arrived yet.
    """
    prefix = _safe_prefix(text)
    if prefix is None:
        return None
    try:
        return _loads(prefix)
    except (json.JSONDecodeError, ValueError):
        logger.debug(f"Partial JSON not parseable yet: {prefix[:80]}")
        return None


def parse_complete(content: str) -> Any:
    """Parse a complete model response into a JSON value.

    Handles markdown code fences and uses json-repair for malformed JSON.

    Raises:
        ValueError: If the response cannot be parsed.
    """
    json_str = content.strip()
    code_block_match = _CODE_BLOCK_RE.search(json_str)
    if code_block_match:
        json_str = code_block_match.group(1).strip()

    if not json_str:
        raise ValueError("Empty response")

    try:
        return json.loads(json_str)
    except json.JSONDecodeError:
        logger.warning("JSON parse failed, attempting repair...")
        try:
            repaired = repair_json(json_str)
            return json.loads(repaired)
        except Exception as e:
            raise ValueError(f"Failed to parse or repair JSON: {e}") from e


def is_refinement(previous: Any, current: Any) -> bool:
    """Check that ``current`` keeps everything ``previous`` already had.

    Objects may gain keys, arrays may gain elements, and nested values may be
    refined recursively; scalars must be unchanged.
    """
    if previous is None:
        return True
    if isinstance(previous, dict):
        if not isinstance(current, dict):
            return False
        return all(
            key in current and is_refinement(value, current[key])
            for key, value in previous.items()
        )
    if isinstance(previous, list):
        if not isinstance(current, list) or len(current) < len(previous):
            return False
        return all(is_refinement(p, c) for p, c in zip(previous, current))
    return type(previous) is type(current) and previous == current


async def snapshots(chunks: AsyncIterator[str]) -> AsyncIterator[Any]:
    """Turn a stream of text chunks into a stream of distinct partial snapshots.

    The last snapshot is the fully parsed document. Raises ValueError if the
    accumulated text is not valid JSON once the chunk stream ends.
    """
    buffer: list[str] = []
    last: Any = None
    try:
        async for chunk in chunks:
            if not chunk:
                continue
            buffer.append(chunk)
            snapshot = parse_partial("".join(buffer))
            if snapshot is not None and snapshot != last:
                last = snapshot
                yield snapshot

        final = parse_complete("".join(buffer))
        if final != last:
            yield final
    finally:
        aclose = getattr(chunks, "aclose", None)
        if aclose is not None:
            await aclose()
