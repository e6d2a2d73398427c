"""Wire-frame decoding for chat completion streams.

Each line of the response is decoded on its own into a StreamEvent.
Server-sent-events framing (``data: {...}``, ``data: [DONE]``) and bare
newline-delimited JSON are both accepted; the chunk itself may be in the
OpenAI ``choices[0].delta`` shape or the native ``message`` shape.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from agentloop.exceptions import DecodeError
from agentloop.models.events import ErrorKind, StreamEvent
from agentloop.protocols import ToolCall

logger = logging.getLogger(__name__)

DONE_MARKER = "[DONE]"

_IGNORED_FIELDS = ("event:", "id:", "retry:")


def decode_line(line: str) -> StreamEvent | None:
    """Decode one line of the stream.

    Returns:
        The decoded event, or None for lines that carry nothing (blank
        lines, SSE comments and non-data fields).

    Raises:
        DecodeError: If the payload is not a JSON object.
    """
    line = line.strip()
    if not line or line.startswith(":") or line.startswith(_IGNORED_FIELDS):
        return None

    if line.startswith("data:"):
        payload = line[len("data:"):].strip()
        if payload == DONE_MARKER:
            return StreamEvent(terminal=True)
        if not payload:
            return None
    else:
        payload = line

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Malformed stream frame: {exc.msg}", frame=payload) from exc
    if not isinstance(data, dict):
        raise DecodeError(
            f"Malformed stream frame: expected an object, got {type(data).__name__}",
            frame=payload,
        )
    return decode_chunk(data)


def decode_chunk(data: dict[str, Any]) -> StreamEvent:
    """Decode a parsed chunk (or a full non-streaming response) into an event.

    Raises:
        DecodeError: If a delta field has the wrong type.
    """
    error = data.get("error")
    if error:
        if isinstance(error, dict):
            error = error.get("message") or json.dumps(error)
        return StreamEvent.failure(str(error), ErrorKind.REMOTE)

    choices = data.get("choices")
    if choices:
        if not isinstance(choices, list) or not isinstance(choices[0], dict):
            raise DecodeError("Malformed stream frame: choices is not a list of objects")
        choice = choices[0]
        delta = choice.get("delta") or choice.get("message") or {}
        finish_reason = choice.get("finish_reason")
    else:
        delta = data.get("message") or {}
        finish_reason = data.get("done_reason")

    if not isinstance(delta, dict):
        raise DecodeError("Malformed stream frame: delta is not an object")

    content = _text_field(delta, "content")
    reasoning = (
        _text_field(delta, "reasoning")
        or _text_field(delta, "reasoning_content")
        or _text_field(delta, "thinking")
    )

    raw_calls = delta.get("tool_calls") or []
    if not isinstance(raw_calls, list):
        raise DecodeError("Malformed stream frame: tool_calls is not a list")
    tool_calls = tuple(_tool_call(tc) for tc in raw_calls)

    return StreamEvent(
        content=content,
        reasoning=reasoning,
        tool_calls=tool_calls,
        terminal=bool(data.get("done")),
        finish_reason=finish_reason or None,
    )


def decode_response(data: dict[str, Any]) -> list[StreamEvent]:
    """Turn a single non-streaming response into the equivalent event sequence."""
    event = decode_chunk(data)
    if event.is_error:
        return [event]
    events = [event] if not event.is_empty else []
    if not event.terminal:
        events.append(StreamEvent(terminal=True))
    return events


def _tool_call(tc: Any) -> ToolCall:
    if not isinstance(tc, dict):
        raise DecodeError("Malformed stream frame: tool call is not an object")
    func = tc.get("function")
    if func is not None and not isinstance(func, dict):
        raise DecodeError("Malformed stream frame: tool call function is not an object")
    if func and not isinstance(func.get("name") or "", str):
        raise DecodeError("Malformed stream frame: tool call name is not a string")
    return ToolCall.from_openai(tc)


def _text_field(delta: dict[str, Any], key: str) -> str:
    value = delta.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"Malformed stream frame: {key} is not a string")
    return value
