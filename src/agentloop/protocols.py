"""Protocol definitions and conversation types for agentloop.

Defines the frozen dataclasses that make up a conversation (Message,
ToolCall) and the pluggable interfaces (TokenCounter, Reporter).
"""

from __future__ import annotations

import json as _json
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Protocol, TypedDict, runtime_checkable

if TYPE_CHECKING:
    from agentloop.engine.budget import BudgetReport
    from agentloop.toolkit.models import ToolResult

Role = Literal["system", "user", "assistant", "tool"]

ROLES: frozenset[str] = frozenset({"system", "user", "assistant", "tool"})


class _ToolCallOpenAIFunction(TypedDict):
    """OpenAI function sub-object."""

    name: str
    arguments: str


class ToolCallOpenAIDict(TypedDict):
    """OpenAI wire format for a single tool call."""

    id: str
    type: str
    function: _ToolCallOpenAIFunction


@dataclass(frozen=True)
class ToolCall:
    """A tool/function invocation requested by the model.

    Arguments are always a parsed dict -- JSON strings are decoded at
    ingestion time.  The ``id`` is transport bookkeeping and takes no part
    in duplicate detection.
    """

    name: str
    arguments: dict = field(default_factory=dict)
    id: str = ""

    @classmethod
    def from_openai(cls, tc: dict) -> ToolCall:
        """Parse from OpenAI/compatible format.

        ``function.arguments`` may be a JSON string (OpenAI) or an object
        (Ollama).  An undecodable string is kept under ``_raw`` so the
        tool's argument validation reports it to the model.
        """
        func = tc.get("function") or {}
        raw_args = func.get("arguments")
        if raw_args is None or raw_args == "":
            arguments: dict = {}
        elif isinstance(raw_args, str):
            try:
                arguments = _json.loads(raw_args)
            except (_json.JSONDecodeError, TypeError):
                arguments = {"_raw": raw_args}
        else:
            arguments = raw_args
        if not isinstance(arguments, dict):
            arguments = {"_raw": arguments}
        return cls(
            name=func.get("name") or "",
            arguments=arguments,
            id=tc.get("id") or f"call_{uuid.uuid4().hex[:8]}",
        )

    def to_openai(self) -> ToolCallOpenAIDict:
        """Serialize to OpenAI wire format."""
        return {
            "id": self.id,
            "type": "function",
            "function": {
                "name": self.name,
                "arguments": _json.dumps(self.arguments),
            },
        }


@dataclass(frozen=True)
class Message:
    """A single, fully formed message in the conversation.

    ``content`` of a ``tool`` message is the JSON document produced by
    ``ToolResult.to_content()``.
    """

    role: str
    content: str
    tool_name: str | None = None
    tool_calls: tuple[ToolCall, ...] | None = None
    tool_call_id: str | None = None

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")
        if self.tool_calls is not None and not isinstance(self.tool_calls, tuple):
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the ``messages`` array of a chat request."""
        d: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_name is not None:
            d["name"] = self.tool_name
        if self.tool_calls:
            d["tool_calls"] = [tc.to_openai() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            d["tool_call_id"] = self.tool_call_id
        return d


@runtime_checkable
class TokenCounter(Protocol):
    """Protocol for pluggable token counting."""

    def count_text(self, text: str) -> int:
        """Count tokens in a plain text string."""
        ...


@runtime_checkable
class Reporter(Protocol):
    """Receives what the agent sees during a turn, for display or logging."""

    def content(self, text: str) -> None:
        """A visible content delta."""
        ...

    def reasoning(self, text: str) -> None:
        """A reasoning delta (never persisted)."""
        ...

    def tool_call(self, call: ToolCall) -> None:
        """A tool call about to be dispatched."""
        ...

    def tool_result(self, call: ToolCall, result: ToolResult) -> None:
        """The result of a dispatched (or synthesized) tool call."""
        ...

    def budget(self, report: BudgetReport) -> None:
        """Token totals after a reconciliation."""
        ...

    def error(self, message: str) -> None:
        """A turn-level failure."""
        ...
