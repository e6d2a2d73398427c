"""Orchestrator data models.

TurnAccumulator collects what one model call streams back; TurnContext
carries what must survive across the model calls of one user turn;
TurnResult is what ``Agent.run_turn()`` returns.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field

from agentloop.engine.budget import BudgetReport
from agentloop.protocols import Message, ToolCall

OPEN_MARKER = "<think>"
CLOSE_MARKER = "</think>"


class Fragment(str, enum.Enum):
    """How a content delta was classified."""

    CONTENT = "content"
    REASONING = "reasoning"
    MARKER = "marker"


@dataclass
class TurnAccumulator:
    """Per-model-call accumulation state.

    Visible text and reasoning are kept apart: only ``visible_text()`` is
    ever committed to the conversation; ``reasoning`` is counted by the
    budget and then dropped.

    Attributes:
        chunks: Visible content fragments, in arrival order.
        reasoning: Reasoning fragments from the reasoning channel and from
            inline ``<think>`` spans.
        in_inline_reasoning: True between ``<think>`` and ``</think>``.
            Channel reasoning needs no flag; each event says which field
            it carries.
        last_tool_batch: Most recent tool-call batch, for duplicate
            detection.  Cleared by any content delta.
        tool_dispatched: True once a tool batch was handled during this
            call; the turn then continues with another model call.
    """

    chunks: list[str] = field(default_factory=list)
    reasoning: list[str] = field(default_factory=list)
    in_inline_reasoning: bool = False
    last_tool_batch: tuple[ToolCall, ...] | None = None
    tool_dispatched: bool = False

    def add_reasoning(self, text: str) -> Fragment:
        """Record a delta from the reasoning channel."""
        self.reasoning.append(text)
        return Fragment.REASONING

    def add_content(self, text: str) -> Fragment:
        """Classify and record a content delta.

        A delta that is exactly an inline marker (surrounding whitespace
        ignored) toggles inline reasoning and is not kept.  Inside an
        inline span, deltas are reasoning.  Anything else is visible.
        """
        self.last_tool_batch = None
        marker = text.strip()
        if marker == OPEN_MARKER:
            self.in_inline_reasoning = True
            return Fragment.MARKER
        if marker == CLOSE_MARKER:
            self.in_inline_reasoning = False
            return Fragment.MARKER
        if self.in_inline_reasoning:
            self.reasoning.append(text)
            return Fragment.REASONING
        self.chunks.append(text)
        return Fragment.CONTENT

    def visible_text(self) -> str:
        """Joined visible content with leading newlines removed."""
        return "".join(self.chunks).lstrip("\r\n")

    def reasoning_text(self) -> str:
        return "".join(self.reasoning)


@dataclass
class TurnContext:
    """State shared by every model call of one user turn."""

    timeout: float
    deadline: float
    last_tool_batch: tuple[ToolCall, ...] | None = None
    tool_rounds: int = 0
    model_calls: int = 0

    @classmethod
    def start(cls, timeout: float) -> TurnContext:
        return cls(timeout=timeout, deadline=time.monotonic() + timeout)

    def remaining(self) -> float:
        """Seconds left before the turn deadline (may be negative)."""
        return self.deadline - time.monotonic()


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one user turn.

    Attributes:
        message: The committed assistant message, or None when the turn
            failed or produced no visible content.
        error: Failure message when the turn was aborted.
        tool_rounds: Number of tool batches handled.
        model_calls: Number of requests sent to the endpoint.
        budget: Token report from the last reconciliation.
    """

    message: Message | None = None
    error: str | None = None
    tool_rounds: int = 0
    model_calls: int = 0
    budget: BudgetReport | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def content(self) -> str:
        return self.message.content if self.message is not None else ""
