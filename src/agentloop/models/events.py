"""Stream event model.

A StreamEvent is one decoded frame of the model's response stream.  It is
transient: the orchestrator folds it into per-turn accumulator state and
drops it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from agentloop.protocols import ToolCall


class ErrorKind(str, enum.Enum):
    """Which failure an error event reports."""

    TRANSPORT = "transport"
    DECODE = "decode"
    REMOTE = "remote"


@dataclass(frozen=True)
class StreamEvent:
    """A decoded unit of the wire stream.

    Attributes:
        content: Visible content delta ("" when absent).
        reasoning: Reasoning-channel delta ("" when absent).
        tool_calls: Tool-call batch carried by this frame.
        terminal: True for the protocol's end-of-stream marker.
        error: Error text, or None.
        error_kind: What kind of failure ``error`` describes.
        finish_reason: The frame's finish reason, when the server sent one.
    """

    content: str = ""
    reasoning: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    terminal: bool = False
    error: str | None = None
    error_kind: ErrorKind | None = None
    finish_reason: str | None = None

    @classmethod
    def failure(cls, message: str, kind: ErrorKind) -> StreamEvent:
        """Build an error event."""
        return cls(error=message, error_kind=kind)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def is_empty(self) -> bool:
        """True when the frame carries nothing the orchestrator acts on."""
        return not (
            self.content
            or self.reasoning
            or self.tool_calls
            or self.terminal
            or self.error is not None
        )
