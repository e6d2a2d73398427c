"""Orchestrator state types.

A turn moves through these states::

    AWAITING_INPUT -> STREAMING -> CLASSIFYING_* -> STREAMING -> ...
                                \\-> TOOL_DISPATCH -> STREAMING (next model call)

and returns to AWAITING_INPUT when the turn commits, fails, or ends
without output.  FINISHED is entered once input is exhausted.
"""

from __future__ import annotations

import enum


class TurnState(str, enum.Enum):
    """States the agent can be in during its lifecycle."""

    AWAITING_INPUT = "awaiting_input"
    STREAMING = "streaming"
    CLASSIFYING_CONTENT = "classifying_content"
    CLASSIFYING_REASONING = "classifying_reasoning"
    CLASSIFYING_TOOL_CALL = "classifying_tool_call"
    TOOL_DISPATCH = "tool_dispatch"
    FINISHED = "finished"
