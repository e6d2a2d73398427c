"""Orchestrator package -- the agent loop and its turn types.

Provides the Agent class, turn state, accumulation and result types,
duplicate tool-batch detection, and built-in reporters.
"""

from agentloop.orchestrator.callbacks import LoggingReporter, NullReporter
from agentloop.orchestrator.config import TurnState
from agentloop.orchestrator.dedup import batch_signature, canonical, is_duplicate_batch
from agentloop.orchestrator.loop import Agent
from agentloop.orchestrator.models import (
    Fragment,
    TurnAccumulator,
    TurnContext,
    TurnResult,
)

__all__ = [
    # Core
    "Agent",
    "TurnState",
    # Models
    "Fragment",
    "TurnAccumulator",
    "TurnContext",
    "TurnResult",
    # Dedup
    "canonical",
    "batch_signature",
    "is_duplicate_batch",
    # Reporters
    "NullReporter",
    "LoggingReporter",
]
