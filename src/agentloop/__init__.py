"""agentloop: a terminal chat agent for local, tool-using language models.

Streams a model's response, keeps its reasoning out of the conversation,
runs the file tools it asks for, and keeps the history inside the
model's context window.
"""

from agentloop._version import __version__

# Core entry point
from agentloop.orchestrator import Agent, TurnResult, TurnState

# Configuration
from agentloop.models.config import AgentConfig, LLMConfig
from agentloop.models.events import ErrorKind, StreamEvent

# Protocols and conversation types
from agentloop.protocols import Message, Reporter, TokenCounter, ToolCall

# Budget and tokens
from agentloop.engine.budget import BudgetManager, BudgetReport
from agentloop.engine.tokens import NullTokenCounter, TiktokenCounter

# Clients
from agentloop.llm import ChatClient, EventSource, EventStream, StreamingClient

# Tools
from agentloop.toolkit import (
    ToolDefinition,
    ToolRegistry,
    ToolResult,
    ToolStatus,
    get_file_tools,
)

# Reporters
from agentloop.orchestrator.callbacks import LoggingReporter, NullReporter

# Exceptions
from agentloop.exceptions import (
    AgentLoopError,
    ArgumentValidationError,
    ConfigError,
    DecodeError,
    DuplicateNameError,
    DuplicateToolCallError,
    DuplicateToolError,
    InitializationError,
    StreamTimeoutError,
    ToolError,
    ToolExecutionError,
    ToolLoopError,
    ToolNotFoundError,
    TransportError,
)

__all__ = [
    "__version__",
    # Core
    "Agent",
    "TurnResult",
    "TurnState",
    # Configuration
    "AgentConfig",
    "LLMConfig",
    "StreamEvent",
    "ErrorKind",
    # Protocols
    "Message",
    "ToolCall",
    "TokenCounter",
    "Reporter",
    # Budget
    "BudgetManager",
    "BudgetReport",
    "TiktokenCounter",
    "NullTokenCounter",
    # Clients
    "ChatClient",
    "StreamingClient",
    "EventStream",
    "EventSource",
    # Tools
    "ToolDefinition",
    "ToolRegistry",
    "ToolResult",
    "ToolStatus",
    "get_file_tools",
    # Reporters
    "NullReporter",
    "LoggingReporter",
    # Exceptions
    "AgentLoopError",
    "InitializationError",
    "ConfigError",
    "TransportError",
    "StreamTimeoutError",
    "DecodeError",
    "ToolError",
    "DuplicateToolError",
    "DuplicateNameError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ArgumentValidationError",
    "DuplicateToolCallError",
    "ToolLoopError",
]
