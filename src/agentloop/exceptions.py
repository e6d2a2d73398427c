"""agentloop exception hierarchy.

All agentloop-specific exceptions inherit from AgentLoopError.

Errors scoped to a single turn (transport, decode, tool) are recovered
inside that turn.  Errors raised while building the runtime
(InitializationError, ConfigError) are fatal.
"""


class AgentLoopError(Exception):
    """Base exception for all agentloop errors."""


class InitializationError(AgentLoopError):
    """Raised when a startup dependency (e.g. the tokenizer vocabulary) cannot be loaded."""


class ConfigError(AgentLoopError):
    """Raised when configuration values are missing or invalid."""


class TransportError(AgentLoopError):
    """Connection, HTTP status, read, or cancellation failure.

    Aborts the current turn.  The conversation stays at its last
    committed state.
    """


class StreamTimeoutError(TransportError):
    """Raised when the turn deadline expires before the stream ends."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Model response timed out after {timeout:g}s")


class DecodeError(AgentLoopError):
    """Raised when a stream frame cannot be decoded."""

    def __init__(self, message: str, frame: str = "") -> None:
        self.frame = frame
        super().__init__(message)


class ToolError(AgentLoopError):
    """Base exception for tool registry errors."""


class DuplicateToolError(ToolError):
    """Raised when a tool name is registered twice."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Tool already registered: {tool_name}")


DuplicateNameError = DuplicateToolError


class ToolNotFoundError(ToolError):
    """Raised when a tool lookup fails."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class ToolExecutionError(ToolError):
    """Raised inside a tool handler to report a failure to the model.

    Never propagates past the tool boundary -- it is converted into a
    FAILED ToolResult.
    """


class ArgumentValidationError(ToolExecutionError):
    """Raised when tool arguments do not match the tool's schema."""

    def __init__(self, tool_name: str, problems: list[str]) -> None:
        self.tool_name = tool_name
        self.problems = problems
        super().__init__(
            f"Invalid arguments for {tool_name}: " + "; ".join(problems)
        )


class DuplicateToolCallError(AgentLoopError):
    """The model repeated the previous tool-call batch.

    Not raised: the orchestrator uses it to build the corrective tool
    response it feeds back to the model.
    """

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(
            "data already provided in a previous response, "
            "please review the conversation history"
        )


class ToolLoopError(AgentLoopError):
    """Raised when a turn exceeds its allowed number of tool rounds."""

    def __init__(self, rounds: int) -> None:
        self.rounds = rounds
        super().__init__(f"Tool call limit reached after {rounds} rounds")
