"""Agent toolkit: tool capabilities, the registry, and built-in file tools.

Provides tool definitions whose arguments are described and validated by
pydantic models, a registry that dispatches calls by name, and the file
read/list/create/edit tools.
"""

from agentloop.toolkit.files import get_file_tools
from agentloop.toolkit.models import ToolDefinition, ToolResult, ToolStatus
from agentloop.toolkit.registry import ToolRegistry

__all__ = [
    "ToolDefinition",
    "ToolResult",
    "ToolStatus",
    "ToolRegistry",
    "get_file_tools",
]
