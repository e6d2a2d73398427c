"""ToolRegistry: name -> capability lookup and dispatch.

Provides registration with unique names, lookup, ordered schema documents
for advertising tools to the endpoint, and an ``execute()`` method that
always returns a structured ``ToolResult``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from agentloop.exceptions import DuplicateToolError, ToolNotFoundError
from agentloop.toolkit.models import ToolDefinition, ToolResult

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Holds the tools available to the model.

    Registration order is preserved and is the order of ``describe_all()``.

    Usage::

        registry = ToolRegistry(get_file_tools("."))
        result = registry.execute("list_files", {"path": "."})
        if result.success:
            print(result.data)
        else:
            print(result.error)
    """

    def __init__(self, tools: Iterable[ToolDefinition] = ()) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: ToolDefinition) -> None:
        """Add a tool.

        Raises:
            DuplicateToolError: If a tool with the same name exists.
        """
        if tool.name in self._tools:
            raise DuplicateToolError(tool.name)
        self._tools[tool.name] = tool
        logger.debug("Registered tool %s", tool.name)

    def lookup(self, tool_name: str) -> ToolDefinition:
        """Return the tool registered under ``tool_name``.

        Raises:
            ToolNotFoundError: If no such tool exists.
        """
        tool = self._tools.get(tool_name)
        if tool is None:
            raise ToolNotFoundError(tool_name)
        return tool

    def describe_all(self) -> list[dict]:
        """Schema documents for every tool, in registration order."""
        return [tool.to_openai() for tool in self._tools.values()]

    def execute(self, tool_name: str, arguments: Mapping[str, Any]) -> ToolResult:
        """Execute a tool by name with the given arguments.

        Returns:
            ToolResult with success/failure status and data/error.  An
            unknown tool name yields a FAILED result, not an exception.
        """
        try:
            tool = self.lookup(tool_name)
        except ToolNotFoundError as exc:
            logger.warning("Model requested unknown tool %s", tool_name)
            return ToolResult.failed(tool_name, exc)
        return tool.call(arguments)

    def available_tools(self) -> list[str]:
        """Return the names of all registered tools."""
        return list(self._tools.keys())

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
