"""Toolkit data models: tool definitions and structured results.

A ToolDefinition is a capability the model may call.  Its arguments are
described by a pydantic model, which doubles as the JSON Schema advertised
to the endpoint and as the validator/coercer for the loosely typed JSON
arguments the model sends back.
"""

from __future__ import annotations

import enum
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from agentloop.exceptions import ArgumentValidationError, ToolExecutionError
from agentloop.protocols import Message

logger = logging.getLogger(__name__)


class ToolStatus(str, enum.Enum):
    """Outcome of a tool call, as the model sees it."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass(frozen=True)
class ToolResult:
    """Structured result from executing a tool.

    Attributes:
        tool_name: Name of the tool that was executed.
        status: SUCCESS or FAILED.
        data: Result payload on success.
        error: Human-readable message on failure.
    """

    tool_name: str
    status: ToolStatus
    data: Mapping[str, Any] = field(default_factory=dict)
    error: str = ""

    @classmethod
    def ok(cls, tool_name: str, **data: Any) -> ToolResult:
        return cls(tool_name=tool_name, status=ToolStatus.SUCCESS, data=data)

    @classmethod
    def failed(cls, tool_name: str, error: str | BaseException) -> ToolResult:
        return cls(tool_name=tool_name, status=ToolStatus.FAILED, error=str(error))

    @property
    def success(self) -> bool:
        return self.status is ToolStatus.SUCCESS

    def to_content(self) -> str:
        """Serialize to the JSON document placed in the tool message.

        Shape: ``{"status": "SUCCESS", "data": {...}}`` or
        ``{"status": "FAILED", "data": {"error": "..."}}``.
        """
        data = dict(self.data) if self.success else {"error": self.error}
        try:
            return json.dumps({"status": self.status.value, "data": data})
        except (TypeError, ValueError):
            logger.warning("Tool %s returned non-serializable data", self.tool_name)
            return json.dumps({
                "status": ToolStatus.FAILED.value,
                "data": {"error": "error marshaling tool response"},
            })

    def to_message(self, tool_call_id: str | None = None) -> Message:
        """Build the ``tool`` message that carries this result."""
        return Message(
            role="tool",
            content=self.to_content(),
            tool_name=self.tool_name,
            tool_call_id=tool_call_id or None,
        )


def _strip_titles(schema: Any) -> Any:
    """Drop pydantic's auto-generated ``title`` keys from a JSON Schema."""
    if isinstance(schema, dict):
        return {
            k: _strip_titles(v)
            for k, v in schema.items()
            if not (k == "title" and isinstance(v, str))
        }
    if isinstance(schema, list):
        return [_strip_titles(v) for v in schema]
    return schema


@dataclass(frozen=True)
class ToolDefinition:
    """A single tool capability for LLM consumption.

    Attributes:
        name: Tool name (e.g. "read_file"); unique within a registry.
        description: Human-readable description of when/why to use this tool.
        arguments: Pydantic model describing and validating the arguments.
        handler: Callable taking the validated model and returning the
            result data dict.  It may raise; ``call()`` converts any failure
            into a FAILED result.
    """

    name: str
    description: str
    arguments: type[BaseModel]
    handler: Callable[[Any], Mapping[str, Any]]

    @property
    def parameters(self) -> dict:
        """JSON Schema for the arguments."""
        schema = _strip_titles(self.arguments.model_json_schema())
        schema.setdefault("properties", {})
        return schema

    def to_openai(self) -> dict:
        """Convert to OpenAI function-calling format.

        Returns:
            Dict with "type": "function" and nested "function" object.
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def validate(self, arguments: Mapping[str, Any]) -> BaseModel:
        """Validate and coerce raw JSON arguments.

        Raises:
            ArgumentValidationError: If the arguments do not match.
        """
        try:
            return self.arguments.model_validate(dict(arguments))
        except ValidationError as exc:
            problems = [
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
                for err in exc.errors()
            ]
            raise ArgumentValidationError(self.name, problems) from exc

    def call(self, arguments: Mapping[str, Any]) -> ToolResult:
        """Validate arguments, run the handler, and wrap the outcome.

        Total over any input: never raises, every failure becomes a FAILED
        result the model can read.
        """
        try:
            parsed = self.validate(arguments)
            data = self.handler(parsed)
        except ToolExecutionError as exc:
            logger.debug("Tool %s failed: %s", self.name, exc)
            return ToolResult.failed(self.name, exc)
        except OSError as exc:
            logger.debug("Tool %s I/O error: %s", self.name, exc)
            if exc.strerror and exc.filename:
                return ToolResult.failed(self.name, f"{exc.strerror}: {exc.filename}")
            return ToolResult.failed(self.name, exc)
        except Exception as exc:
            logger.debug("Tool %s raised", self.name, exc_info=True)
            return ToolResult.failed(self.name, f"{type(exc).__name__}: {exc}")
        return ToolResult(tool_name=self.name, status=ToolStatus.SUCCESS, data=dict(data or {}))
