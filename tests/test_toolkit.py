"""Tests for tool definitions, results, and the ToolRegistry."""

from __future__ import annotations

import json

import pytest
from pydantic import BaseModel, ConfigDict

from agentloop.exceptions import (
    ArgumentValidationError,
    DuplicateNameError,
    DuplicateToolError,
    ToolExecutionError,
    ToolNotFoundError,
)
from agentloop.toolkit import ToolDefinition, ToolRegistry, ToolResult, ToolStatus, get_file_tools


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


class EchoArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str
    times: int = 1


def _echo_tool(name: str = "echo", handler=None) -> ToolDefinition:
    return ToolDefinition(
        name=name,
        description="Echo text back.",
        arguments=EchoArgs,
        handler=handler or (lambda args: {"echo": args.text * args.times}),
    )


def _content(result: ToolResult) -> dict:
    return json.loads(result.to_content())


# ===========================================================================
# ToolResult
# ===========================================================================


class TestToolResult:

    def test_success_content(self):
        result = ToolResult.ok("list_files", files=["a.py"])
        assert result.success
        assert _content(result) == {"status": "SUCCESS", "data": {"files": ["a.py"]}}

    def test_failed_content(self):
        result = ToolResult.failed("read_file", "boom")
        assert not result.success
        assert result.status is ToolStatus.FAILED
        assert _content(result) == {"status": "FAILED", "data": {"error": "boom"}}

    def test_unserializable_data(self):
        result = ToolResult.ok("weird", value=object())
        assert _content(result) == {
            "status": "FAILED",
            "data": {"error": "error marshaling tool response"},
        }

    def test_to_message(self):
        message = ToolResult.ok("echo", echo="hi").to_message("call_1")
        assert message.role == "tool"
        assert message.tool_name == "echo"
        assert message.to_dict() == {
            "role": "tool",
            "content": '{"status": "SUCCESS", "data": {"echo": "hi"}}',
            "name": "echo",
            "tool_call_id": "call_1",
        }


# ===========================================================================
# ToolDefinition
# ===========================================================================


class TestToolDefinition:

    def test_to_openai_schema(self):
        oai = _echo_tool().to_openai()
        assert oai["type"] == "function"
        func = oai["function"]
        assert func["name"] == "echo"
        assert func["description"] == "Echo text back."
        params = func["parameters"]
        assert params["type"] == "object"
        assert set(params["properties"]) == {"text", "times"}
        assert params["required"] == ["text"]
        assert "title" not in params
        assert "title" not in params["properties"]["text"]

    def test_call_success(self):
        result = _echo_tool().call({"text": "ab", "times": 2})
        assert result.success
        assert result.data == {"echo": "abab"}

    def test_integral_float_coerced(self):
        result = _echo_tool().call({"text": "a", "times": 3.0})
        assert result.data == {"echo": "aaa"}

    def test_invalid_arguments_fail(self):
        result = _echo_tool().call({"times": "many"})
        assert not result.success
        assert "Invalid arguments for echo" in result.error
        assert "text" in result.error

    def test_extra_arguments_fail(self):
        result = _echo_tool().call({"text": "a", "_raw": "{oops"})
        assert not result.success
        assert "_raw" in result.error

    def test_validate_raises_typed_error(self):
        with pytest.raises(ArgumentValidationError) as exc_info:
            _echo_tool().validate({})
        assert exc_info.value.tool_name == "echo"
        assert exc_info.value.problems

    def test_handler_tool_error_becomes_failed(self):
        def handler(args):
            raise ToolExecutionError("nope")

        result = _echo_tool(handler=handler).call({"text": "a"})
        assert result.error == "nope"

    def test_handler_os_error_becomes_failed(self):
        def handler(args):
            raise FileNotFoundError(2, "No such file or directory", "missing.txt")

        result = _echo_tool(handler=handler).call({"text": "a"})
        assert result.error == "No such file or directory: missing.txt"

    def test_unexpected_exception_becomes_failed(self):
        def handler(args):
            raise ZeroDivisionError("division by zero")

        result = _echo_tool(handler=handler).call({"text": "a"})
        assert result.error == "ZeroDivisionError: division by zero"


# ===========================================================================
# ToolRegistry
# ===========================================================================


class TestToolRegistry:

    def test_register_and_lookup(self):
        registry = ToolRegistry()
        tool = _echo_tool()
        registry.register(tool)
        assert registry.lookup("echo") is tool
        assert "echo" in registry
        assert len(registry) == 1

    def test_duplicate_name_rejected(self):
        registry = ToolRegistry([_echo_tool()])
        with pytest.raises(DuplicateToolError):
            registry.register(_echo_tool())
        assert DuplicateNameError is DuplicateToolError

    def test_lookup_unknown(self):
        with pytest.raises(ToolNotFoundError, match="Unknown tool: nope"):
            ToolRegistry().lookup("nope")

    def test_describe_all_in_registration_order(self):
        registry = ToolRegistry([_echo_tool("b"), _echo_tool("a"), _echo_tool("c")])
        names = [d["function"]["name"] for d in registry.describe_all()]
        assert names == ["b", "a", "c"]
        assert registry.available_tools() == ["b", "a", "c"]

    def test_empty_registry(self):
        registry = ToolRegistry()
        assert registry.describe_all() == []
        assert len(registry) == 0

    def test_execute_unknown_tool_fails(self):
        result = ToolRegistry().execute("nope", {})
        assert result.status is ToolStatus.FAILED
        assert result.error == "Unknown tool: nope"

    def test_execute_dispatches(self):
        registry = ToolRegistry([_echo_tool()])
        assert registry.execute("echo", {"text": "x"}).data == {"echo": "x"}

    def test_file_tools_registered(self, tmp_path):
        registry = ToolRegistry(get_file_tools(tmp_path))
        assert registry.available_tools() == [
            "read_file", "list_files", "create_file", "edit_file",
        ]
