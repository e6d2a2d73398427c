"""Tests for the non-streaming ChatClient and the LLM error hierarchy.

Tests cover:
- ChatClient: request formatting, retry behavior, auth errors, env config
- ChatClient.open: response turned into an event sequence
- Error hierarchy: correct inheritance, error attributes
"""

from __future__ import annotations

import json

import httpx
import pytest

from agentloop.exceptions import AgentLoopError, TransportError
from agentloop.llm import (
    ChatClient,
    EventSource,
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    LLMStatusError,
)
from agentloop.llm.client import default_headers

URL = "http://test-api/v1/chat/completions"


# ---------------------------------------------------------------------------
# Fixtures and helpers
# ---------------------------------------------------------------------------

def _success_response(content: str = "Hello!", reasoning: str | None = None) -> dict:
    """Build a realistic chat completion response dict."""
    message = {"role": "assistant", "content": content}
    if reasoning is not None:
        message["reasoning"] = reasoning
    return {
        "id": "chatcmpl-test123",
        "object": "chat.completion",
        "model": "gpt-oss:latest",
        "choices": [{"index": 0, "message": message, "finish_reason": "stop"}],
    }


def _make_transport(handler):
    """Create an httpx.MockTransport from a handler function."""
    return httpx.MockTransport(handler)


def _make_client(transport=None, max_retries: int = 3, **kwargs) -> ChatClient:
    """Create a ChatClient with an optional mock transport."""
    client = ChatClient(max_retries=max_retries, **kwargs)
    if transport is not None:
        client._client = httpx.Client(
            transport=transport,
            headers={"Content-Type": "application/json"},
        )
    return client


# ===========================================================================
# Error hierarchy tests
# ===========================================================================

class TestErrorHierarchy:
    """Verify the LLM error hierarchy."""

    def test_llm_client_error_is_transport_error(self):
        assert issubclass(LLMClientError, TransportError)
        assert issubclass(LLMClientError, AgentLoopError)

    @pytest.mark.parametrize(
        "cls",
        [LLMConfigError, LLMRateLimitError, LLMAuthError, LLMStatusError, LLMResponseError],
    )
    def test_subclasses_inherit_client_error(self, cls):
        assert issubclass(cls, LLMClientError)

    def test_rate_limit_retry_after(self):
        err = LLMRateLimitError("Rate limited", retry_after=2.5)
        assert err.retry_after == 2.5
        assert "2.5" in str(err)

    def test_status_error_attributes(self):
        err = LLMStatusError(502, "bad gateway")
        assert err.status_code == 502
        assert str(err) == "HTTP 502 - bad gateway"


# ===========================================================================
# ChatClient tests
# ===========================================================================

class TestChatClient:
    """Test ChatClient request formatting and error handling."""

    def test_implements_protocol(self):
        assert isinstance(ChatClient(), EventSource)

    def test_successful_chat(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            captured["url"] = str(request.url)
            return httpx.Response(200, json=_success_response("Hi there"))

        client = _make_client(_make_transport(handler))
        result = client.chat("POST", URL, {"model": "m", "messages": [], "stream": True})

        assert ChatClient.extract_content(result) == "Hi there"
        assert captured["url"] == URL
        assert captured["body"]["stream"] is False
        assert captured["body"]["model"] == "m"

    def test_retry_on_500(self):
        call_count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                return httpx.Response(500, json={"error": "internal"})
            return httpx.Response(200, json=_success_response())

        client = _make_client(_make_transport(handler), max_retries=2)
        result = client.chat("POST", URL, {})
        assert call_count == 2
        assert ChatClient.extract_content(result) == "Hello!"

    def test_rate_limit_exhausts_retries(self):
        call_count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal call_count
            call_count += 1
            return httpx.Response(429, headers={"Retry-After": "1"}, text="slow down")

        client = _make_client(_make_transport(handler), max_retries=2)
        with pytest.raises(LLMRateLimitError) as exc_info:
            client.chat("POST", URL, {})
        assert call_count == 2
        assert exc_info.value.retry_after == 1.0

    def test_retries_bounded_by_timeout(self):
        call_count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal call_count
            call_count += 1
            return httpx.Response(503, text="busy")

        client = _make_client(_make_transport(handler), max_retries=5)
        with pytest.raises(LLMStatusError):
            client.chat("POST", URL, {}, timeout=0.5)
        assert call_count == 1

    def test_no_retry_on_401(self):
        call_count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal call_count
            call_count += 1
            return httpx.Response(401, json={"error": "unauthorized"})

        client = _make_client(_make_transport(handler))
        with pytest.raises(LLMAuthError):
            client.chat("POST", URL, {})
        assert call_count == 1

    def test_no_retry_on_400(self):
        call_count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal call_count
            call_count += 1
            return httpx.Response(400, text="bad")

        client = _make_client(_make_transport(handler))
        with pytest.raises(LLMStatusError):
            client.chat("POST", URL, {})
        assert call_count == 1

    def test_invalid_json_response(self):
        client = _make_client(_make_transport(lambda r: httpx.Response(200, text="not json")))
        with pytest.raises(LLMResponseError):
            client.chat("POST", URL, {})

    def test_connect_error_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused")

        client = _make_client(_make_transport(handler), max_retries=1)
        with pytest.raises(TransportError):
            client.chat("POST", URL, {})

    def test_extract_content_native_shape(self):
        assert ChatClient.extract_content({"message": {"content": "x"}}) == "x"

    def test_extract_content_bad_shape(self):
        with pytest.raises(LLMResponseError):
            ChatClient.extract_content({"choices": []})

    def test_context_manager_closes(self):
        client = _make_client(_make_transport(lambda r: httpx.Response(200)))
        with client:
            pass
        assert client._client.is_closed


class TestChatClientOpen:
    """ChatClient.open() exposes the response as stream events."""

    def test_events_from_response(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_success_response("answer", reasoning="why"))

        client = _make_client(_make_transport(handler))
        events = list(client.open("POST", URL, {}))
        assert events[0].content == "answer"
        assert events[0].reasoning == "why"
        assert events[-1].terminal

    def test_tool_calls_from_response(self):
        response = {
            "choices": [{
                "message": {
                    "role": "assistant",
                    "content": "",
                    "tool_calls": [{
                        "id": "call_9",
                        "type": "function",
                        "function": {"name": "list_files", "arguments": "{}"},
                    }],
                },
                "finish_reason": "tool_calls",
            }],
        }
        client = _make_client(_make_transport(lambda r: httpx.Response(200, json=response)))
        events = list(client.open("POST", URL, {}))
        assert events[0].tool_calls[0].name == "list_files"
        assert events[0].tool_calls[0].id == "call_9"


class TestDefaultHeaders:

    def test_no_key(self, monkeypatch):
        monkeypatch.delenv("AGENTLOOP_API_KEY", raising=False)
        assert "Authorization" not in default_headers(None)

    def test_env_key(self, monkeypatch):
        monkeypatch.setenv("AGENTLOOP_API_KEY", "secret")
        assert default_headers(None)["Authorization"] == "Bearer secret"

    def test_explicit_key_wins(self, monkeypatch):
        monkeypatch.setenv("AGENTLOOP_API_KEY", "env")
        assert default_headers("arg")["Authorization"] == "Bearer arg"
