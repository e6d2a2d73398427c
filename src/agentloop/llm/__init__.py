"""Model endpoint clients for agentloop.

Provides the streaming client, the non-streaming chat client, wire-frame
decoding, and the LLM error hierarchy.
"""

from agentloop.llm.client import ChatClient
from agentloop.llm.decode import decode_chunk, decode_line, decode_response
from agentloop.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    LLMStatusError,
)
from agentloop.llm.protocols import EventSource
from agentloop.llm.streaming import EventStream, StreamingClient

__all__ = [
    "ChatClient",
    "StreamingClient",
    "EventStream",
    "EventSource",
    "decode_line",
    "decode_chunk",
    "decode_response",
    "LLMClientError",
    "LLMConfigError",
    "LLMRateLimitError",
    "LLMAuthError",
    "LLMStatusError",
    "LLMResponseError",
]
