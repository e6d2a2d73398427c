"""LLM-specific error hierarchy.

All LLM client errors inherit from TransportError so a failed model call
aborts the current turn the same way a dropped connection does.
"""

from __future__ import annotations

from agentloop.exceptions import TransportError


class LLMClientError(TransportError):
    """Base for all LLM client errors."""


class LLMConfigError(LLMClientError):
    """Missing or invalid client configuration (e.g., a malformed URL)."""


class LLMRateLimitError(LLMClientError):
    """Rate limited by the API (429).

    Attributes:
        retry_after: Seconds to wait before retrying (from Retry-After header),
            or None if not provided.
    """

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        if retry_after is not None:
            message = f"{message} (retry after {retry_after}s)"
        super().__init__(message)


class LLMAuthError(LLMClientError):
    """Authentication failed (401/403)."""


class LLMStatusError(LLMClientError):
    """Non-success HTTP status that is neither auth nor rate limiting."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        message = f"HTTP {status_code}"
        if body:
            message = f"{message} - {body}"
        super().__init__(message)


class LLMResponseError(LLMClientError):
    """Unexpected response format from the model endpoint."""
