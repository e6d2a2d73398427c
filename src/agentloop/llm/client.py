"""Non-streaming chat client with tenacity retry.

Provides a sync httpx client that posts a chat request and returns the
whole JSON response.  Also holds the retry policy and status-code mapping
shared with the streaming client.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import httpx
import tenacity

from agentloop.exceptions import TransportError
from agentloop.llm.errors import (
    LLMAuthError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    LLMStatusError,
)

if TYPE_CHECKING:
    from agentloop.llm.streaming import EventStream

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
_AUTH_ERROR_STATUS_CODES = {401, 403}


def _is_retryable(exc: BaseException) -> bool:
    """Check if an exception is retryable.

    Retryable: 429, 500, 502, 503, 504, connection errors.
    Not retryable: 401, 403, 400, other client errors.
    """
    if isinstance(exc, LLMAuthError):
        return False
    if isinstance(exc, LLMRateLimitError):
        return True
    if isinstance(exc, LLMStatusError):
        return exc.status_code in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))


def make_retryer(max_retries: int, max_delay: float | None = None) -> tenacity.Retrying:
    """Build the retry policy used for opening model requests.

    Args:
        max_retries: Maximum number of attempts.
        max_delay: Seconds the attempts and backoff sleeps may take in
            total.  No retry is scheduled whose sleep would cross it.
    """
    stop = tenacity.stop_after_attempt(max_retries)
    if max_delay is not None:
        stop = stop | tenacity.stop_before_delay(max_delay)
    return tenacity.Retrying(
        retry=tenacity.retry_if_exception(_is_retryable),
        wait=(
            tenacity.wait_exponential(multiplier=1, min=1, max=30)
            + tenacity.wait_random(0, 2)
        ),
        stop=stop,
        before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def raise_for_status(response: httpx.Response) -> None:
    """Map a non-success response onto the LLM error hierarchy.

    The body must already be read.
    """
    status = response.status_code
    if status < 400:
        return

    if status in _AUTH_ERROR_STATUS_CODES:
        raise LLMAuthError(
            f"Authentication failed: HTTP {status} - {response.text}"
        )

    if status == 429:
        retry_after_raw = response.headers.get("Retry-After")
        retry_after: float | None = None
        if retry_after_raw is not None:
            try:
                retry_after = float(retry_after_raw)
            except (ValueError, TypeError):
                pass
        raise LLMRateLimitError(
            f"Rate limited: HTTP 429 - {response.text}",
            retry_after=retry_after,
        )

    raise LLMStatusError(status, response.text[:500])


def check_url(url: str) -> None:
    """Reject URLs that cannot address an HTTP endpoint."""
    if not url.startswith(("http://", "https://")):
        raise LLMConfigError(f"Endpoint URL must be http(s): {url!r}")


def default_headers(api_key: str | None) -> dict[str, str]:
    """Request headers, with a bearer token when a key is configured."""
    headers = {"Content-Type": "application/json"}
    key = api_key or os.environ.get("AGENTLOOP_API_KEY", "")
    if key:
        headers["Authorization"] = f"Bearer {key}"
    return headers


class ChatClient:
    """Sync httpx client for non-streaming chat completions.

    Implements the EventSource protocol by turning the single response into
    the same event sequence a stream would produce.  Retries transient errors
    (429, 5xx, connection failures) with exponential backoff and fails
    immediately on authentication errors (401, 403).

    Usage::

        with ChatClient() as client:
            response = client.chat("POST", url, {"model": "...", "messages": [...]})
            text = ChatClient.extract_content(response)
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 120.0,
        max_retries: int = 3,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Bearer token. Falls back to AGENTLOOP_API_KEY env var;
                local endpoints usually need none.
            timeout: Request timeout in seconds.
            max_retries: Maximum number of attempts for retryable errors.
            http_client: Pre-built httpx client (tests pass one with a mock
                transport).
        """
        self._timeout = timeout
        self._max_retries = max_retries
        self._client = http_client or httpx.Client(
            timeout=timeout,
            headers=default_headers(api_key),
        )

    def chat(
        self,
        method: str,
        url: str,
        body: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> dict:
        """Send one chat request with retry and return the response document.

        Raises:
            LLMAuthError: On 401/403 (no retry).
            LLMRateLimitError: On 429 after all retries exhausted.
            LLMStatusError: On other error statuses.
            LLMResponseError: On a response that is not a JSON object.
            TransportError: On connection or timeout failures.
        """
        check_url(url)
        payload = dict(body)
        payload["stream"] = False
        try:
            return make_retryer(self._max_retries, timeout)(
                self._do_chat, method, url, payload, timeout
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc

    def _do_chat(
        self,
        method: str,
        url: str,
        payload: dict[str, Any],
        timeout: float | None,
    ) -> dict:
        """Execute a single chat request (no retry)."""
        response = self._client.request(
            method,
            url,
            json=payload,
            timeout=timeout if timeout is not None else self._timeout,
        )
        raise_for_status(response)

        try:
            data = response.json()
        except ValueError as exc:
            raise LLMResponseError(
                f"Response is not valid JSON: {response.text[:200]}"
            ) from exc
        if not isinstance(data, dict):
            raise LLMResponseError(f"Unexpected response format: {data!r}")
        return data

    def open(
        self,
        method: str,
        url: str,
        body: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> EventStream:
        """Run one blocking request and expose the result as an event stream."""
        from agentloop.llm.decode import decode_response
        from agentloop.llm.streaming import EventStream

        response = self.chat(method, url, body, timeout=timeout)
        return EventStream.from_events(decode_response(response))

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self) -> ChatClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @staticmethod
    def extract_content(response: dict) -> str:
        """Extract the assistant's message content from a response dict.

        Accepts both ``choices[0].message`` and the native top-level
        ``message`` shape.

        Raises:
            LLMResponseError: If the response format is unexpected.
        """
        try:
            if response.get("choices"):
                message = response["choices"][0]["message"]
            else:
                message = response["message"]
            return message.get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise LLMResponseError(
                f"Cannot extract content from response: {exc}. "
                f"Response: {response}"
            ) from exc
