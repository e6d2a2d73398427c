"""Streaming chat client.

StreamingClient issues one request and hands back an EventStream.  A
background read loop decodes the response line by line and pushes events
onto a bounded queue; the caller iterates the stream.  The queue is the only
thing the two sides share.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Iterable, Iterator
from typing import Any

import httpx

from agentloop.exceptions import DecodeError, StreamTimeoutError, TransportError
from agentloop.llm.client import (
    check_url,
    default_headers,
    make_retryer,
    raise_for_status,
)
from agentloop.llm.decode import decode_line
from agentloop.models.events import ErrorKind, StreamEvent

logger = logging.getLogger(__name__)

# End-of-stream sentinel; put exactly once by the read loop.
_CLOSED = object()


class EventStream:
    """A single-use channel of StreamEvents.

    Iteration yields events as the read loop produces them and ends when the
    loop closes the channel: on the terminal marker, on an error event, or
    at end of body.  ``cancel()`` stops the read loop, closes the connection,
    and makes any in-progress iteration return without delivering further
    events.  When a deadline is set and passes first, the stream is
    cancelled and iteration raises StreamTimeoutError.

    Usage::

        with client.open("POST", url, body, timeout=300) as stream:
            for event in stream:
                ...
    """

    def __init__(
        self,
        response: httpx.Response | None = None,
        *,
        maxsize: int = 100,
        timeout: float | None = None,
        poll_interval: float = 0.05,
    ) -> None:
        self._response = response
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=maxsize)
        self._cancelled = threading.Event()
        self._finished = threading.Event()
        self._timeout = timeout
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._poll_interval = poll_interval
        self._thread: threading.Thread | None = None
        self._consumed = False

    @classmethod
    def from_events(cls, events: Iterable[StreamEvent]) -> EventStream:
        """Build an already-closed stream holding the given events."""
        stream = cls(maxsize=0)
        for event in events:
            stream._queue.put_nowait(event)
        stream._queue.put_nowait(_CLOSED)
        stream._finished.set()
        return stream

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def finished(self) -> bool:
        """True once the read loop has exited and released the connection."""
        return self._finished.is_set()

    def start(self) -> None:
        """Start the background read loop."""
        if self._response is None or self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._read_loop, name="agentloop-stream", daemon=True
        )
        self._thread.start()

    def cancel(self) -> None:
        """Stop reading and close the underlying connection. Idempotent."""
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        if self._response is not None:
            try:
                self._response.close()
            except Exception:
                logger.debug("Error closing cancelled response", exc_info=True)

    def close(self, join_timeout: float = 1.0) -> None:
        """Cancel if still running and wait briefly for the read loop to exit."""
        if not self._finished.is_set():
            self.cancel()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(join_timeout)

    def __enter__(self) -> EventStream:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __iter__(self) -> Iterator[StreamEvent]:
        if self._consumed:
            raise RuntimeError("EventStream can only be consumed once")
        self._consumed = True

        while True:
            if self._cancelled.is_set():
                return

            wait = self._poll_interval
            if self._deadline is not None:
                remaining = self._deadline - time.monotonic()
                if remaining <= 0:
                    self.cancel()
                    raise StreamTimeoutError(self._timeout or 0.0)
                wait = min(wait, remaining)

            try:
                item = self._queue.get(timeout=wait)
            except queue.Empty:
                continue

            if item is _CLOSED or self._cancelled.is_set():
                return
            yield item

    # ------------------------------------------------------------------
    # Read loop (producer thread)
    # ------------------------------------------------------------------

    def _read_loop(self) -> None:
        assert self._response is not None
        try:
            for line in self._response.iter_lines():
                if self._cancelled.is_set():
                    break
                try:
                    event = decode_line(line)
                except DecodeError as exc:
                    logger.warning("%s: %r", exc, exc.frame[:200])
                    self._put(StreamEvent.failure(str(exc), ErrorKind.DECODE))
                    break
                if event is None:
                    continue
                if not self._put(event):
                    break
                if event.terminal or event.is_error:
                    break
        except Exception as exc:
            # Read failures after cancel() are the expected result of closing
            # the connection under the loop.
            if self._cancelled.is_set():
                logger.debug("Read loop stopped after cancel: %s", exc)
            else:
                logger.warning("Stream read failed: %s", exc)
                self._put(StreamEvent.failure(f"Stream read failed: {exc}", ErrorKind.TRANSPORT))
        finally:
            try:
                self._response.close()
            except Exception:
                logger.debug("Error closing response", exc_info=True)
            self._finished.set()
            self._put(_CLOSED)

    def _put(self, item: Any) -> bool:
        """Block until the consumer makes room or the stream is cancelled."""
        while not self._cancelled.is_set():
            try:
                self._queue.put(item, timeout=self._poll_interval)
                return True
            except queue.Full:
                continue
        return False


class StreamingClient:
    """Opens streaming chat requests.

    Implements the EventSource protocol.  Connection failures and retryable
    statuses are retried with the same policy as ChatClient before the
    stream is handed to the caller; once streaming starts, failures surface
    as error events.

    Usage::

        client = StreamingClient()
        stream = client.open("POST", url, {"model": "...", "messages": [...]}, timeout=300)
        for event in stream:
            print(event.content, end="")
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 300.0,
        connect_timeout: float = 10.0,
        max_retries: int = 3,
        channel_size: int = 100,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._timeout = timeout
        self._connect_timeout = connect_timeout
        self._max_retries = max_retries
        self._channel_size = channel_size
        self._client = http_client or httpx.Client(headers=default_headers(api_key))

    def open(
        self,
        method: str,
        url: str,
        body: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> EventStream:
        """Issue the request and start streaming its events.

        Args:
            method: HTTP method (normally POST).
            url: Full chat-completions URL.
            body: JSON request body; ``stream`` is forced to true.
            timeout: Seconds from now until the stream is cancelled.

        Raises:
            TransportError: If the request cannot be sent or the server
                answers with an error status.
        """
        check_url(url)
        limit = timeout if timeout is not None else self._timeout
        payload = dict(body)
        payload["stream"] = True
        request = self._client.build_request(
            method,
            url,
            json=payload,
            headers={"Accept": "text/event-stream"},
            timeout=httpx.Timeout(limit, connect=min(self._connect_timeout, limit)),
        )

        try:
            response = make_retryer(self._max_retries, limit)(self._send, request)
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc

        logger.debug("Streaming response from %s (HTTP %d)", url, response.status_code)
        stream = EventStream(response, maxsize=self._channel_size, timeout=limit)
        stream.start()
        return stream

    def _send(self, request: httpx.Request) -> httpx.Response:
        response = self._client.send(request, stream=True)
        if response.status_code >= 400:
            try:
                response.read()
            finally:
                response.close()
            raise_for_status(response)
        return response

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self) -> StreamingClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
