"""Model client protocol.

Defines the pluggable interface the orchestrator drives.  Both built-in
clients (StreamingClient and the non-streaming ChatClient) implement it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from agentloop.llm.streaming import EventStream


@runtime_checkable
class EventSource(Protocol):
    """Protocol for clients that turn a chat request into stream events.

    Any object with open() and close() methods matching this signature works.
    Custom sources (e.g. scripted fakes in tests) may return any iterable
    of StreamEvents with ``cancel()`` and ``close()`` methods.
    """

    def open(
        self,
        method: str,
        url: str,
        body: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> EventStream:
        """Send the request and return its event stream."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...
