"""Shared test fixtures for agentloop."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

import pytest

from agentloop.engine.budget import BudgetManager
from agentloop.llm.streaming import EventStream
from agentloop.models.config import AgentConfig
from agentloop.models.events import StreamEvent
from agentloop.orchestrator.loop import Agent
from agentloop.toolkit.files import get_file_tools
from agentloop.toolkit.registry import ToolRegistry


class WordCounter:
    """Token counter that counts whitespace-separated words."""

    def count_text(self, text: str) -> int:
        return len(text.split())


class ScriptedSource:
    """EventSource that replays one scripted event list per open() call.

    A script entry may be a list of StreamEvents or an exception instance,
    which open() raises instead of returning a stream.
    """

    def __init__(self, scripts: Sequence[Iterable[StreamEvent] | BaseException]) -> None:
        self._scripts = list(scripts)
        self.requests: list[dict[str, Any]] = []
        self.timeouts: list[float | None] = []
        self.closed = False

    def open(
        self,
        method: str,
        url: str,
        body: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> EventStream:
        self.requests.append(body)
        self.timeouts.append(timeout)
        if not self._scripts:
            raise AssertionError("No scripted response left")
        script = self._scripts.pop(0)
        if isinstance(script, BaseException):
            raise script
        return EventStream.from_events(script)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def word_counter() -> WordCounter:
    return WordCounter()


@pytest.fixture
def make_agent(tmp_path):
    """Factory building an Agent over a scripted source and file tools in tmp_path."""

    def _make(scripts, *, window: int = 8192, reporter=None, **config_options):
        config = AgentConfig(context_window=window, system_prompt="sys", **config_options)
        source = ScriptedSource(scripts)
        agent = Agent(
            client=source,
            registry=ToolRegistry(get_file_tools(tmp_path)),
            budget=BudgetManager(WordCounter(), window),
            config=config,
            reporter=reporter,
        )
        return agent, source

    return _make
