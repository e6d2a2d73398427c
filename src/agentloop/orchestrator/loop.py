"""Core agent loop.

Provides the Agent class that runs the conversation: read a user message,
stream the model's response, classify each event, dispatch tool calls,
feed their results back, and commit the final assistant message once the
model answers without calling a tool.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

from agentloop.exceptions import (
    DecodeError,
    DuplicateToolCallError,
    StreamTimeoutError,
    ToolLoopError,
    TransportError,
)
from agentloop.models.config import AgentConfig
from agentloop.models.events import ErrorKind, StreamEvent
from agentloop.orchestrator.callbacks import NullReporter
from agentloop.orchestrator.config import TurnState
from agentloop.orchestrator.dedup import is_duplicate_batch
from agentloop.orchestrator.models import Fragment, TurnAccumulator, TurnContext, TurnResult
from agentloop.protocols import Message, ToolCall
from agentloop.toolkit.models import ToolResult

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from agentloop.engine.budget import BudgetManager
    from agentloop.llm.protocols import EventSource
    from agentloop.protocols import Reporter
    from agentloop.toolkit.registry import ToolRegistry

logger = logging.getLogger(__name__)


class Agent:
    """Conversational agent that streams model output and runs tools.

    The conversation always starts with the system message.  Only complete
    messages are appended to it: the user message, an assistant message
    listing each tool batch followed by one tool message per result, and
    the final assistant message.  The budget manager reconciles the
    history after every append.

    A transport or decode failure aborts the turn.  Messages committed
    before the failure stay; the partial response is discarded.

    Usage::

        agent = Agent.from_config(AgentConfig(), root=".")
        result = agent.run_turn("What files are in this directory?")
        print(result.content)
    """

    def __init__(
        self,
        client: EventSource,
        registry: ToolRegistry,
        budget: BudgetManager,
        config: AgentConfig | None = None,
        reporter: Reporter | None = None,
    ) -> None:
        self._client = client
        self._registry = registry
        self._budget = budget
        self._config = config or AgentConfig()
        self._reporter = reporter or NullReporter()
        self._conversation: list[Message] = [
            Message(role="system", content=self._config.system_prompt)
        ]
        self._state = TurnState.AWAITING_INPUT

    @classmethod
    def from_config(
        cls,
        config: AgentConfig,
        root: str | os.PathLike[str] = ".",
        reporter: Reporter | None = None,
    ) -> Agent:
        """Build an agent with the default runtime for ``config``.

        Loads the tokenizer, picks the streaming or request/response
        client, and registers the file tools rooted at ``root``.

        Raises:
            InitializationError: If the tokenizer cannot be loaded.
        """
        from agentloop.engine.budget import BudgetManager as _BudgetManager
        from agentloop.engine.tokens import TiktokenCounter
        from agentloop.llm.client import ChatClient
        from agentloop.llm.streaming import StreamingClient
        from agentloop.toolkit.files import get_file_tools
        from agentloop.toolkit.registry import ToolRegistry as _ToolRegistry

        counter = TiktokenCounter(config.tokenizer_encoding)
        client: EventSource
        if config.stream:
            client = StreamingClient(
                api_key=config.api_key,
                timeout=config.turn_timeout,
                max_retries=config.max_retries,
                channel_size=config.channel_size,
            )
        else:
            client = ChatClient(
                api_key=config.api_key,
                timeout=config.turn_timeout,
                max_retries=config.max_retries,
            )
        return cls(
            client=client,
            registry=_ToolRegistry(get_file_tools(root)),
            budget=_BudgetManager(counter, config.context_window),
            config=config,
            reporter=reporter,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> TurnState:
        """Return the current turn state."""
        return self._state

    @property
    def conversation(self) -> list[Message]:
        """A copy of the committed conversation."""
        return list(self._conversation)

    @property
    def config(self) -> AgentConfig:
        return self._config

    def run(self, read_input: Callable[[], str | None]) -> None:
        """Run turns until ``read_input`` returns None.

        Blank input lines are skipped.  Turn failures are reported and the
        loop continues with the next input.
        """
        try:
            while True:
                self._state = TurnState.AWAITING_INPUT
                text = read_input()
                if text is None:
                    break
                if not text.strip():
                    continue
                self.run_turn(text)
        finally:
            self._state = TurnState.FINISHED

    def run_turn(self, user_text: str) -> TurnResult:
        """Run one user turn to completion.

        Args:
            user_text: The user's message.

        Returns:
            TurnResult with the committed assistant message, or the error
            that aborted the turn.
        """
        self._commit(Message(role="user", content=user_text))
        ctx = TurnContext.start(self._config.turn_timeout)
        message: Message | None = None

        try:
            while True:
                if ctx.tool_rounds >= self._config.max_tool_rounds:
                    raise ToolLoopError(ctx.tool_rounds)

                acc = self._call_model(ctx)
                if acc.tool_dispatched:
                    ctx.tool_rounds += 1
                    continue

                text = acc.visible_text()
                if text:
                    message = Message(role="assistant", content=text)
                    self._commit(message, reasoning=acc.reasoning)
                else:
                    logger.info("Model returned no visible content")
                break
        except (TransportError, DecodeError, ToolLoopError) as exc:
            logger.warning("Turn aborted: %s", exc)
            self._reporter.error(str(exc))
            return TurnResult(
                error=str(exc),
                tool_rounds=ctx.tool_rounds,
                model_calls=ctx.model_calls,
                budget=self._budget.last_report,
            )
        finally:
            self._state = TurnState.AWAITING_INPUT

        return TurnResult(
            message=message,
            tool_rounds=ctx.tool_rounds,
            model_calls=ctx.model_calls,
            budget=self._budget.last_report,
        )

    def build_request(self) -> dict[str, Any]:
        """Request body for the next model call."""
        cfg = self._config
        body: dict[str, Any] = {
            "model": cfg.model,
            "messages": [m.to_dict() for m in self._conversation],
            "stream": cfg.stream,
            "options": cfg.request_options(),
        }
        body.update(cfg.llm.to_payload(cfg.context_window))
        if len(self._registry):
            body["tools"] = self._registry.describe_all()
            body["tool_selection"] = "auto"
        return body

    def close(self) -> None:
        """Close the underlying client."""
        self._client.close()

    def __enter__(self) -> Agent:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Model calls
    # ------------------------------------------------------------------

    def _call_model(self, ctx: TurnContext) -> TurnAccumulator:
        """Send one request and classify everything it streams back."""
        remaining = ctx.remaining()
        if remaining <= 0:
            raise StreamTimeoutError(ctx.timeout)

        acc = TurnAccumulator(last_tool_batch=ctx.last_tool_batch)
        self._state = TurnState.STREAMING
        stream = self._client.open(
            "POST", self._config.base_url, self.build_request(), timeout=remaining
        )
        ctx.model_calls += 1
        try:
            for event in stream:
                self._classify(event, acc)
                self._state = TurnState.STREAMING
        finally:
            stream.close()

        ctx.last_tool_batch = acc.last_tool_batch
        return acc

    def _classify(self, event: StreamEvent, acc: TurnAccumulator) -> None:
        """Route one event: error, tool calls, reasoning, then content."""
        if event.is_error:
            if event.error_kind is ErrorKind.DECODE:
                raise DecodeError(event.error or "Undecodable stream frame")
            if event.error_kind is ErrorKind.REMOTE:
                raise TransportError(f"Model endpoint error: {event.error}")
            raise TransportError(event.error or "Stream failed")

        if event.tool_calls:
            self._state = TurnState.CLASSIFYING_TOOL_CALL
            self._handle_tool_calls(event.tool_calls, acc)

        if event.reasoning:
            self._state = TurnState.CLASSIFYING_REASONING
            acc.add_reasoning(event.reasoning)
            self._reporter.reasoning(event.reasoning)

        if event.content:
            self._state = TurnState.CLASSIFYING_CONTENT
            kind = acc.add_content(event.content)
            if kind is Fragment.CONTENT:
                self._reporter.content(event.content)
            elif kind is Fragment.REASONING:
                self._reporter.reasoning(event.content)

    # ------------------------------------------------------------------
    # Tool dispatch
    # ------------------------------------------------------------------

    def _handle_tool_calls(self, calls: Sequence[ToolCall], acc: TurnAccumulator) -> None:
        batch = tuple(calls)
        acc.tool_dispatched = True

        if is_duplicate_batch(acc.last_tool_batch, batch):
            first = batch[0]
            logger.warning("Model repeated its previous tool batch (%s)", first.name)
            result = ToolResult.failed(first.name, DuplicateToolCallError(first.name))
            self._reporter.tool_call(first)
            self._reporter.tool_result(first, result)
            self._commit_tool_round((first,), [result])
            return

        self._state = TurnState.TOOL_DISPATCH
        results: list[ToolResult] = []
        for call in batch:
            self._reporter.tool_call(call)
            result = self._registry.execute(call.name, call.arguments)
            self._reporter.tool_result(call, result)
            results.append(result)

        self._commit_tool_round(batch, results)
        acc.last_tool_batch = batch

    def _commit_tool_round(
        self, calls: Sequence[ToolCall], results: Sequence[ToolResult]
    ) -> None:
        messages = [Message(role="assistant", content="", tool_calls=tuple(calls))]
        messages.extend(
            result.to_message(call.id) for call, result in zip(calls, results)
        )
        self._commit(*messages)

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------

    def _commit(self, *messages: Message, reasoning: Sequence[str] = ()) -> None:
        """Append complete messages, then bring the history back under budget."""
        self._conversation.extend(messages)
        self._conversation = self._budget.reconcile(self._conversation, reasoning)
        report = self._budget.last_report
        if report is not None:
            self._reporter.budget(report)
