"""Context-window budget enforcement.

BudgetManager keeps the non-system part of a conversation under the
configured context window by evicting the oldest messages first.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from agentloop.protocols import Message, TokenCounter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetReport:
    """Token totals for a conversation, per role.

    Informational only -- produced by every measurement and reconciliation.

    Attributes:
        system_tokens: Tokens in system messages (exempt from the budget).
        input_tokens: Tokens in user and tool messages.
        output_tokens: Tokens in assistant messages.
        reasoning_tokens: Tokens in the current turn's reasoning fragments.
        window_limit: The context window the totals were checked against.
        evicted: Messages removed by the reconciliation that produced this
            report (0 for a plain measurement).
    """

    system_tokens: int
    input_tokens: int
    output_tokens: int
    reasoning_tokens: int
    window_limit: int
    evicted: int = 0

    @property
    def window_tokens(self) -> int:
        """Tokens counted against the budget (non-system plus reasoning)."""
        return self.input_tokens + self.output_tokens + self.reasoning_tokens

    @property
    def total_tokens(self) -> int:
        return self.system_tokens + self.window_tokens

    @property
    def percentage(self) -> float:
        """Budgeted tokens as a percentage of the window."""
        if self.window_limit <= 0:
            return 0.0
        return self.window_tokens / self.window_limit * 100

    @property
    def over_limit(self) -> bool:
        return self.window_tokens > self.window_limit


class BudgetManager:
    """Trims a conversation so it fits the context window.

    Eviction is FIFO by position, irrespective of role.  Index 0 (the
    system message) and the newest message are never removed, so the
    model always sees its instructions and the latest input.

    Usage::

        budget = BudgetManager(TiktokenCounter(), window_limit=8192)
        conversation = budget.reconcile(conversation, reasoning)
        print(budget.last_report.percentage)
    """

    def __init__(self, counter: TokenCounter, window_limit: int) -> None:
        self._counter = counter
        self._window_limit = window_limit
        self._last_report: BudgetReport | None = None

    @property
    def window_limit(self) -> int:
        return self._window_limit

    @property
    def last_report(self) -> BudgetReport | None:
        """Report from the most recent ``reconcile()`` call."""
        return self._last_report

    def measure(
        self,
        conversation: Sequence[Message],
        reasoning: Sequence[str] = (),
        window_limit: int | None = None,
    ) -> BudgetReport:
        """Compute per-role token totals without modifying anything."""
        limit = self._window_limit if window_limit is None else window_limit
        counts = [self._counter.count_text(m.content) for m in conversation]
        return self._report(conversation, counts, self._count_reasoning(reasoning), limit)

    def reconcile(
        self,
        conversation: Sequence[Message],
        reasoning: Sequence[str] = (),
        window_limit: int | None = None,
    ) -> list[Message]:
        """Return the conversation with the oldest messages evicted as needed.

        While the non-system tokens plus the current turn's reasoning tokens
        exceed the limit, the message at index 1 is removed.  Stops when the
        total fits or when only the system message and the newest message
        remain.  Never raises.

        Args:
            conversation: Messages in chronological order; index 0 is the
                system message.
            reasoning: Reasoning fragments from the current model call.
            window_limit: Override for the configured window.

        Returns:
            A new list; the input sequence is not modified.
        """
        limit = self._window_limit if window_limit is None else window_limit
        result = list(conversation)
        counts = [self._counter.count_text(m.content) for m in result]
        reasoning_tokens = self._count_reasoning(reasoning)

        budgeted = reasoning_tokens + sum(
            c for m, c in zip(result, counts) if m.role != "system"
        )
        evicted = 0
        while budgeted > limit and len(result) > 2:
            removed = result.pop(1)
            removed_tokens = counts.pop(1)
            if removed.role != "system":
                budgeted -= removed_tokens
            evicted += 1
            logger.debug(
                "Evicted %s message (%d tokens), %d budgeted tokens remain",
                removed.role, removed_tokens, budgeted,
            )

        if evicted:
            logger.info("Removed %d message(s) from conversation history", evicted)

        self._last_report = self._report(result, counts, reasoning_tokens, limit, evicted)
        return result

    def _count_reasoning(self, reasoning: Sequence[str]) -> int:
        if not reasoning:
            return 0
        return self._counter.count_text("".join(reasoning))

    @staticmethod
    def _report(
        conversation: Sequence[Message],
        counts: Sequence[int],
        reasoning_tokens: int,
        limit: int,
        evicted: int = 0,
    ) -> BudgetReport:
        system = inputs = outputs = 0
        for message, count in zip(conversation, counts):
            if message.role == "system":
                system += count
            elif message.role == "assistant":
                outputs += count
            else:
                inputs += count
        return BudgetReport(
            system_tokens=system,
            input_tokens=inputs,
            output_tokens=outputs,
            reasoning_tokens=reasoning_tokens,
            window_limit=limit,
            evicted=evicted,
        )
