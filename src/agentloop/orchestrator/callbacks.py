"""Built-in reporters for the agent loop.

NullReporter discards everything; LoggingReporter writes each event to the
``agentloop`` logger.  The interactive console reporter lives in
``agentloop.cli.formatting``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agentloop.engine.budget import BudgetReport
    from agentloop.protocols import ToolCall
    from agentloop.toolkit.models import ToolResult

logger = logging.getLogger(__name__)


class NullReporter:
    """Reporter that ignores every event."""

    def content(self, text: str) -> None:
        pass

    def reasoning(self, text: str) -> None:
        pass

    def tool_call(self, call: ToolCall) -> None:
        pass

    def tool_result(self, call: ToolCall, result: ToolResult) -> None:
        pass

    def budget(self, report: BudgetReport) -> None:
        pass

    def error(self, message: str) -> None:
        pass


class LoggingReporter:
    """Reporter that logs events instead of printing them.

    Content and reasoning deltas go to DEBUG; tool activity and budget
    totals to INFO; turn failures to ERROR.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def content(self, text: str) -> None:
        self._log.debug("content: %r", text)

    def reasoning(self, text: str) -> None:
        self._log.debug("reasoning: %r", text)

    def tool_call(self, call: ToolCall) -> None:
        self._log.info("tool call %s(%s)", call.name, call.arguments)

    def tool_result(self, call: ToolCall, result: ToolResult) -> None:
        if result.success:
            self._log.info("tool %s succeeded", call.name)
        else:
            self._log.info("tool %s failed: %s", call.name, result.error)

    def budget(self, report: BudgetReport) -> None:
        self._log.info(
            "tokens sys=%d in=%d out=%d reasoning=%d total=%d (%.0f%% of %d)",
            report.system_tokens,
            report.input_tokens,
            report.output_tokens,
            report.reasoning_tokens,
            report.total_tokens,
            report.percentage,
            report.window_limit,
        )

    def error(self, message: str) -> None:
        self._log.error("turn failed: %s", message)
