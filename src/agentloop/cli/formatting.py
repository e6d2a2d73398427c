"""Rich formatting helpers for the agentloop CLI.

ConsoleReporter prints what the agent streams: visible content as-is,
reasoning in red, tool activity in green, and a dim token line after
every reconciliation.  Rich auto-detects TTY and degrades gracefully when
piped (no ANSI codes).
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.text import Text

if TYPE_CHECKING:
    from agentloop.engine.budget import BudgetReport
    from agentloop.protocols import ToolCall
    from agentloop.toolkit.models import ToolResult


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)


def format_budget(report: BudgetReport) -> Text:
    """One-line token summary."""
    return Text(
        f"Tokens Sys[{report.system_tokens}] Inp[{report.input_tokens}] "
        f"Out[{report.output_tokens}] Rea[{report.reasoning_tokens}] "
        f"Tot[{report.total_tokens}] ({report.percentage:.0f}% of {report.window_limit})",
        style="dim",
    )


class ConsoleReporter:
    """Reporter that renders a turn on a Rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or get_console()
        # Which kind of delta the open output line holds, if any.
        self._open_line: str | None = None

    def content(self, text: str) -> None:
        if self._open_line == "reasoning":
            self._finish_line()
        self._open_line = "content"
        self._console.print(Text(text), end="")

    def reasoning(self, text: str) -> None:
        if self._open_line == "content":
            self._finish_line()
        self._open_line = "reasoning"
        self._console.print(Text(text, style="red"), end="")

    def tool_call(self, call: ToolCall) -> None:
        self._finish_line()
        args = json.dumps(call.arguments, sort_keys=True)
        self._console.print(Text(f"Tool Call: {call.name}({args})", style="green"))

    def tool_result(self, call: ToolCall, result: ToolResult) -> None:
        if result.success:
            self._console.print(Text(f"Tool {call.name}: SUCCESS", style="green"))
        else:
            self._console.print(Text(f"Tool {call.name}: FAILED {result.error}", style="yellow"))

    def budget(self, report: BudgetReport) -> None:
        self._finish_line()
        self._console.print(format_budget(report))

    def error(self, message: str) -> None:
        self._finish_line()
        format_error(message, self._console)

    def _finish_line(self) -> None:
        if self._open_line is not None:
            self._console.print()
            self._open_line = None
