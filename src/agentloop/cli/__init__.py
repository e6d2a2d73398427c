"""agentloop CLI -- interactive terminal chat with a tool-using model.

This module is NEVER imported from agentloop/__init__.py.
It is only loaded via the ``agentloop`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import logging
from pathlib import Path

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install agentloop"
    ) from None

from agentloop.cli.formatting import ConsoleReporter, format_error, get_console
from agentloop.exceptions import ConfigError, InitializationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@click.command()
@click.option(
    "--url",
    default=None,
    envvar="AGENTLOOP_URL",
    help="Chat-completions endpoint URL.",
)
@click.option(
    "--model",
    default=None,
    envvar="AGENTLOOP_MODEL",
    help="Model identifier sent with every request.",
)
@click.option(
    "--context-window",
    type=int,
    default=None,
    envvar="OLLAMA_CONTEXT_LENGTH",
    help="Context window size in tokens.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Seconds allowed for each user turn.",
)
@click.option(
    "--api-key",
    default=None,
    envvar="AGENTLOOP_API_KEY",
    help="Bearer token for the endpoint.",
)
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="Directory the file tools operate in.",
)
@click.option(
    "--no-stream",
    is_flag=True,
    default=False,
    help="Use request/response calls instead of streaming.",
)
@click.option(
    "--system-prompt-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="File whose contents replace the default system prompt.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    envvar="AGENTLOOP_LOG_LEVEL",
    help="Logging level (logs go to stderr).",
)
def main(
    url: str | None,
    model: str | None,
    context_window: int | None,
    timeout: float | None,
    api_key: str | None,
    root: str,
    no_stream: bool,
    system_prompt_file: str | None,
    log_level: str,
) -> None:
    """Chat with a model that can read and edit files under --root.

    Reads one message per line from stdin until EOF.
    """
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from agentloop.models.config import AgentConfig
    from agentloop.orchestrator.loop import Agent

    console = get_console()
    try:
        system_prompt = (
            Path(system_prompt_file).read_text(encoding="utf-8")
            if system_prompt_file
            else None
        )
        config = AgentConfig.from_options(
            base_url=url,
            model=model,
            context_window=context_window,
            turn_timeout=timeout,
            api_key=api_key,
            stream=not no_stream,
            system_prompt=system_prompt,
        )
        agent = Agent.from_config(config, root=root, reporter=ConsoleReporter(console))
    except (InitializationError, ConfigError, OSError) as e:
        format_error(str(e), console)
        raise SystemExit(1) from None

    console.print(f"[dim]Chat with {config.model} (use 'ctrl-c' or EOF to quit)[/dim]")

    def read_input() -> str | None:
        console.print()
        try:
            return console.input("[bold cyan]You:[/bold cyan] ")
        except EOFError:
            return None

    try:
        with agent:
            agent.run(read_input)
    except KeyboardInterrupt:
        console.print()
