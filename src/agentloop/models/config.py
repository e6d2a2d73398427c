"""Configuration models for agentloop.

AgentConfig holds per-run settings (endpoint, context window, timeouts).
LLMConfig holds the sampling parameters sent with every model call.
"""

from __future__ import annotations

import types
from dataclasses import dataclass, fields as dc_fields
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from agentloop.exceptions import ConfigError

DEFAULT_URL = "http://localhost:11434/v1/chat/completions"
DEFAULT_MODEL = "gpt-oss:latest"
DEFAULT_CONTEXT_WINDOW = 8 * 1024

DEFAULT_SYSTEM_PROMPT = """You are a helpful coding assistant that has tools to assist
you in coding.

After you request a tool call, you will receive a JSON document with two fields,
"status" and "data". Always check the "status" field to know if the call "SUCCESS"
or "FAILED". The information you need to respond will be provided under the "data"
field. If the call "FAILED", just inform the user and don't try using the tool
again for the current response.

When reading source code always start counting lines of code from the top of
the source code file.

Reasoning: high
"""


@dataclass(frozen=True)
class LLMConfig:
    """Sampling parameters for model calls.

    ``max_tokens`` of None means "use the context window".  Unknown
    provider parameters go in ``extra`` and are merged into the payload.

    Example::

        from agentloop import LLMConfig
        config = LLMConfig(temperature=0.7, top_k=40)
    """

    temperature: float | None = 0.0
    top_p: float | None = 0.1
    top_k: int | None = 1
    max_tokens: int | None = None
    seed: int | None = None
    extra: dict | None = None

    def __post_init__(self) -> None:
        if self.extra is not None:
            object.__setattr__(self, "extra", types.MappingProxyType(dict(self.extra)))

    def to_payload(self, context_window: int) -> dict[str, Any]:
        """Return request-body fields for these parameters.

        Only non-None fields are included; ``max_tokens`` falls back to
        ``context_window``.
        """
        result: dict[str, Any] = {}
        for f in dc_fields(self):
            if f.name == "extra":
                continue
            val = getattr(self, f.name)
            if val is not None:
                result[f.name] = val
        result.setdefault("max_tokens", context_window)
        if self.extra:
            result.update(dict(self.extra))
        return result


class AgentConfig(BaseModel):
    """Per-run agent configuration."""

    model_config = {"arbitrary_types_allowed": True}

    base_url: str = DEFAULT_URL
    model: str = DEFAULT_MODEL
    api_key: Optional[str] = None
    context_window: int = DEFAULT_CONTEXT_WINDOW
    turn_timeout: float = 300.0
    tokenizer_encoding: str = "o200k_base"
    channel_size: int = 100
    max_tool_rounds: int = 10
    max_retries: int = 3
    stream: bool = True
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    llm: LLMConfig = Field(default_factory=LLMConfig)

    @field_validator("context_window", "channel_size", "max_tool_rounds", "max_retries")
    @classmethod
    def _positive_int(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("turn_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @classmethod
    def from_options(cls, **options: Any) -> AgentConfig:
        """Build a config from keyword options, dropping None values.

        Raises:
            ConfigError: If any value fails validation.
        """
        cleaned = {k: v for k, v in options.items() if v is not None}
        try:
            return cls(**cleaned)
        except ValidationError as exc:
            problems = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            ]
            raise ConfigError("Invalid configuration: " + "; ".join(problems)) from exc

    def request_options(self) -> dict[str, Any]:
        """Provider options sent alongside every request."""
        return {"num_ctx": self.context_window}
