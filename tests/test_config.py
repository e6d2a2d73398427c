"""Tests for AgentConfig and LLMConfig."""

from __future__ import annotations

import pytest

from agentloop.exceptions import ConfigError
from agentloop.models.config import (
    DEFAULT_CONTEXT_WINDOW,
    DEFAULT_MODEL,
    DEFAULT_URL,
    AgentConfig,
    LLMConfig,
)


class TestAgentConfig:

    def test_defaults(self):
        config = AgentConfig()
        assert config.base_url == DEFAULT_URL
        assert config.model == DEFAULT_MODEL
        assert config.context_window == DEFAULT_CONTEXT_WINDOW == 8192
        assert config.turn_timeout == 300.0
        assert config.tokenizer_encoding == "o200k_base"
        assert config.channel_size == 100
        assert config.max_tool_rounds == 10
        assert config.stream is True
        assert isinstance(config.llm, LLMConfig)

    def test_request_options(self):
        assert AgentConfig(context_window=2048).request_options() == {"num_ctx": 2048}

    def test_from_options_drops_none(self):
        config = AgentConfig.from_options(model="m", context_window=None)
        assert config.model == "m"
        assert config.context_window == DEFAULT_CONTEXT_WINDOW

    @pytest.mark.parametrize(
        "options",
        [
            {"context_window": 0},
            {"context_window": -5},
            {"turn_timeout": 0},
            {"max_tool_rounds": 0},
            {"channel_size": -1},
        ],
    )
    def test_from_options_rejects_invalid(self, options):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            AgentConfig.from_options(**options)


class TestLLMConfig:

    def test_payload_defaults_to_context_window(self):
        payload = LLMConfig().to_payload(4096)
        assert payload == {"temperature": 0.0, "top_p": 0.1, "top_k": 1, "max_tokens": 4096}

    def test_explicit_max_tokens(self):
        assert LLMConfig(max_tokens=100).to_payload(4096)["max_tokens"] == 100

    def test_none_fields_omitted(self):
        payload = LLMConfig(temperature=None, top_k=None).to_payload(10)
        assert "temperature" not in payload
        assert "top_k" not in payload

    def test_extra_merged_and_frozen(self):
        config = LLMConfig(extra={"repeat_penalty": 1.1})
        assert config.to_payload(10)["repeat_penalty"] == 1.1
        with pytest.raises(TypeError):
            config.extra["x"] = 1
