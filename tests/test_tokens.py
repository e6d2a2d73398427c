"""Tests for token counting implementations.

Tests TiktokenCounter (production) and NullTokenCounter (testing stub).
"""

from __future__ import annotations

import pytest

from agentloop.engine.tokens import NullTokenCounter, TiktokenCounter
from agentloop.exceptions import InitializationError
from agentloop.protocols import TokenCounter


class TestTiktokenCounter:
    """Tests for the TiktokenCounter implementation."""

    def test_implements_protocol(self) -> None:
        counter = TiktokenCounter()
        assert isinstance(counter, TokenCounter)

    def test_default_encoding(self) -> None:
        assert TiktokenCounter().encoding_name == "o200k_base"

    def test_count_text_positive_for_nonempty(self) -> None:
        assert TiktokenCounter().count_text("Hello, world!") > 0

    def test_count_text_zero_for_empty(self) -> None:
        assert TiktokenCounter().count_text("") == 0

    def test_count_text_deterministic(self) -> None:
        counter = TiktokenCounter()
        text = "The quick brown fox jumps over the lazy dog."
        assert counter.count_text(text) == counter.count_text(text)

    def test_longer_text_more_tokens(self) -> None:
        counter = TiktokenCounter()
        short = counter.count_text("Hi")
        long = counter.count_text("Hello, this is a much longer piece of text that should have more tokens.")
        assert long > short

    def test_special_token_text_is_counted(self) -> None:
        """Special-token text in content is counted, not rejected."""
        assert TiktokenCounter().count_text("<|endoftext|>") > 0

    def test_unknown_encoding_raises_initialization_error(self) -> None:
        with pytest.raises(InitializationError, match="no_such_encoding"):
            TiktokenCounter("no_such_encoding")


class TestNullTokenCounter:
    """Tests for the NullTokenCounter stub."""

    def test_implements_protocol(self) -> None:
        assert isinstance(NullTokenCounter(), TokenCounter)

    def test_always_zero(self) -> None:
        counter = NullTokenCounter()
        assert counter.count_text("") == 0
        assert counter.count_text("Hello, world!") == 0
