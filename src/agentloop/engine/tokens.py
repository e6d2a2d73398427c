"""Token counting implementations for agentloop.

Provides TiktokenCounter (production use) and NullTokenCounter (testing).
Both implement the TokenCounter protocol from protocols.py.
"""

from __future__ import annotations

import logging

from agentloop.exceptions import InitializationError

logger = logging.getLogger(__name__)


class TiktokenCounter:
    """Token counter using tiktoken's byte-pair encodings.

    The Encoding is loaded once at construction and is read-only afterwards,
    so one instance can be shared across threads.  Counts approximate the
    server's own accounting; drift is accepted, not corrected.

    Implements the TokenCounter protocol.
    """

    def __init__(self, encoding_name: str = "o200k_base", model: str | None = None) -> None:
        """Load the encoding.

        Args:
            encoding_name: tiktoken encoding to use.
            model: Optional model name; when tiktoken knows it, its encoding
                wins over ``encoding_name``.

        Raises:
            InitializationError: If the vocabulary cannot be loaded.
        """
        try:
            import tiktoken
        except ImportError as exc:
            raise InitializationError("tiktoken is not installed") from exc

        try:
            enc = None
            if model is not None:
                try:
                    enc = tiktoken.encoding_for_model(model)
                except KeyError:
                    logger.debug("No tiktoken mapping for model %s", model)
            if enc is None:
                enc = tiktoken.get_encoding(encoding_name)
        except Exception as exc:
            raise InitializationError(
                f"Failed to load tokenizer encoding {encoding_name!r}: {exc}"
            ) from exc

        self._enc = enc
        self._encoding_name = enc.name

    @property
    def encoding_name(self) -> str:
        """Name of the tiktoken encoding being used."""
        return self._encoding_name

    def count_text(self, text: str) -> int:
        """Count tokens in a plain text string.

        Special-token text is counted as ordinary text rather than
        rejected, since conversation content is untrusted.

        Returns:
            Number of tokens. Returns 0 for empty string.
        """
        if not text:
            return 0
        return len(self._enc.encode(text, disallowed_special=()))


class NullTokenCounter:
    """Token counter that always returns 0.

    Useful for testing when token counts are irrelevant.

    Implements the TokenCounter protocol.
    """

    def count_text(self, text: str) -> int:
        """Always returns 0."""
        return 0
