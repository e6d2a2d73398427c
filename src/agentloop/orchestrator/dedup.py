"""Duplicate tool-call batch detection.

Two batches are duplicates when they hold the same tool names with
structurally equal arguments, in the same order.  Equality ignores dict
key order and treats integral floats as equal to ints (``3.0 == 3``), the
way JSON numbers compare; booleans stay distinct from numbers.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from agentloop.protocols import ToolCall


def canonical(value: Any) -> Any:
    """Return a hashable, order-insensitive form of a JSON-like value."""
    if value is None:
        return ("null",)
    if isinstance(value, bool):
        return ("bool", value)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and value.is_integer():
            return ("num", int(value))
        return ("num", value)
    if isinstance(value, str):
        return ("str", value)
    if isinstance(value, Mapping):
        return ("obj", tuple(sorted((str(k), canonical(v)) for k, v in value.items())))
    if isinstance(value, (list, tuple)):
        return ("arr", tuple(canonical(v) for v in value))
    return ("other", repr(value))


def batch_signature(calls: Sequence[ToolCall]) -> tuple:
    """Names and canonical arguments of a batch, in order. Ids are ignored."""
    return tuple((call.name, canonical(call.arguments)) for call in calls)


def is_duplicate_batch(
    previous: Sequence[ToolCall] | None,
    current: Sequence[ToolCall],
) -> bool:
    """True when ``current`` repeats ``previous`` exactly.

    An absent or empty previous batch never matches.
    """
    if not previous or not current:
        return False
    if len(previous) != len(current):
        return False
    return batch_signature(previous) == batch_signature(current)
