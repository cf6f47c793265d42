"""Cost estimation for summary units."""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache
from typing import TYPE_CHECKING

import tiktoken

if TYPE_CHECKING:
    from collections.abc import Sequence

    from digest_cli.summarizer.models import SummaryUnit

CostFunction = Callable[[str], int]


def char_cost(text: str) -> int:
    """Cost of a text as its character count."""
    return len(text)


@lru_cache(maxsize=4)
def _get_encoding(model: str) -> tiktoken.Encoding:
    """Get tiktoken encoding for a model, with caching.

    Falls back to cl100k_base for unknown models.
    """
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        return tiktoken.get_encoding("cl100k_base")


def token_cost_for(model: str) -> CostFunction:
    """Build a cost function that counts tiktoken tokens for ``model``."""

    def token_cost(text: str) -> int:
        if not text:
            return 0
        # LLM outputs may contain special tokens; count them as plain text
        return len(_get_encoding(model).encode(text, disallowed_special=()))

    return token_cost


def get_cost_function(name: str, model: str = "gpt-4") -> CostFunction:
    """Resolve a cost function by name ("chars" or "tokens")."""
    if name == "chars":
        return char_cost
    if name == "tokens":
        return token_cost_for(model)
    msg = f"Unknown cost function: {name}"
    raise ValueError(msg)


def cost(unit: SummaryUnit, cost_fn: CostFunction = char_cost) -> int:
    """Cost of a single summary unit."""
    return cost_fn(unit.text)


def total_cost(units: Sequence[SummaryUnit], cost_fn: CostFunction = char_cost) -> int:
    """Total cost across all units."""
    return sum(cost(u, cost_fn) for u in units)
