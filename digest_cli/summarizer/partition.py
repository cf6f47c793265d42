"""Greedy, order-preserving partitioning of summaries into budget-sized batches."""

from __future__ import annotations

from typing import TYPE_CHECKING

from digest_cli.summarizer._cost import char_cost, cost

if TYPE_CHECKING:
    from collections.abc import Sequence

    from digest_cli.summarizer._cost import CostFunction
    from digest_cli.summarizer.models import SummaryUnit


def split_units(
    units: Sequence[SummaryUnit],
    budget: int,
    cost_fn: CostFunction = char_cost,
) -> list[list[SummaryUnit]]:
    """Split units into contiguous groups whose total cost fits the budget.

    Scans once, in order. A unit that would push the running group over the
    budget closes that group and starts the next one. A unit that is larger
    than the budget on its own ends up alone in its group.

    Args:
        units: Summary units in document order.
        budget: Maximum total cost of one group.
        cost_fn: Cost function applied to each unit's text.

    Returns:
        Groups covering every unit exactly once, in the original order.

    """
    if budget < 1:
        msg = f"budget must be at least 1, got {budget}"
        raise ValueError(msg)

    groups: list[list[SummaryUnit]] = []
    current_group: list[SummaryUnit] = []
    current_cost = 0

    for unit in units:
        unit_cost = cost(unit, cost_fn)
        if current_group and current_cost + unit_cost > budget:
            groups.append(current_group)
            current_group = []
            current_cost = 0
        current_group.append(unit)
        current_cost += unit_cost

    if current_group:
        groups.append(current_group)

    return groups
