"""Tier projection: the sequential take-profit chain for one holding.

Every tier sells a share of the *original* quantity at its target price;
the running balance is seeded once and only ever decreases.
"""

from __future__ import annotations

import logging

from exitstrat.models.holding import Holding
from exitstrat.models.results import TierResult
from exitstrat.models.strategy import (
    ProfitTarget,
    Strategy,
    TargetType,
    percentage_to_tokens,
    tokens_to_percentage,
)

logger = logging.getLogger(__name__)

__all__ = ["percentage_to_tokens", "project", "target_price", "tokens_to_percentage"]


def target_price(target: ProfitTarget, average_price: float) -> float:
    """Absolute price at which *target* sells.

    Percentage targets are measured above *average_price*; price targets
    are used as-is.
    """
    if target.target_type is TargetType.PERCENTAGE:
        return average_price * (1.0 + target.target_value / 100.0)
    return target.target_value


def project(holding: Holding, strategy: Strategy) -> list[TierResult]:
    """Project *strategy* onto *holding*, tier by tier in ascending order.

    Returns an empty list for a degenerate holding (no quantity or no cost
    basis); that is a normal input state, not an error.
    """
    if holding.is_degenerate:
        logger.debug(
            "No projection for holding %s: quantity=%s average_price=%s",
            holding.id,
            holding.quantity,
            holding.average_price,
        )
        return []

    quantity = holding.quantity
    average = holding.average_price
    remaining = quantity
    results: list[TierResult] = []

    for target in strategy.ordered_targets:
        price = target_price(target, average)
        # min() keeps float drift from pushing the balance below zero
        sold = max(0.0, min(percentage_to_tokens(target.sell_percentage, quantity), remaining))
        remaining -= sold
        results.append(
            TierResult(
                order=target.order,
                target_price=price,
                tokens_sold=sold,
                amount_collected=sold * price,
                remaining_tokens=remaining,
                remaining_valuation_at_target=remaining * price,
                remaining_valuation_at_cost=remaining * average,
            )
        )

    return results
