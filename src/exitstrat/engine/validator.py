"""Structural checks and edit-time clamping for a strategy's tier list.

Validation never raises: callers get a :class:`ValidationResult` naming the
first violated rule and the offending tier.  Edits go through
:func:`apply_sell_percentage_edit` (or its token-count twin), which clamps
the proposed value to the remaining sell budget so an over-budget ladder is
never produced.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from exitstrat.core.constants import (
    DEFAULT_PERCENT_TOLERANCE,
    MAX_SELL_PERCENTAGE,
    MIN_SELL_PERCENTAGE,
)
from exitstrat.models.strategy import ProfitTarget, Strategy, tokens_to_percentage

logger = logging.getLogger(__name__)


class ValidationRule(Enum):
    """Rules checked by :func:`validate_strategy`, in evaluation order."""

    EMPTY = "empty"
    SELL_PERCENTAGE_RANGE = "sell_percentage_range"
    SELL_PERCENTAGE_TOTAL = "sell_percentage_total"
    ORDER_SEQUENCE = "order_sequence"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of :func:`validate_strategy`.

    ``tier_index`` is the position of the offending tier in
    ``strategy.targets`` (``None`` when the rule concerns the whole ladder).
    """

    ok: bool
    rule: ValidationRule | None = None
    tier_index: int | None = None
    message: str = ""

    @classmethod
    def valid(cls) -> ValidationResult:
        return cls(ok=True)

    @classmethod
    def violation(cls, rule: ValidationRule, tier_index: int | None, message: str) -> ValidationResult:
        return cls(ok=False, rule=rule, tier_index=tier_index, message=message)

    def __bool__(self) -> bool:
        return self.ok


def validate_strategy(
    strategy: Strategy,
    tolerance: float = DEFAULT_PERCENT_TOLERANCE,
) -> ValidationResult:
    """Check *strategy* and return the first violated rule, if any.

    Rules, in order:

    1. the ladder is not empty;
    2. each ``sell_percentage`` lies in ``[0, 100]``;
    3. the ``sell_percentage`` total does not exceed 100 (the offending
       tier is the first, in execution order, that breaks the budget);
    4. ``order`` values are unique and contiguous from 1.
    """
    targets = strategy.targets
    if not targets:
        return ValidationResult.violation(
            ValidationRule.EMPTY, None, "strategy has no profit targets"
        )

    for idx, target in enumerate(targets):
        if not MIN_SELL_PERCENTAGE <= target.sell_percentage <= MAX_SELL_PERCENTAGE:
            return ValidationResult.violation(
                ValidationRule.SELL_PERCENTAGE_RANGE,
                idx,
                f"tier {target.order}: sell_percentage={target.sell_percentage} outside 0-100",
            )

    in_order = sorted(enumerate(targets), key=lambda pair: pair[1].order)

    running = 0.0
    for idx, target in in_order:
        running += target.sell_percentage
        if running > MAX_SELL_PERCENTAGE + tolerance:
            return ValidationResult.violation(
                ValidationRule.SELL_PERCENTAGE_TOTAL,
                idx,
                f"tier {target.order}: cumulative sell_percentage {running:g} exceeds 100",
            )

    for expected, (idx, target) in enumerate(in_order, start=1):
        if target.order != expected:
            return ValidationResult.violation(
                ValidationRule.ORDER_SEQUENCE,
                idx,
                f"tier order {target.order} found where {expected} was expected",
            )

    return ValidationResult.valid()


def sell_headroom(targets: Sequence[ProfitTarget], index: int) -> float:
    """Sell budget left for tier *index*: ``100 - sum(other tiers)``, floored at 0."""
    others = sum(t.sell_percentage for i, t in enumerate(targets) if i != index)
    return max(MIN_SELL_PERCENTAGE, MAX_SELL_PERCENTAGE - others)


def clamp_sell_percentage(
    targets: Sequence[ProfitTarget],
    index: int,
    proposed: float,
) -> float:
    """Accepted value for a proposed edit of tier *index*.

    ``max(0, min(proposed, 100 - sum(other tiers)))``.  Raises
    ``IndexError`` for an index outside *targets*.
    """
    if not 0 <= index < len(targets):
        raise IndexError(f"tier index {index} out of range for {len(targets)} tiers")
    return max(MIN_SELL_PERCENTAGE, min(proposed, sell_headroom(targets, index)))


def apply_sell_percentage_edit(strategy: Strategy, index: int, proposed: float) -> Strategy:
    """Return a copy of *strategy* with tier *index* set to the clamped value."""
    targets = list(strategy.targets)
    accepted = clamp_sell_percentage(targets, index, proposed)
    if accepted != proposed:
        logger.debug(
            "Clamped sell_percentage for %s tier %d: %g -> %g",
            strategy.id or strategy.symbol,
            targets[index].order,
            proposed,
            accepted,
        )
    targets[index] = targets[index].with_sell_percentage(accepted)
    return strategy.with_targets(targets)


def apply_sell_tokens_edit(
    strategy: Strategy,
    index: int,
    sell_tokens: float,
    quantity: float,
) -> Strategy:
    """Token-count variant of :func:`apply_sell_percentage_edit`.

    The count is converted to a percentage of the original *quantity*
    first, so both input modes share one clamp.
    """
    return apply_sell_percentage_edit(strategy, index, tokens_to_percentage(sell_tokens, quantity))
