"""Position summaries: folds a tier chain into one holding's net result.

The unsold remainder can be valued three ways (see
:class:`~exitstrat.models.results.ValuationMode`); callers always pick one
explicitly.
"""

from __future__ import annotations

from collections.abc import Sequence

from exitstrat.engine.tier_engine import project
from exitstrat.models.holding import Holding
from exitstrat.models.results import PositionSummary, StrategyOverview, TierResult, ValuationMode
from exitstrat.models.strategy import StepState, Strategy


def return_percentage(net: float, invested: float) -> float:
    """``net / invested * 100``, or ``0.0`` when nothing was invested."""
    if invested <= 0:
        return 0.0
    return net / invested * 100.0


def remaining_value(
    holding: Holding,
    tier_results: Sequence[TierResult],
    mode: ValuationMode,
) -> float:
    """Value of the tokens left after the last tier under *mode*."""
    tokens = tier_results[-1].remaining_tokens if tier_results else holding.quantity
    if mode is ValuationMode.MARKET:
        return tokens * holding.effective_price
    if mode is ValuationMode.LAST_TARGET and tier_results:
        return tokens * tier_results[-1].target_price
    # COST, or LAST_TARGET without any tier to take a price from
    return tokens * holding.average_price


def summarize(
    holding: Holding,
    tier_results: Sequence[TierResult],
    mode: ValuationMode,
    strategy_id: str | None = None,
) -> PositionSummary:
    """Build the :class:`PositionSummary` for *holding* from its tier chain.

    Parameters
    ----------
    holding:
        The position being summarised.
    tier_results:
        Output of :func:`~exitstrat.engine.tier_engine.project` (may be
        empty when no strategy applies).
    mode:
        Valuation basis for the unsold remainder.
    strategy_id:
        Recorded on the summary for rendering.
    """
    total_invested = holding.cost_value
    total_collected = sum(t.amount_collected for t in tier_results)
    final_tokens = tier_results[-1].remaining_tokens if tier_results else holding.quantity
    final_value = remaining_value(holding, tier_results, mode)
    net = total_collected + final_value - total_invested

    return PositionSummary(
        holding_id=holding.id,
        strategy_id=strategy_id,
        total_invested=total_invested,
        total_collected=total_collected,
        net_result=net,
        return_percentage=return_percentage(net, total_invested),
        final_remaining_tokens=final_tokens,
        final_remaining_value=final_value,
        valuation_mode=mode,
    )


def preview(
    holding: Holding,
    strategy: Strategy,
    mode: ValuationMode = ValuationMode.LAST_TARGET,
) -> PositionSummary:
    """Strategy-authoring preview: project then summarise in one call."""
    return summarize(holding, project(holding, strategy), mode, strategy.id)


def strategy_overview(holding: Holding, strategy: Strategy) -> StrategyOverview:
    """Step counts and totals for *strategy* applied to *holding*."""
    tiers = project(holding, strategy)
    states = [t.state for t in strategy.targets]
    sold = sum(t.tokens_sold for t in tiers)
    profit = sum(t.tokens_sold * (t.target_price - holding.average_price) for t in tiers)
    return StrategyOverview(
        total_steps=len(states),
        pending_steps=states.count(StepState.PENDING),
        triggered_steps=states.count(StepState.TRIGGERED),
        completed_steps=states.count(StepState.DONE),
        total_tokens_to_sell=sold,
        remaining_tokens=tiers[-1].remaining_tokens if tiers else holding.quantity,
        estimated_total_profit=profit,
    )
