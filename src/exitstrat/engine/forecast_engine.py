"""Portfolio forecast aggregation.

Combines per-holding summaries into one :class:`GlobalSummary`.  Holdings
with a resolvable strategy are priced through the tier chain; every other
holding (no assignment, ``"none"``, or a strategy that no longer exists) is
passed through at its invested amount, contributing zero profit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

from exitstrat.core.config import EngineConfig
from exitstrat.core.constants import NO_STRATEGY
from exitstrat.engine.summary_engine import return_percentage, summarize
from exitstrat.engine.tier_engine import project
from exitstrat.models.forecast import Forecast
from exitstrat.models.holding import Holding
from exitstrat.models.results import GlobalSummary, PositionSummary, ValuationMode
from exitstrat.models.strategy import Strategy

logger = logging.getLogger(__name__)

StrategySource = Mapping[str, Strategy] | Iterable[Strategy]


class ForecastEngine:
    """Builds portfolio forecasts from holdings and strategy assignments.

    Parameters
    ----------
    config:
        Engine configuration; only ``forecast_valuation`` is used here.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or EngineConfig()
        self._mode = self._config.forecast_mode

    @property
    def valuation_mode(self) -> ValuationMode:
        return self._mode

    # -- public API -----------------------------------------------------------

    def aggregate(
        self,
        holdings: Sequence[Holding],
        applied_strategies: Mapping[str, str],
        strategies: StrategySource,
    ) -> GlobalSummary:
        """Sum every holding's contribution into a :class:`GlobalSummary`.

        Never raises for dangling references; a forecast always produces
        a number.
        """
        rows = self.position_summaries(holdings, applied_strategies, strategies)
        return self._totals(rows)

    def position_summaries(
        self,
        holdings: Sequence[Holding],
        applied_strategies: Mapping[str, str],
        strategies: StrategySource,
    ) -> list[PositionSummary]:
        """One summary per holding, in input order."""
        index = _index(strategies)
        return [
            self.position_summary(h, self.resolve(h, applied_strategies, index)) for h in holdings
        ]

    def position_summary(self, holding: Holding, strategy: Strategy | None) -> PositionSummary:
        """Summary for one holding, priced if *strategy* is given."""
        if strategy is not None:
            return summarize(holding, project(holding, strategy), self._mode, strategy.id)

        invested = holding.invested
        return PositionSummary(
            holding_id=holding.id,
            strategy_id=None,
            total_invested=invested,
            total_collected=0.0,
            net_result=0.0,
            return_percentage=0.0,
            final_remaining_tokens=holding.quantity,
            final_remaining_value=invested,
            valuation_mode=ValuationMode.COST,
        )

    def resolve(
        self,
        holding: Holding,
        applied_strategies: Mapping[str, str],
        strategies: StrategySource,
    ) -> Strategy | None:
        """Strategy assigned to *holding*, or ``None`` for pass-through."""
        strategy_id = applied_strategies.get(holding.id, NO_STRATEGY)
        if not strategy_id or strategy_id == NO_STRATEGY:
            return None
        strategy = _index(strategies).get(strategy_id)
        if strategy is None:
            logger.debug(
                "Holding %s references missing strategy %s; treating as unassigned",
                holding.id,
                strategy_id,
            )
        return strategy

    def build_forecast(
        self,
        name: str,
        portfolio_id: str,
        holdings: Sequence[Holding],
        applied_strategies: Mapping[str, str],
        strategies: StrategySource,
        forecast_id: str | None = None,
    ) -> Forecast:
        """Build a named :class:`Forecast` snapshot.

        The stored assignment map covers every holding and records dangling
        or missing assignments as ``"none"``, i.e. what was actually applied.
        """
        index = _index(strategies)
        effective: dict[str, str] = {}
        rows: list[PositionSummary] = []
        for holding in holdings:
            strategy = self.resolve(holding, applied_strategies, index)
            effective[holding.id] = strategy.id if strategy is not None else NO_STRATEGY
            rows.append(self.position_summary(holding, strategy))

        summary = self._totals(rows)
        logger.info(
            "Forecast %r: %d holdings, %d with strategy, return %.2f%%",
            name,
            summary.token_count,
            sum(1 for r in rows if r.has_strategy),
            summary.return_percentage,
        )
        return Forecast(
            name=name,
            portfolio_id=portfolio_id,
            applied_strategies=effective,
            summary=summary,
            id=forecast_id,
            positions=tuple(rows),
        )

    @staticmethod
    def default_assignments(holdings: Iterable[Holding]) -> dict[str, str]:
        """Assignment map with no strategy applied to any holding."""
        return {h.id: NO_STRATEGY for h in holdings}

    @staticmethod
    def compatible_strategies(holding: Holding, strategies: StrategySource) -> list[Strategy]:
        """Strategies that may be applied to *holding* (bound or same symbol)."""
        return [s for s in _index(strategies).values() if s.applies_to(holding)]

    # -- private helpers ------------------------------------------------------

    @staticmethod
    def _totals(rows: Sequence[PositionSummary]) -> GlobalSummary:
        invested = sum(r.total_invested for r in rows)
        collected = sum(r.total_collected for r in rows)
        remaining = sum(r.final_remaining_value for r in rows)
        profit = collected + remaining - invested
        return GlobalSummary(
            total_invested=invested,
            total_collected=collected,
            total_profit=profit,
            return_percentage=return_percentage(profit, invested),
            remaining_tokens_value=remaining,
            token_count=len(rows),
        )


def _index(strategies: StrategySource) -> Mapping[str, Strategy]:
    if isinstance(strategies, Mapping):
        return strategies
    return {s.id: s for s in strategies}
