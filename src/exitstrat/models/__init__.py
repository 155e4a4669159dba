"""Domain data models for exitstrat.

Re-exports all model classes for convenient imports::

    from exitstrat.models import Holding, ProfitTarget, Strategy, TierResult
"""

from exitstrat.models.alert import AlertCheck, BeforeTPTrigger, TPAlert, TPReachedTrigger
from exitstrat.models.forecast import Forecast
from exitstrat.models.holding import Holding
from exitstrat.models.results import (
    GlobalSummary,
    PositionSummary,
    StrategyOverview,
    TierResult,
    ValuationMode,
)
from exitstrat.models.strategy import (
    ProfitTarget,
    StepState,
    Strategy,
    StrategyStatus,
    TargetType,
)
from exitstrat.models.types import HoldingId, Percentage, PortfolioId, Price, StrategyId, TokenSymbol

__all__ = [
    "AlertCheck",
    "BeforeTPTrigger",
    "Forecast",
    "GlobalSummary",
    "Holding",
    "HoldingId",
    "Percentage",
    "PortfolioId",
    "PositionSummary",
    "Price",
    "ProfitTarget",
    "StepState",
    "Strategy",
    "StrategyId",
    "StrategyOverview",
    "StrategyStatus",
    "TPAlert",
    "TPReachedTrigger",
    "TargetType",
    "TierResult",
    "TokenSymbol",
    "ValuationMode",
]
