"""Derived result records.

Nothing here is stored by the engine: every record is recomputed from a
holding/strategy snapshot on each call.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from exitstrat.core.constants import VALUATION_COST, VALUATION_LAST_TARGET, VALUATION_MARKET
from exitstrat.core.exceptions import ConfigError
from exitstrat.models._coerce import to_float, to_int


class ValuationMode(Enum):
    """Price used to value the tokens left after the last tier."""

    MARKET = VALUATION_MARKET  # current price (or average price without a quote)
    LAST_TARGET = VALUATION_LAST_TARGET  # target price of the last tier
    COST = VALUATION_COST  # average cost

    @classmethod
    def parse(cls, value: object) -> ValuationMode:
        if isinstance(value, ValuationMode):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ConfigError(f"unknown valuation mode {value!r} (expected one of {valid})") from None


@dataclass(frozen=True, slots=True)
class TierResult:
    """Projection of a single tier in the sequential chain.

    ``remaining_tokens`` is the running balance *after* this tier.
    """

    order: int
    target_price: float
    tokens_sold: float
    amount_collected: float
    remaining_tokens: float
    remaining_valuation_at_target: float
    remaining_valuation_at_cost: float

    def to_dict(self) -> dict[str, object]:
        return {
            "order": self.order,
            "targetPrice": self.target_price,
            "tokensSold": self.tokens_sold,
            "amountCollected": self.amount_collected,
            "remainingTokens": self.remaining_tokens,
            "remainingValuationAtTarget": self.remaining_valuation_at_target,
            "remainingValuationAtCost": self.remaining_valuation_at_cost,
        }


@dataclass(frozen=True, slots=True)
class PositionSummary:
    """Net outcome of one holding/strategy pair."""

    holding_id: str
    strategy_id: str | None
    total_invested: float
    total_collected: float
    net_result: float
    return_percentage: float
    final_remaining_tokens: float
    final_remaining_value: float
    valuation_mode: ValuationMode

    @property
    def has_strategy(self) -> bool:
        return self.strategy_id is not None

    def to_dict(self) -> dict[str, object]:
        return {
            "holdingId": self.holding_id,
            "strategyId": self.strategy_id,
            "totalInvested": self.total_invested,
            "totalCollected": self.total_collected,
            "netResult": self.net_result,
            "returnPercentage": self.return_percentage,
            "finalRemainingTokens": self.final_remaining_tokens,
            "finalRemainingValue": self.final_remaining_value,
            "valuationMode": self.valuation_mode.value,
        }


@dataclass(frozen=True, slots=True)
class GlobalSummary:
    """Portfolio-wide totals of a forecast."""

    total_invested: float = 0.0
    total_collected: float = 0.0
    total_profit: float = 0.0
    return_percentage: float = 0.0
    remaining_tokens_value: float = 0.0
    token_count: int = 0

    def to_dict(self) -> dict[str, object]:
        """Serialise with the forecast store's summary keys."""
        return {
            "totalInvested": self.total_invested,
            "totalCollected": self.total_collected,
            "totalProfit": self.total_profit,
            "returnPercentage": self.return_percentage,
            "remainingTokensValue": self.remaining_tokens_value,
            "tokenCount": self.token_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> GlobalSummary:
        return cls(
            total_invested=to_float(data.get("totalInvested")),
            total_collected=to_float(data.get("totalCollected")),
            total_profit=to_float(data.get("totalProfit")),
            return_percentage=to_float(data.get("returnPercentage")),
            remaining_tokens_value=to_float(data.get("remainingTokensValue")),
            token_count=to_int(data.get("tokenCount")),
        )


@dataclass(frozen=True, slots=True)
class StrategyOverview:
    """Step-level overview of a strategy applied to a holding.

    ``estimated_total_profit`` counts only the gain over cost on the tokens
    the ladder sells; the unsold remainder is ignored.
    """

    total_steps: int
    pending_steps: int
    triggered_steps: int
    completed_steps: int
    total_tokens_to_sell: float
    remaining_tokens: float
    estimated_total_profit: float
