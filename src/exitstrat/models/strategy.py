"""Take-profit strategy data models.

A :class:`Strategy` is an ordered ladder of :class:`ProfitTarget` tiers for
one token.  Each tier sells a fraction of the *original* position once its
target price is reached.

"Real" strategies are bound to a holding; theoretical ones carry no binding
and apply to any holding of the same token.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from exitstrat.core.constants import (
    MAX_SELL_PERCENTAGE,
    MIN_SELL_PERCENTAGE,
    TARGET_TYPE_PERCENTAGE,
    TARGET_TYPE_PRICE,
)
from exitstrat.models._coerce import first_of, opt_float, opt_str, to_float, to_int
from exitstrat.models.types import HoldingId, Percentage, PortfolioId, StrategyId, TokenSymbol

if TYPE_CHECKING:
    from exitstrat.models.holding import Holding


class TargetType(Enum):
    """How a tier's ``target_value`` is interpreted."""

    PERCENTAGE = TARGET_TYPE_PERCENTAGE  # % above average cost
    PRICE = TARGET_TYPE_PRICE  # absolute price

    @classmethod
    def parse(cls, value: object) -> TargetType:
        """Map any known spelling to a member; unknown values raise ``ValueError``."""
        if isinstance(value, TargetType):
            return value
        key = str(value or "").strip().lower()
        try:
            return _TARGET_TYPE_ALIASES[key]
        except KeyError:
            raise ValueError(f"unknown target type {value!r}") from None


_TARGET_TYPE_ALIASES: dict[str, TargetType] = {
    "percentage": TargetType.PERCENTAGE,
    "percentage_of_average": TargetType.PERCENTAGE,
    "percent": TargetType.PERCENTAGE,
    "price": TargetType.PRICE,
    "exact_price": TargetType.PRICE,
}


class StepState(Enum):
    """Execution state of a tier."""

    PENDING = "pending"
    TRIGGERED = "triggered"
    DONE = "done"


class StrategyStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


def tokens_to_percentage(sell_tokens: float, quantity: float) -> float:
    """Express an absolute token count as a percentage of *quantity*.

    Returns ``0.0`` when *quantity* is not positive.
    """
    if quantity <= 0:
        return 0.0
    return sell_tokens / quantity * 100.0


def percentage_to_tokens(sell_percentage: float, quantity: float) -> float:
    """Inverse of :func:`tokens_to_percentage`."""
    return quantity * sell_percentage / 100.0


@dataclass(frozen=True, slots=True)
class ProfitTarget:
    """One exit rung of a strategy.

    Parameters
    ----------
    order:
        1-based execution position.  Later tiers sell from the balance left
        by earlier ones.
    target_type:
        :attr:`TargetType.PERCENTAGE` (above average cost) or
        :attr:`TargetType.PRICE` (absolute).
    target_value:
        Percentage or price, depending on *target_type*.
    sell_percentage:
        Fraction (0-100) of the **original** quantity sold at this tier.
    state:
        Execution state as tracked by the strategy store.
    notes:
        Free-form user notes.
    """

    order: int
    target_type: TargetType
    target_value: float
    sell_percentage: Percentage
    state: StepState = StepState.PENDING
    notes: str | None = None

    @classmethod
    def from_sell_tokens(
        cls,
        order: int,
        target_type: TargetType,
        target_value: float,
        sell_tokens: float,
        quantity: float,
        **kwargs: Any,
    ) -> ProfitTarget:
        """Build a tier from an absolute token count instead of a percentage.

        The count is stored as a percentage of the original *quantity* so
        both input modes go through the same validation and projection.
        """
        return cls(
            order=order,
            target_type=target_type,
            target_value=target_value,
            sell_percentage=tokens_to_percentage(sell_tokens, quantity),
            **kwargs,
        )

    def sell_tokens(self, quantity: float) -> float:
        """Tokens this tier sells out of an original *quantity*."""
        return percentage_to_tokens(self.sell_percentage, quantity)

    def with_sell_percentage(self, sell_percentage: float) -> ProfitTarget:
        return replace(self, sell_percentage=sell_percentage)

    # -- serialisation --------------------------------------------------------

    def to_dict(self) -> dict[str, object]:
        return {
            "order": self.order,
            "targetType": self.target_type.value,
            "targetValue": self.target_value,
            "sellPercentage": self.sell_percentage,
            "state": self.state.value,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        default_order: int = 1,
        quantity: float | None = None,
    ) -> ProfitTarget:
        """Build a tier from a store record (camelCase or snake_case).

        The sell fraction is read from ``sellPercentage``.  A record that
        only carries a token count (``sellTokens`` / ``sellQuantity``) is
        converted against *quantity*; without one it raises ``ValueError``.
        """
        state_raw = str(data.get("state") or StepState.PENDING.value).lower()
        try:
            state = StepState(state_raw)
        except ValueError:
            state = StepState.PENDING

        sell_percentage = opt_float(first_of(data, "sellPercentage", "sell_percentage"))
        if sell_percentage is None:
            sell_tokens = opt_float(
                first_of(data, "sellTokens", "sell_tokens", "sellQuantity", "sell_quantity")
            )
            if sell_tokens is not None:
                if quantity is None:
                    raise ValueError(
                        f"tier gives sell tokens ({sell_tokens:g}) but no quantity to convert against"
                    )
                sell_percentage = tokens_to_percentage(sell_tokens, quantity)

        return cls(
            order=to_int(data.get("order"), default_order),
            target_type=TargetType.parse(first_of(data, "targetType", "target_type")),
            target_value=to_float(first_of(data, "targetValue", "target_value")),
            sell_percentage=0.0 if sell_percentage is None else sell_percentage,
            state=state,
            notes=opt_str(data.get("notes")),
        )

    # -- validation -----------------------------------------------------------

    def validate(self) -> list[str]:
        """Return a list of validation errors (empty means valid)."""
        errors: list[str] = []
        if self.order < 1:
            errors.append(f"order={self.order} must be >= 1.")
        if not MIN_SELL_PERCENTAGE <= self.sell_percentage <= MAX_SELL_PERCENTAGE:
            errors.append(f"sell_percentage={self.sell_percentage} outside 0-100 range.")
        if self.target_type is TargetType.PRICE and self.target_value < 0:
            errors.append(f"target_value={self.target_value} must be >= 0 for a price target.")
        return errors


@dataclass(frozen=True, slots=True)
class Strategy:
    """An ordered take-profit ladder for one token.

    Parameters
    ----------
    id:
        Strategy identifier from the strategy store.
    symbol:
        Token ticker the strategy applies to.
    targets:
        The tiers, in any order; use :attr:`ordered_targets` to iterate.
    name:
        Display name.
    holding_id:
        Bound holding, or ``None`` for a theoretical strategy.
    portfolio_id:
        Bound portfolio, if any.
    status:
        Lifecycle status as tracked by the store.
    """

    id: StrategyId
    symbol: TokenSymbol
    targets: tuple[ProfitTarget, ...] = field(default_factory=tuple)
    name: str = ""
    holding_id: HoldingId | None = None
    portfolio_id: PortfolioId | None = None
    status: StrategyStatus = StrategyStatus.ACTIVE

    # -- derived properties ---------------------------------------------------

    @property
    def ordered_targets(self) -> tuple[ProfitTarget, ...]:
        """Tiers sorted by ascending ``order`` (stable for equal orders)."""
        return tuple(sorted(self.targets, key=lambda t: t.order))

    @property
    def total_sell_percentage(self) -> float:
        return sum(t.sell_percentage for t in self.targets)

    @property
    def is_theoretical(self) -> bool:
        """``True`` when the strategy is not bound to a holding."""
        return self.holding_id is None

    def applies_to(self, holding: Holding) -> bool:
        """Whether this strategy can be applied to *holding*.

        Bound strategies match their holding id; theoretical ones match any
        holding of the same token symbol.
        """
        if self.holding_id is not None:
            return self.holding_id == holding.id
        return self.symbol.strip().upper() == holding.symbol.strip().upper()

    def with_targets(self, targets: tuple[ProfitTarget, ...] | list[ProfitTarget]) -> Strategy:
        return replace(self, targets=tuple(targets))

    # -- serialisation --------------------------------------------------------

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "symbol": self.symbol,
            "holdingId": self.holding_id,
            "portfolioId": self.portfolio_id,
            "status": self.status.value,
            "profitTargets": [t.to_dict() for t in self.ordered_targets],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], quantity: float | None = None) -> Strategy:
        """Build a Strategy from a store record.

        Accepts the tier list under ``profitTargets``, ``profit_targets``,
        ``targets`` or ``steps``; tiers without an ``order`` take their list
        position.  The ticker is read from ``symbol``, ``tokenSymbol`` or a
        nested ``token.symbol``.

        *quantity* converts token-count tiers into percentages; it defaults
        to the record's ``baseQuantity``.
        """
        if quantity is None:
            quantity = opt_float(first_of(data, "baseQuantity", "base_quantity"))
        raw_targets = first_of(data, "profitTargets", "profit_targets", "targets", "steps") or []
        targets = tuple(
            ProfitTarget.from_dict(t, default_order=i + 1, quantity=quantity)
            for i, t in enumerate(raw_targets)
            if isinstance(t, dict)
        )
        token = data.get("token")
        token = token if isinstance(token, dict) else {}
        symbol = first_of(data, "symbol", "tokenSymbol", "token_symbol") or token.get("symbol")
        status_raw = str(data.get("status") or StrategyStatus.ACTIVE.value).lower()
        try:
            status = StrategyStatus(status_raw)
        except ValueError:
            status = StrategyStatus.ACTIVE
        holding_id = first_of(data, "holdingId", "holding_id")
        portfolio_id = first_of(data, "portfolioId", "portfolio_id")
        return cls(
            id=str(data.get("id") or ""),
            symbol=str(symbol or "").strip().upper(),
            targets=targets,
            name=str(data.get("name") or ""),
            holding_id=None if holding_id is None else str(holding_id),
            portfolio_id=None if portfolio_id is None else str(portfolio_id),
            status=status,
        )

    # -- validation -----------------------------------------------------------

    def validate(self) -> list[str]:
        """Return field-level errors (empty means valid).

        Ladder-wide rules (sell budget, order sequence) are checked by
        :func:`exitstrat.engine.validator.validate_strategy`.
        """
        errors: list[str] = []
        if not self.id:
            errors.append("id must not be empty.")
        if not self.symbol:
            errors.append("symbol must not be empty.")
        if not self.targets:
            errors.append("targets must not be empty.")
        for t in self.targets:
            errors.extend(f"tier {t.order}: {e}" for e in t.validate())
        return errors
