"""Holding data model.

A :class:`Holding` is one position in a single token as supplied by the
external portfolio store.  It is read-only to the engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from exitstrat.models._coerce import first_of, opt_float, to_float
from exitstrat.models.types import HoldingId, PortfolioId, Price, TokenSymbol


@dataclass(frozen=True, slots=True)
class Holding:
    """A position in one token.

    Parameters
    ----------
    id:
        Holding identifier from the portfolio store.
    symbol:
        Token ticker, e.g. ``"BTC"``.
    quantity:
        Tokens held.
    average_price:
        Average cost per token (cost basis).
    current_price:
        Latest market price, or ``None`` when no quote is available, in
        which case :attr:`effective_price` falls back to *average_price*.
    invested_amount:
        Amount invested as tracked from transaction history.  ``None``
        means ``quantity * average_price``.
    portfolio_id:
        Owning portfolio, if known.
    """

    id: HoldingId
    symbol: TokenSymbol
    quantity: float
    average_price: Price
    current_price: Price | None = None
    invested_amount: float | None = None
    portfolio_id: PortfolioId | None = None

    # -- derived properties ---------------------------------------------------

    @property
    def effective_price(self) -> float:
        """Current price, or the average price when no quote is known."""
        if self.current_price is None:
            return self.average_price
        return self.current_price

    @property
    def cost_value(self) -> float:
        """``quantity * average_price``."""
        return self.quantity * self.average_price

    @property
    def invested(self) -> float:
        """Tracked invested amount, defaulting to :attr:`cost_value`."""
        if self.invested_amount is None:
            return self.cost_value
        return self.invested_amount

    @property
    def is_degenerate(self) -> bool:
        """``True`` when no projection is meaningful for this holding."""
        return self.quantity <= 0 or self.average_price <= 0

    def market_value(self) -> float:
        """Value of the whole position at :attr:`effective_price`."""
        return self.quantity * self.effective_price

    # -- serialisation --------------------------------------------------------

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "quantity": self.quantity,
            "averagePrice": self.average_price,
            "currentPrice": self.current_price,
            "investedAmount": self.invested_amount,
            "portfolioId": self.portfolio_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Holding:
        """Build a Holding from a portfolio-store record.

        Accepts camelCase and snake_case keys, and reads the ticker from
        either ``symbol`` or a nested ``token.symbol``.
        """
        token = data.get("token")
        token = token if isinstance(token, dict) else {}
        symbol = first_of(data, "symbol", "tokenSymbol", "token_symbol") or token.get("symbol")
        portfolio = first_of(data, "portfolioId", "portfolio_id")
        return cls(
            id=str(first_of(data, "id", "holdingId", "holding_id") or ""),
            symbol=str(symbol or "").strip().upper(),
            quantity=to_float(first_of(data, "quantity", "qty")),
            average_price=to_float(first_of(data, "averagePrice", "average_price", "avg_price")),
            current_price=opt_float(first_of(data, "currentPrice", "current_price")),
            invested_amount=opt_float(first_of(data, "investedAmount", "invested_amount")),
            portfolio_id=None if portfolio is None else str(portfolio),
        )

    # -- validation -----------------------------------------------------------

    def validate(self) -> list[str]:
        """Return a list of validation errors (empty means valid)."""
        errors: list[str] = []
        if not self.id:
            errors.append("id must not be empty.")
        if not self.symbol:
            errors.append("symbol must not be empty.")
        if self.quantity < 0:
            errors.append(f"quantity={self.quantity} must be >= 0.")
        if self.average_price < 0:
            errors.append(f"average_price={self.average_price} must be >= 0.")
        if self.current_price is not None and self.current_price < 0:
            errors.append(f"current_price={self.current_price} must be >= 0.")
        return errors
