"""Forecast snapshot model.

A :class:`Forecast` is what the forecast store persists: a name, the
portfolio it covers, which strategy was applied to each holding and the
resulting :class:`~exitstrat.models.results.GlobalSummary`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from exitstrat.core.constants import NO_STRATEGY
from exitstrat.models.results import GlobalSummary, PositionSummary
from exitstrat.models.types import HoldingId, PortfolioId, StrategyId


@dataclass(frozen=True, slots=True)
class Forecast:
    """Named forecast snapshot.

    ``positions`` carries the per-holding rows for rendering; it is not part
    of the persisted layout.
    """

    name: str
    portfolio_id: PortfolioId
    applied_strategies: dict[HoldingId, StrategyId]
    summary: GlobalSummary
    id: str | None = None
    positions: tuple[PositionSummary, ...] = field(default_factory=tuple)

    @property
    def has_strategy(self) -> bool:
        """``True`` if at least one holding has a strategy applied."""
        return any(sid != NO_STRATEGY for sid in self.applied_strategies.values())

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "portfolioId": self.portfolio_id,
            "name": self.name,
            "appliedStrategies": dict(self.applied_strategies),
            "summary": self.summary.to_dict(),
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Forecast:
        applied = data.get("appliedStrategies") or data.get("applied_strategies") or {}
        summary = data.get("summary")
        return cls(
            name=str(data.get("name") or ""),
            portfolio_id=str(data.get("portfolioId") or data.get("portfolio_id") or ""),
            applied_strategies={str(k): str(v) for k, v in dict(applied).items()},
            summary=GlobalSummary.from_dict(summary if isinstance(summary, dict) else {}),
            id=None if data.get("id") is None else str(data["id"]),
        )

    def validate(self) -> list[str]:
        errors: list[str] = []
        if not self.name:
            errors.append("name must not be empty.")
        if not self.portfolio_id:
            errors.append("portfolio_id must not be empty.")
        return errors
