"""Forecast runner: snapshot file in, forecast JSON out.

Loads a holdings/strategies snapshot, normalises the records, drops
strategies that fail validation, then runs the forecast (and optionally the
alert proposals) and writes the result atomically.

Snapshot layout::

    {
      "name": "Bull run 2025",
      "portfolio_id": "p1",
      "holdings": [{"id": "h1", "symbol": "BTC", "quantity": 0.5, ...}],
      "strategies": [{"id": "s1", "symbol": "BTC", "profitTargets": [...]}],
      "applied_strategies": {"h1": "s1"}
    }
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from exitstrat.core.config import EngineConfig
from exitstrat.core.constants import NO_STRATEGY
from exitstrat.core.exceptions import SnapshotError
from exitstrat.core.storage import FileStore
from exitstrat.engine.alert_engine import AlertEngine
from exitstrat.engine.forecast_engine import ForecastEngine
from exitstrat.engine.summary_engine import preview
from exitstrat.engine.tier_engine import project
from exitstrat.engine.validator import validate_strategy
from exitstrat.models._coerce import first_of
from exitstrat.models.forecast import Forecast
from exitstrat.models.holding import Holding
from exitstrat.models.strategy import Strategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Normalised content of a snapshot file."""

    name: str
    portfolio_id: str
    holdings: list[Holding]
    strategies: list[Strategy]
    applied_strategies: dict[str, str] = field(default_factory=dict)


class ForecastRunner:
    """Runs one forecast over a snapshot file.

    Parameters
    ----------
    config:
        Engine configuration snapshot.
    store:
        File I/O abstraction.
    """

    def __init__(self, config: EngineConfig | None = None, store: FileStore | None = None) -> None:
        self._config = config or EngineConfig()
        self._store = store or FileStore()
        self._forecasts = ForecastEngine(self._config)
        self._alerts = AlertEngine(self._config)

    # -- public API -----------------------------------------------------------

    def load_snapshot(self, path: Path) -> Snapshot:
        """Read and normalise a snapshot file.

        Raises :class:`SnapshotError` when the file is missing, is not a
        JSON object, or its sections have the wrong shape.  A strategy
        record that cannot be normalised is logged and skipped; holdings it
        was applied to fall back to pass-through.
        """
        data = self._store.read_json(path)
        if not isinstance(data, dict):
            raise SnapshotError(f"{path}: expected a JSON object")

        try:
            holdings = [Holding.from_dict(h) for h in _records(data, "holdings")]
            strategy_records = _records(data, "strategies")
        except (TypeError, ValueError) as exc:
            raise SnapshotError(f"{path}: {exc}") from exc

        applied_raw = data.get("applied_strategies") or data.get("appliedStrategies") or {}
        if not isinstance(applied_raw, dict):
            raise SnapshotError(f"{path}: applied_strategies must be an object")

        for h in holdings:
            for err in h.validate():
                logger.warning("Holding %s: %s", h.id or "?", err)

        quantities = {h.id: h.quantity for h in holdings}
        strategies: list[Strategy] = []
        for record in strategy_records:
            bound = first_of(record, "holdingId", "holding_id")
            quantity = None if bound is None else quantities.get(str(bound))
            try:
                strategies.append(Strategy.from_dict(record, quantity=quantity))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping strategy %s (unreadable): %s", record.get("id", "?"), exc)

        return Snapshot(
            name=str(data.get("name") or path.stem),
            portfolio_id=str(data.get("portfolio_id") or data.get("portfolioId") or ""),
            holdings=holdings,
            strategies=strategies,
            applied_strategies={str(k): str(v or NO_STRATEGY) for k, v in applied_raw.items()},
        )

    def valid_strategies(self, strategies: list[Strategy]) -> list[Strategy]:
        """Strategies that pass validation; the rest are logged and dropped."""
        kept: list[Strategy] = []
        for strategy in strategies:
            result = validate_strategy(strategy, self._config.percent_tolerance)
            if result.ok:
                kept.append(strategy)
            else:
                logger.warning(
                    "Skipping strategy %s (%s): %s",
                    strategy.id or strategy.symbol,
                    result.rule.value if result.rule else "invalid",
                    result.message,
                )
        return kept

    def forecast(
        self,
        snapshot: Snapshot,
        strategies: Mapping[str, Strategy] | None = None,
    ) -> Forecast:
        """Build the forecast for *snapshot*.

        *strategies* is the validated index to price with; by default it is
        built from ``snapshot.strategies`` via :meth:`valid_strategies`.
        """
        if strategies is None:
            strategies = {s.id: s for s in self.valid_strategies(snapshot.strategies)}
        return self._forecasts.build_forecast(
            snapshot.name,
            snapshot.portfolio_id,
            snapshot.holdings,
            snapshot.applied_strategies,
            strategies,
        )

    def run(
        self,
        snapshot_path: Path,
        out_path: Path | None = None,
        with_alerts: bool = False,
    ) -> dict[str, Any]:
        """Forecast *snapshot_path* and optionally write the report to *out_path*.

        Returns the report dict: the persisted forecast layout, the
        per-holding rows with their tier chain and authoring preview, and
        (with *with_alerts*) the proposed alerts per holding.
        """
        snapshot = self.load_snapshot(snapshot_path)
        strategies = {s.id: s for s in self.valid_strategies(snapshot.strategies)}
        forecast = self.forecast(snapshot, strategies)

        positions: list[dict[str, Any]] = []
        alerts: dict[str, list[dict[str, object]]] = {}
        for holding, row in zip(snapshot.holdings, forecast.positions):
            entry: dict[str, Any] = {"symbol": holding.symbol, **row.to_dict()}
            strategy = strategies.get(row.strategy_id) if row.strategy_id else None
            if strategy is not None:
                entry["tiers"] = [t.to_dict() for t in project(holding, strategy)]
                entry["preview"] = preview(holding, strategy, self._config.preview_mode).to_dict()
                if with_alerts:
                    alerts[holding.id] = [
                        a.to_dict() for a in self._alerts.derive_alerts(holding, strategy)
                    ]
            positions.append(entry)

        report: dict[str, Any] = {"forecast": forecast.to_dict(), "positions": positions}
        if with_alerts:
            report["alerts"] = alerts

        if out_path is not None and self._store.write_json(out_path, report):
            logger.info("Forecast written to %s", out_path)
        return report


def _records(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    raw = data.get(key) or []
    if not isinstance(raw, list):
        raise TypeError(f"{key} must be a list")
    return [r for r in raw if isinstance(r, dict)]
