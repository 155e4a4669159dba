"""Shared pytest fixtures for exitstrat tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from exitstrat.core.config import EngineConfig
from exitstrat.core.storage import FileStore
from exitstrat.models.holding import Holding
from exitstrat.models.strategy import ProfitTarget, Strategy, TargetType


@pytest.fixture
def file_store() -> FileStore:
    """Return a fresh FileStore instance."""
    return FileStore()


@pytest.fixture
def sample_config() -> EngineConfig:
    """Return an EngineConfig with known test values (all defaults)."""
    return EngineConfig()


@pytest.fixture
def btc_holding() -> Holding:
    """10 tokens bought at 100, quoted at 120."""
    return Holding(
        id="h-btc",
        symbol="BTC",
        quantity=10.0,
        average_price=100.0,
        current_price=120.0,
    )


@pytest.fixture
def one_tier_strategy() -> Strategy:
    """Sell half at +50%."""
    return Strategy(
        id="s-one",
        symbol="BTC",
        name="Half at +50%",
        targets=(
            ProfitTarget(order=1, target_type=TargetType.PERCENTAGE, target_value=50.0, sell_percentage=50.0),
        ),
    )


@pytest.fixture
def two_tier_strategy() -> Strategy:
    """Sell half at +50%, the other half at +100%."""
    return Strategy(
        id="s-two",
        symbol="BTC",
        name="Ladder",
        targets=(
            ProfitTarget(order=1, target_type=TargetType.PERCENTAGE, target_value=50.0, sell_percentage=50.0),
            ProfitTarget(order=2, target_type=TargetType.PERCENTAGE, target_value=100.0, sell_percentage=50.0),
        ),
    )


@pytest.fixture
def sample_settings_dict() -> dict[str, Any]:
    """Return a raw exitstrat_settings.json-style dict for config loading."""
    return {
        "before_tp_enabled": True,
        "before_tp_value": -5.0,
        "before_tp_type": "percentage",
        "tp_reached_enabled": False,
        "forecast_valuation": "market",
        "preview_valuation": "last_target",
        "percent_tolerance": 1e-6,
    }


@pytest.fixture
def settings_file(tmp_path: Path, sample_settings_dict: dict[str, Any]) -> Path:
    """Write a sample exitstrat_settings.json and return its path."""
    p = tmp_path / "exitstrat_settings.json"
    p.write_text(json.dumps(sample_settings_dict, indent=2), encoding="utf-8")
    return p


@pytest.fixture
def sample_snapshot_dict() -> dict[str, Any]:
    """A portfolio with one planned, one unplanned and one dangling holding."""
    return {
        "name": "Cycle top",
        "portfolio_id": "p-main",
        "holdings": [
            {"id": "h-btc", "token": {"symbol": "btc"}, "quantity": 10, "averagePrice": 100, "currentPrice": 120},
            {"id": "h-eth", "symbol": "ETH", "quantity": 5, "averagePrice": 100, "investedAmount": 500},
            {"id": "h-sol", "symbol": "SOL", "quantity": 20, "average_price": 10, "invested_amount": 210},
        ],
        "strategies": [
            {
                "id": "s-two",
                "tokenSymbol": "BTC",
                "name": "Ladder",
                "profitTargets": [
                    {"order": 1, "targetType": "percentage", "targetValue": 50, "sellPercentage": 50},
                    {"order": 2, "targetType": "percentage", "targetValue": 100, "sellPercentage": 50},
                ],
            },
            {
                "id": "s-bad",
                "symbol": "ETH",
                "steps": [
                    {"targetType": "exact_price", "targetValue": 200, "sellPercentage": 70},
                    {"targetType": "exact_price", "targetValue": 300, "sellPercentage": 70},
                ],
            },
        ],
        "applied_strategies": {"h-btc": "s-two", "h-eth": "s-bad", "h-sol": "s-deleted"},
    }


@pytest.fixture
def snapshot_file(tmp_path: Path, sample_snapshot_dict: dict[str, Any]) -> Path:
    p = tmp_path / "snapshot.json"
    p.write_text(json.dumps(sample_snapshot_dict, indent=2), encoding="utf-8")
    return p
