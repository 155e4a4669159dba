"""Integration tests for ForecastRunner and the run_forecast entry point.

Drives the whole pipeline from a snapshot file on disk: record
normalisation, strategy validation, projection, aggregation, alert
proposals and the atomic report write.
"""

from __future__ import annotations

import importlib.util
import json
import logging
from collections.abc import Iterator
from pathlib import Path
from types import ModuleType
from typing import Any

import pytest

from exitstrat.core.config import EngineConfig
from exitstrat.core.exceptions import DataCorruptionError, SnapshotError
from exitstrat.core.logging_setup import LOG_FILENAME, reset_logging
from exitstrat.engine.runner import ForecastRunner

_SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "run_forecast.py"


@pytest.fixture
def runner() -> ForecastRunner:
    return ForecastRunner()


def _write(tmp_path: Path, data: Any, name: str = "snap.json") -> Path:
    p = tmp_path / name
    p.write_text(json.dumps(data), encoding="utf-8")
    return p


# ---------------------------------------------------------------------------
# Snapshot loading
# ---------------------------------------------------------------------------


class TestLoadSnapshot:
    def test_normalises_records(self, runner: ForecastRunner, snapshot_file: Path) -> None:
        snap = runner.load_snapshot(snapshot_file)
        assert snap.name == "Cycle top"
        assert snap.portfolio_id == "p-main"
        assert [h.symbol for h in snap.holdings] == ["BTC", "ETH", "SOL"]
        assert snap.holdings[2].invested_amount == 210.0
        assert [s.id for s in snap.strategies] == ["s-two", "s-bad"]
        assert snap.strategies[1].ordered_targets[0].order == 1
        assert snap.applied_strategies["h-sol"] == "s-deleted"

    def test_defaults(self, runner: ForecastRunner, tmp_path: Path) -> None:
        p = _write(tmp_path, {"holdings": [], "appliedStrategies": {"h1": None}}, "bull_run.json")
        snap = runner.load_snapshot(p)
        assert snap.name == "bull_run"
        assert snap.portfolio_id == ""
        assert snap.strategies == []
        assert snap.applied_strategies == {"h1": "none"}

    def test_missing_file(self, runner: ForecastRunner, tmp_path: Path) -> None:
        with pytest.raises(SnapshotError):
            runner.load_snapshot(tmp_path / "nope.json")

    @pytest.mark.parametrize(
        "data",
        [
            [1, 2, 3],
            {"holdings": {"id": "h1"}},
            {"applied_strategies": ["h1", "s1"]},
        ],
    )
    def test_malformed(self, runner: ForecastRunner, tmp_path: Path, data: Any) -> None:
        with pytest.raises(SnapshotError):
            runner.load_snapshot(_write(tmp_path, data))

    def test_unreadable_strategy_skipped(
        self, runner: ForecastRunner, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        p = _write(
            tmp_path,
            {
                "strategies": [
                    {"id": "s-moon", "symbol": "BTC", "profitTargets": [{"targetType": "moon"}]},
                    {"id": "s-ok", "symbol": "BTC", "profitTargets": []},
                ]
            },
        )
        with caplog.at_level(logging.WARNING, logger="exitstrat.engine.runner"):
            snap = runner.load_snapshot(p)
        assert [s.id for s in snap.strategies] == ["s-ok"]
        assert "Skipping strategy s-moon (unreadable)" in caplog.text

    def test_token_count_tiers(self, runner: ForecastRunner, tmp_path: Path) -> None:
        p = _write(
            tmp_path,
            {
                "holdings": [{"id": "h1", "symbol": "BTC", "quantity": 8, "averagePrice": 100}],
                "strategies": [
                    {
                        "id": "s1",
                        "holdingId": "h1",
                        "symbol": "BTC",
                        "profitTargets": [
                            {"targetType": "percentage", "targetValue": 50, "sellTokens": 2},
                            {"targetType": "percentage", "targetValue": 100, "sellQuantity": 6},
                        ],
                    },
                    # unbound and no baseQuantity: nothing to convert against
                    {
                        "id": "s2",
                        "symbol": "BTC",
                        "profitTargets": [
                            {"targetType": "percentage", "targetValue": 50, "sellTokens": 2},
                        ],
                    },
                ],
            },
        )
        snap = runner.load_snapshot(p)
        assert [s.id for s in snap.strategies] == ["s1"]
        sells = [t.sell_percentage for t in snap.strategies[0].ordered_targets]
        assert sells == pytest.approx([25.0, 75.0])

    def test_snapshot_error_is_data_corruption(self) -> None:
        assert issubclass(SnapshotError, DataCorruptionError)

    def test_invalid_holding_logged(
        self, runner: ForecastRunner, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        p = _write(tmp_path, {"holdings": [{"id": "h1", "symbol": "BTC", "quantity": -1}]})
        with caplog.at_level(logging.WARNING, logger="exitstrat.engine.runner"):
            runner.load_snapshot(p)
        assert "quantity=-1.0" in caplog.text


# ---------------------------------------------------------------------------
# Full run
# ---------------------------------------------------------------------------


class TestRun:
    def test_summary(self, runner: ForecastRunner, snapshot_file: Path) -> None:
        report = runner.run(snapshot_file)
        summary = report["forecast"]["summary"]
        # BTC is priced (1000 in, 1750 out); ETH and SOL pass through at 500 and 210
        assert summary["totalInvested"] == pytest.approx(1710.0)
        assert summary["totalCollected"] == pytest.approx(1750.0)
        assert summary["remainingTokensValue"] == pytest.approx(710.0)
        assert summary["totalProfit"] == pytest.approx(750.0)
        assert summary["returnPercentage"] == pytest.approx(750.0 / 1710.0 * 100.0)
        assert summary["tokenCount"] == 3

    def test_effective_assignments(self, runner: ForecastRunner, snapshot_file: Path) -> None:
        report = runner.run(snapshot_file)
        assert report["forecast"]["appliedStrategies"] == {
            "h-btc": "s-two",
            "h-eth": "none",
            "h-sol": "none",
        }
        assert report["forecast"]["name"] == "Cycle top"
        assert report["forecast"]["portfolioId"] == "p-main"

    def test_invalid_strategy_skipped(
        self, runner: ForecastRunner, snapshot_file: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="exitstrat.engine.runner"):
            runner.run(snapshot_file)
        assert "Skipping strategy s-bad (sell_percentage_total)" in caplog.text

    def test_positions(self, runner: ForecastRunner, snapshot_file: Path) -> None:
        positions = runner.run(snapshot_file)["positions"]
        assert [p["symbol"] for p in positions] == ["BTC", "ETH", "SOL"]
        btc, eth, _ = positions
        assert btc["strategyId"] == "s-two"
        assert [t["targetPrice"] for t in btc["tiers"]] == pytest.approx([150.0, 200.0])
        assert btc["tiers"][-1]["remainingTokens"] == pytest.approx(0.0)
        assert btc["preview"]["valuationMode"] == "last_target"
        assert btc["preview"]["netResult"] == pytest.approx(750.0)
        assert eth["strategyId"] is None
        assert eth["valuationMode"] == "cost"
        assert "tiers" not in eth
        assert "preview" not in eth

    def test_preview_mode_from_config(self, snapshot_file: Path, tmp_path: Path) -> None:
        snap = json.loads(snapshot_file.read_text(encoding="utf-8"))
        # one tier only, so half the bag is left to value
        snap["strategies"][0]["profitTargets"].pop()
        p = _write(tmp_path, snap)
        runner = ForecastRunner(EngineConfig(preview_valuation="cost"))
        btc = runner.run(p)["positions"][0]
        assert btc["preview"]["valuationMode"] == "cost"
        assert btc["preview"]["finalRemainingValue"] == pytest.approx(500.0)
        # forecast row still uses the market quote
        assert btc["finalRemainingValue"] == pytest.approx(600.0)

    def test_no_alerts_by_default(self, runner: ForecastRunner, snapshot_file: Path) -> None:
        assert "alerts" not in runner.run(snapshot_file)

    def test_alerts(self, snapshot_file: Path) -> None:
        runner = ForecastRunner(EngineConfig(before_tp_value=-5.0, tp_reached_enabled=False))
        alerts = runner.run(snapshot_file, with_alerts=True)["alerts"]
        assert list(alerts) == ["h-btc"]
        first, second = alerts["h-btc"]
        assert first["targetPrice"] == pytest.approx(150.0)
        assert first["beforeTPValue"] == -5.0
        assert first["tpReachedEnabled"] is False
        assert second["projectedAmount"] == pytest.approx(1000.0)

    def test_writes_report(self, runner: ForecastRunner, snapshot_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "out" / "forecast.json"
        report = runner.run(snapshot_file, out_path=out, with_alerts=True)
        assert out.exists()
        assert json.loads(out.read_text(encoding="utf-8")) == report

    def test_forecast_object(self, runner: ForecastRunner, snapshot_file: Path) -> None:
        forecast = runner.forecast(runner.load_snapshot(snapshot_file))
        assert forecast.has_strategy
        assert len(forecast.positions) == 3
        assert forecast.summary.total_profit == pytest.approx(750.0)

    def test_forecast_matches_run(self, runner: ForecastRunner, snapshot_file: Path) -> None:
        forecast = runner.forecast(runner.load_snapshot(snapshot_file))
        assert runner.run(snapshot_file)["forecast"] == forecast.to_dict()

    def test_unreadable_strategy_passes_through(
        self, runner: ForecastRunner, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        p = _write(
            tmp_path,
            {
                "holdings": [
                    {"id": "h1", "symbol": "BTC", "quantity": 10, "averagePrice": 100},
                    {"id": "h2", "symbol": "ETH", "quantity": 4, "averagePrice": 50},
                ],
                "strategies": [
                    {
                        "id": "s1",
                        "symbol": "BTC",
                        "profitTargets": [
                            {"targetType": "percentage", "targetValue": 100, "sellPercentage": 100},
                        ],
                    },
                    {
                        "id": "s2",
                        "symbol": "ETH",
                        "profitTargets": [
                            {"targetType": "trailing", "targetValue": 10, "sellPercentage": 100},
                        ],
                    },
                ],
                "applied_strategies": {"h1": "s1", "h2": "s2"},
            },
        )
        with caplog.at_level(logging.WARNING, logger="exitstrat.engine.runner"):
            report = runner.run(p)
        assert "Skipping strategy s2 (unreadable)" in caplog.text

        forecast = report["forecast"]
        assert forecast["summary"]["tokenCount"] == 2
        assert forecast["appliedStrategies"] == {"h1": "s1", "h2": "none"}
        h1, h2 = report["positions"]
        assert h1["strategyId"] == "s1"
        assert h1["totalCollected"] == pytest.approx(2000.0)
        assert h2["strategyId"] is None
        assert h2["finalRemainingValue"] == pytest.approx(200.0)
        # 1000 + 200 invested; 2000 collected plus 200 still held at cost
        assert forecast["summary"]["totalProfit"] == pytest.approx(1000.0)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


@pytest.fixture
def run_forecast() -> Iterator[ModuleType]:
    spec = importlib.util.spec_from_file_location("run_forecast", _SCRIPT)
    assert spec is not None and spec.loader is not None
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    yield mod
    # main() attaches handlers to the package logger; detach them again
    reset_logging()


class TestMain:
    def test_success(
        self,
        run_forecast: ModuleType,
        snapshot_file: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        out = tmp_path / "report.json"
        code = run_forecast.main(
            [
                str(snapshot_file),
                "--out",
                str(out),
                "--config",
                str(tmp_path / "missing_settings.json"),
                "--log-dir",
                str(tmp_path / "logs"),
            ]
        )
        assert code == 0
        assert out.exists()
        printed = capsys.readouterr().out
        assert "Holdings:        3" in printed
        assert "Total profit:    750.00" in printed

    def test_config_file_used(
        self,
        run_forecast: ModuleType,
        snapshot_file: Path,
        settings_file: Path,
        tmp_path: Path,
    ) -> None:
        out = tmp_path / "report.json"
        code = run_forecast.main(
            [str(snapshot_file), "--out", str(out), "--alerts", "--config", str(settings_file),
             "--log-dir", str(tmp_path / "logs")]
        )
        assert code == 0
        report = json.loads(out.read_text(encoding="utf-8"))
        assert report["alerts"]["h-btc"][0]["beforeTPValue"] == -5.0

    def test_verbose_writes_debug_to_file(
        self, run_forecast: ModuleType, snapshot_file: Path, tmp_path: Path
    ) -> None:
        logs = tmp_path / "logs"
        code = run_forecast.main(
            [str(snapshot_file), "-v", "--config", str(tmp_path / "none.json"), "--log-dir", str(logs)]
        )
        assert code == 0
        reset_logging()
        text = (logs / LOG_FILENAME).read_text(encoding="utf-8")
        # h-sol points at a strategy that no longer exists
        assert "references missing strategy s-deleted" in text
        assert "Skipping strategy s-bad" in text

    def test_log_level_from_config(
        self, run_forecast: ModuleType, snapshot_file: Path, tmp_path: Path
    ) -> None:
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({"log_level": "error"}), encoding="utf-8")
        logs = tmp_path / "logs"
        assert run_forecast.main(
            [str(snapshot_file), "--config", str(settings), "--log-dir", str(logs)]
        ) == 0
        assert logging.getLogger("exitstrat").level == logging.ERROR
        reset_logging()
        assert "Skipping strategy" not in (logs / LOG_FILENAME).read_text(encoding="utf-8")

    @pytest.mark.parametrize(
        ("settings", "flags"),
        [({"log_to_file": "false"}, []), ({}, ["--no-log-file"])],
    )
    def test_file_logging_off(
        self,
        run_forecast: ModuleType,
        snapshot_file: Path,
        tmp_path: Path,
        settings: dict[str, Any],
        flags: list[str],
    ) -> None:
        cfg = tmp_path / "settings.json"
        cfg.write_text(json.dumps(settings), encoding="utf-8")
        logs = tmp_path / "logs"
        code = run_forecast.main(
            [str(snapshot_file), "--config", str(cfg), "--log-dir", str(logs), *flags]
        )
        assert code == 0
        assert not (logs / LOG_FILENAME).exists()

    def test_bad_snapshot(self, run_forecast: ModuleType, tmp_path: Path) -> None:
        code = run_forecast.main(
            [str(tmp_path / "missing.json"), "--log-dir", str(tmp_path / "logs")]
        )
        assert code == 1
