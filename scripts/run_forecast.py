#!/usr/bin/env python3
"""Entry point for the exitstrat forecast runner.

Usage::

    python scripts/run_forecast.py snapshot.json                 # print summary
    python scripts/run_forecast.py snapshot.json --out forecast.json --alerts
    python scripts/run_forecast.py snapshot.json -v --no-log-file
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


def main(argv: list[str] | None = None) -> int:
    from exitstrat.core.config import EngineConfig
    from exitstrat.core.constants import LOG_LEVELS, SETTINGS_FILENAME
    from exitstrat.core.exceptions import ExitStratError
    from exitstrat.core.logging_setup import configure_logging
    from exitstrat.engine.runner import ForecastRunner

    parser = argparse.ArgumentParser(description="Simulate take-profit strategies over a portfolio.")
    parser.add_argument("snapshot", type=Path, help="Holdings/strategies snapshot (JSON)")
    parser.add_argument("--out", type=Path, default=None, help="Write the forecast report here")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path.cwd() / SETTINGS_FILENAME,
        help=f"Engine settings file (default: ./{SETTINGS_FILENAME})",
    )
    parser.add_argument("--alerts", action="store_true", help="Include proposed TP alerts")
    parser.add_argument("--log-dir", type=Path, default=Path.cwd() / "logs")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default=None, help="Overrides log_level")
    parser.add_argument("--no-log-file", action="store_true", help="Console logging only")
    parser.add_argument("-v", "--verbose", action="store_true", help="Same as --log-level debug")
    args = parser.parse_args(argv)

    config = EngineConfig.from_file(args.config) if args.config.exists() else EngineConfig()

    level = "debug" if args.verbose else (args.log_level or config.log_level)
    logger = configure_logging(
        level,
        log_dir=args.log_dir,
        to_file=config.log_to_file and not args.no_log_file,
    )

    runner = ForecastRunner(config)
    try:
        report = runner.run(args.snapshot, out_path=args.out, with_alerts=args.alerts)
    except ExitStratError as exc:
        logger.error("Forecast failed: %s", exc)
        return 1

    summary = report["forecast"]["summary"]
    print(f"Holdings:        {summary['tokenCount']}")
    print(f"Total invested:  {summary['totalInvested']:,.2f}")
    print(f"Total collected: {summary['totalCollected']:,.2f}")
    print(f"Remaining value: {summary['remainingTokensValue']:,.2f}")
    print(f"Total profit:    {summary['totalProfit']:,.2f} ({summary['returnPercentage']:.2f}%)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
