"""Shared constants for exitstrat.

Numbers the validator and the projection chain must agree on live here.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Sell-fraction budget: a strategy never sells more than the original bag.
# ---------------------------------------------------------------------------
MAX_SELL_PERCENTAGE: float = 100.0
MIN_SELL_PERCENTAGE: float = 0.0

# Slack allowed when summing float percentages (33.33 + 33.33 + 33.34 etc.)
DEFAULT_PERCENT_TOLERANCE: float = 1e-9

# ---------------------------------------------------------------------------
# Target / trigger vocabularies
# ---------------------------------------------------------------------------
TARGET_TYPE_PERCENTAGE: str = "percentage"
TARGET_TYPE_PRICE: str = "price"

TRIGGER_TYPE_PERCENTAGE: str = "percentage"
TRIGGER_TYPE_ABSOLUTE: str = "absolute"

# Assignment value meaning "no strategy applied to this holding".
NO_STRATEGY: str = "none"

# ---------------------------------------------------------------------------
# Alert defaults (proposed for tiers that have no persisted alert yet)
# ---------------------------------------------------------------------------
DEFAULT_BEFORE_TP_ENABLED: bool = True
DEFAULT_BEFORE_TP_VALUE: float = -10.0  # warn 10% below the target price
DEFAULT_BEFORE_TP_TYPE: str = TRIGGER_TYPE_PERCENTAGE
DEFAULT_TP_REACHED_ENABLED: bool = True

# ---------------------------------------------------------------------------
# Valuation bases for the unsold remainder
# ---------------------------------------------------------------------------
VALUATION_MARKET: str = "market"
VALUATION_LAST_TARGET: str = "last_target"
VALUATION_COST: str = "cost"

DEFAULT_FORECAST_VALUATION: str = VALUATION_MARKET
DEFAULT_PREVIEW_VALUATION: str = VALUATION_LAST_TARGET

# ---------------------------------------------------------------------------
# Settings file read by the forecast entry point
# ---------------------------------------------------------------------------
SETTINGS_FILENAME: str = "exitstrat_settings.json"

# ---------------------------------------------------------------------------
# Logging for the forecast entry point
# ---------------------------------------------------------------------------
LOG_LEVELS: tuple[str, ...] = ("debug", "info", "warning", "error")
DEFAULT_LOG_LEVEL: str = "info"
DEFAULT_LOG_TO_FILE: bool = True
