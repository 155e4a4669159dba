"""Validated engine configuration loaded from ``exitstrat_settings.json``."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from exitstrat.core.constants import (
    DEFAULT_BEFORE_TP_ENABLED,
    DEFAULT_BEFORE_TP_TYPE,
    DEFAULT_BEFORE_TP_VALUE,
    DEFAULT_FORECAST_VALUATION,
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOG_TO_FILE,
    DEFAULT_PERCENT_TOLERANCE,
    DEFAULT_PREVIEW_VALUATION,
    DEFAULT_TP_REACHED_ENABLED,
    LOG_LEVELS,
    TRIGGER_TYPE_ABSOLUTE,
    TRIGGER_TYPE_PERCENTAGE,
)
from exitstrat.core.exceptions import ConfigError
from exitstrat.models._coerce import to_bool
from exitstrat.models.results import ValuationMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """Immutable snapshot of the engine configuration.

    Build from an ``exitstrat_settings.json`` file via :meth:`from_file`, or
    construct directly for testing.
    """

    before_tp_enabled: bool = DEFAULT_BEFORE_TP_ENABLED
    before_tp_value: float = DEFAULT_BEFORE_TP_VALUE
    before_tp_type: str = DEFAULT_BEFORE_TP_TYPE
    tp_reached_enabled: bool = DEFAULT_TP_REACHED_ENABLED
    forecast_valuation: str = DEFAULT_FORECAST_VALUATION
    preview_valuation: str = DEFAULT_PREVIEW_VALUATION
    percent_tolerance: float = DEFAULT_PERCENT_TOLERANCE
    log_level: str = DEFAULT_LOG_LEVEL
    log_to_file: bool = DEFAULT_LOG_TO_FILE

    # -- factory ----------------------------------------------------------

    @classmethod
    def from_file(cls, path: Path) -> EngineConfig:
        """Load from a settings file with validation.

        Missing or unparseable values fall back to defaults.  Validation
        warnings are logged but never raise.
        """
        try:
            raw = path.read_text(encoding="utf-8")
            data: dict[str, Any] = json.loads(raw) or {}
            if not isinstance(data, dict):
                data = {}
        except (OSError, json.JSONDecodeError, TypeError) as exc:
            logger.warning("Could not read config from %s: %s", path, exc)
            data = {}

        modes = tuple(m.value for m in ValuationMode)
        cfg = cls(
            before_tp_enabled=to_bool(data.get("before_tp_enabled"), DEFAULT_BEFORE_TP_ENABLED),
            before_tp_value=_safe_float(data.get("before_tp_value"), DEFAULT_BEFORE_TP_VALUE),
            before_tp_type=_parse_choice(
                data.get("before_tp_type"),
                (TRIGGER_TYPE_PERCENTAGE, TRIGGER_TYPE_ABSOLUTE),
                DEFAULT_BEFORE_TP_TYPE,
            ),
            tp_reached_enabled=to_bool(data.get("tp_reached_enabled"), DEFAULT_TP_REACHED_ENABLED),
            forecast_valuation=_parse_choice(
                data.get("forecast_valuation"), modes, DEFAULT_FORECAST_VALUATION
            ),
            preview_valuation=_parse_choice(
                data.get("preview_valuation"), modes, DEFAULT_PREVIEW_VALUATION
            ),
            percent_tolerance=max(
                0.0, _safe_float(data.get("percent_tolerance"), DEFAULT_PERCENT_TOLERANCE)
            ),
            log_level=_parse_choice(data.get("log_level"), LOG_LEVELS, DEFAULT_LOG_LEVEL),
            log_to_file=to_bool(data.get("log_to_file"), DEFAULT_LOG_TO_FILE),
        )

        errors = cfg.validate()
        for err in errors:
            logger.warning("Config validation: %s", err)

        return cfg

    # -- resolved modes ---------------------------------------------------

    @property
    def forecast_mode(self) -> ValuationMode:
        """Valuation basis for portfolio forecasts.

        Raises :class:`~exitstrat.core.exceptions.ConfigError` for an
        unknown mode string.
        """
        return ValuationMode.parse(self.forecast_valuation)

    @property
    def preview_mode(self) -> ValuationMode:
        """Valuation basis for strategy-authoring previews."""
        return ValuationMode.parse(self.preview_valuation)

    # -- validation -------------------------------------------------------

    def validate(self) -> list[str]:
        """Return a list of human-readable validation warnings (empty = OK)."""
        errors: list[str] = []
        if self.before_tp_value > 0:
            errors.append(f"before_tp_value={self.before_tp_value} must be <= 0.")
        if self.before_tp_type not in (TRIGGER_TYPE_PERCENTAGE, TRIGGER_TYPE_ABSOLUTE):
            errors.append(f"before_tp_type={self.before_tp_type!r} is not a trigger type.")
        if (
            self.before_tp_type == TRIGGER_TYPE_PERCENTAGE
            and self.before_tp_value <= -100.0
        ):
            errors.append(f"before_tp_value={self.before_tp_value} must be > -100 for percentages.")
        for label, mode in (
            ("forecast_valuation", self.forecast_valuation),
            ("preview_valuation", self.preview_valuation),
        ):
            try:
                ValuationMode.parse(mode)
            except ConfigError as exc:
                errors.append(f"{label}: {exc}")
        if self.percent_tolerance < 0:
            errors.append(f"percent_tolerance={self.percent_tolerance} must be >= 0.")
        if self.log_level not in LOG_LEVELS:
            errors.append(f"log_level={self.log_level!r} must be one of {', '.join(LOG_LEVELS)}.")
        return errors


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _safe_float(value: Any, default: float) -> float:
    try:
        return float(str(value).replace("%", "").strip())
    except (TypeError, ValueError):
        return default


def _parse_choice(value: Any, choices: tuple[str, ...], default: str) -> str:
    text = str(value or "").strip().lower()
    return text if text in choices else default
