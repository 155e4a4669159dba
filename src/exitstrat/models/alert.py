"""Take-profit alert data models.

A :class:`TPAlert` holds the figures shown next to a tier's alert toggles
plus two independently switchable triggers:

- ``before_tp``: warn when price gets close to the target (a negative offset,
  in percent or absolute price units),
- ``tp_reached``: notify when the target price is hit.

The alert-persistence layer assigns ids and stores activation state; this
module only describes what gets proposed and evaluated.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from exitstrat.core.constants import (
    DEFAULT_BEFORE_TP_ENABLED,
    DEFAULT_BEFORE_TP_TYPE,
    DEFAULT_BEFORE_TP_VALUE,
    DEFAULT_TP_REACHED_ENABLED,
    TRIGGER_TYPE_ABSOLUTE,
    TRIGGER_TYPE_PERCENTAGE,
)
from exitstrat.models._coerce import first_of, to_bool, to_float, to_int

_VALID_TRIGGER_TYPES = frozenset({TRIGGER_TYPE_PERCENTAGE, TRIGGER_TYPE_ABSOLUTE})


@dataclass(frozen=True, slots=True)
class BeforeTPTrigger:
    enabled: bool = DEFAULT_BEFORE_TP_ENABLED
    value: float = DEFAULT_BEFORE_TP_VALUE
    type: str = DEFAULT_BEFORE_TP_TYPE

    def validate(self) -> list[str]:
        errors: list[str] = []
        if self.type not in _VALID_TRIGGER_TYPES:
            errors.append(f"before_tp.type={self.type!r} must be 'percentage' or 'absolute'.")
        if self.value > 0:
            errors.append(f"before_tp.value={self.value} must be <= 0.")
        return errors


@dataclass(frozen=True, slots=True)
class TPReachedTrigger:
    enabled: bool = DEFAULT_TP_REACHED_ENABLED


@dataclass(frozen=True, slots=True)
class TPAlert:
    """Alert proposal for one tier.

    Parameters
    ----------
    order:
        Order of the tier this alert watches.
    target_price:
        Tier target price.
    sell_quantity:
        Tokens the tier sells, as a share of the original quantity.
    projected_amount:
        ``target_price * sell_quantity``.
    remaining_value:
        Value of the rest of the original position at the target price,
        looking at this tier in isolation.
    before_tp, tp_reached:
        Trigger settings.
    """

    order: int
    target_price: float
    sell_quantity: float
    projected_amount: float
    remaining_value: float
    before_tp: BeforeTPTrigger = field(default_factory=BeforeTPTrigger)
    tp_reached: TPReachedTrigger = field(default_factory=TPReachedTrigger)

    @property
    def warning_price(self) -> float:
        """Price at which the ``before_tp`` warning fires."""
        if self.before_tp.type == TRIGGER_TYPE_ABSOLUTE:
            return self.target_price + self.before_tp.value
        return self.target_price * (1.0 + self.before_tp.value / 100.0)

    def with_triggers(
        self,
        before_tp: BeforeTPTrigger | None = None,
        tp_reached: TPReachedTrigger | None = None,
    ) -> TPAlert:
        return replace(
            self,
            before_tp=self.before_tp if before_tp is None else before_tp,
            tp_reached=self.tp_reached if tp_reached is None else tp_reached,
        )

    # -- serialisation --------------------------------------------------------

    def to_dict(self) -> dict[str, object]:
        """Flat layout used by the alert-persistence layer."""
        return {
            "order": self.order,
            "targetPrice": self.target_price,
            "sellQuantity": self.sell_quantity,
            "projectedAmount": self.projected_amount,
            "remainingValue": self.remaining_value,
            "beforeTPEnabled": self.before_tp.enabled,
            "beforeTPValue": self.before_tp.value,
            "beforeTPType": self.before_tp.type,
            "tpReachedEnabled": self.tp_reached.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TPAlert:
        """Rebuild an alert from the flat layout or nested trigger objects."""
        before = data.get("beforeTP")
        before = before if isinstance(before, dict) else {}
        reached = data.get("tpReached")
        reached = reached if isinstance(reached, dict) else {}

        before_enabled = first_of(data, "beforeTPEnabled")
        if before_enabled is None:
            before_enabled = before.get("enabled", DEFAULT_BEFORE_TP_ENABLED)
        reached_enabled = first_of(data, "tpReachedEnabled")
        if reached_enabled is None:
            reached_enabled = reached.get("enabled", DEFAULT_TP_REACHED_ENABLED)
        before_value = first_of(data, "beforeTPValue")
        if before_value is None:
            before_value = before.get("value")

        return cls(
            order=to_int(data.get("order"), 1),
            target_price=to_float(data.get("targetPrice")),
            sell_quantity=to_float(data.get("sellQuantity")),
            projected_amount=to_float(data.get("projectedAmount")),
            remaining_value=to_float(data.get("remainingValue")),
            before_tp=BeforeTPTrigger(
                enabled=to_bool(before_enabled, DEFAULT_BEFORE_TP_ENABLED),
                value=to_float(before_value, DEFAULT_BEFORE_TP_VALUE),
                type=str(
                    first_of(data, "beforeTPType") or before.get("type") or DEFAULT_BEFORE_TP_TYPE
                ),
            ),
            tp_reached=TPReachedTrigger(
                enabled=to_bool(reached_enabled, DEFAULT_TP_REACHED_ENABLED)
            ),
        )

    # -- validation -----------------------------------------------------------

    def validate(self) -> list[str]:
        """Return a list of validation errors (empty means valid)."""
        errors: list[str] = []
        if self.order < 1:
            errors.append(f"order={self.order} must be >= 1.")
        if self.target_price < 0:
            errors.append(f"target_price={self.target_price} must be >= 0.")
        if self.sell_quantity < 0:
            errors.append(f"sell_quantity={self.sell_quantity} must be >= 0.")
        errors.extend(self.before_tp.validate())
        return errors


@dataclass(frozen=True, slots=True)
class AlertCheck:
    """Which triggers of one alert fire at a given price."""

    order: int
    before_tp: bool = False
    tp_reached: bool = False

    @property
    def any(self) -> bool:
        return self.before_tp or self.tp_reached
