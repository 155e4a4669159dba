"""Take-profit alert derivation and evaluation.

Proposes one :class:`TPAlert` per tier and evaluates alerts against a live
price.  Proposals never overwrite trigger settings that already exist for
a tier; the persistence layer owns those once they are stored.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence

from exitstrat.core.config import EngineConfig
from exitstrat.engine.tier_engine import project
from exitstrat.models.alert import AlertCheck, BeforeTPTrigger, TPAlert, TPReachedTrigger
from exitstrat.models.holding import Holding
from exitstrat.models.strategy import Strategy, percentage_to_tokens

logger = logging.getLogger(__name__)


class AlertEngine:
    """Alert threshold logic.

    Parameters
    ----------
    config:
        Engine configuration; supplies the default trigger settings.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or EngineConfig()

    # -- derivation -----------------------------------------------------------

    def default_before_tp(self) -> BeforeTPTrigger:
        return BeforeTPTrigger(
            enabled=self._config.before_tp_enabled,
            value=self._config.before_tp_value,
            type=self._config.before_tp_type,
        )

    def default_tp_reached(self) -> TPReachedTrigger:
        return TPReachedTrigger(enabled=self._config.tp_reached_enabled)

    def derive_alerts(
        self,
        holding: Holding,
        strategy: Strategy,
        existing: Mapping[int, TPAlert] | Iterable[TPAlert] | None = None,
    ) -> list[TPAlert]:
        """Propose one alert per tier of *strategy* applied to *holding*.

        Figures are computed for each tier in isolation against the
        original quantity:

        - ``sell_quantity = quantity * sell_percentage / 100``
        - ``projected_amount = target_price * sell_quantity``
        - ``remaining_value = (quantity - sell_quantity) * target_price``

        Tiers present in *existing* (keyed by tier order) keep their
        trigger settings; only the others receive the configured defaults.
        """
        tiers = project(holding, strategy)
        if not tiers:
            return []

        prior = _by_order(existing)
        quantity = holding.quantity
        alerts: list[TPAlert] = []

        for target, tier in zip(strategy.ordered_targets, tiers):
            sell_quantity = percentage_to_tokens(target.sell_percentage, quantity)
            previous = prior.get(target.order)
            alerts.append(
                TPAlert(
                    order=target.order,
                    target_price=tier.target_price,
                    sell_quantity=sell_quantity,
                    projected_amount=tier.target_price * sell_quantity,
                    remaining_value=(quantity - sell_quantity) * tier.target_price,
                    before_tp=previous.before_tp if previous else self.default_before_tp(),
                    tp_reached=previous.tp_reached if previous else self.default_tp_reached(),
                )
            )

        return alerts

    # -- editing --------------------------------------------------------------

    def set_before_tp(
        self,
        alerts: Sequence[TPAlert],
        order: int,
        enabled: bool | None = None,
        value: float | None = None,
        type: str | None = None,
    ) -> list[TPAlert]:
        """Return *alerts* with only tier *order*'s ``before_tp`` changed."""

        def _edit(alert: TPAlert) -> TPAlert:
            current = alert.before_tp
            return alert.with_triggers(
                before_tp=BeforeTPTrigger(
                    enabled=current.enabled if enabled is None else enabled,
                    value=current.value if value is None else value,
                    type=current.type if type is None else type,
                )
            )

        return _edit_one(alerts, order, _edit)

    def set_tp_reached(
        self,
        alerts: Sequence[TPAlert],
        order: int,
        enabled: bool,
    ) -> list[TPAlert]:
        """Return *alerts* with only tier *order*'s ``tp_reached`` changed."""
        return _edit_one(
            alerts,
            order,
            lambda alert: alert.with_triggers(tp_reached=TPReachedTrigger(enabled=enabled)),
        )

    # -- evaluation -----------------------------------------------------------

    @staticmethod
    def check(alert: TPAlert, current_price: float) -> AlertCheck:
        """Evaluate *alert* at *current_price*.

        ``tp_reached`` fires at or above the target price.  ``before_tp``
        fires in the band between the warning price and the target.
        Disabled triggers never fire.
        """
        reached = current_price >= alert.target_price
        approaching = alert.warning_price <= current_price < alert.target_price
        return AlertCheck(
            order=alert.order,
            before_tp=alert.before_tp.enabled and approaching,
            tp_reached=alert.tp_reached.enabled and reached,
        )

    def check_all(self, alerts: Iterable[TPAlert], current_price: float) -> list[AlertCheck]:
        """Evaluate every alert and return the checks that fired."""
        fired = [c for c in (self.check(a, current_price) for a in alerts) if c.any]
        for c in fired:
            logger.debug(
                "Tier %d alert fired at %.8g (before_tp=%s tp_reached=%s)",
                c.order,
                current_price,
                c.before_tp,
                c.tp_reached,
            )
        return fired


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _by_order(existing: Mapping[int, TPAlert] | Iterable[TPAlert] | None) -> dict[int, TPAlert]:
    if existing is None:
        return {}
    if isinstance(existing, Mapping):
        return dict(existing)
    return {a.order: a for a in existing}


def _edit_one(
    alerts: Sequence[TPAlert],
    order: int,
    edit: Callable[[TPAlert], TPAlert],
) -> list[TPAlert]:
    if not any(a.order == order for a in alerts):
        logger.warning("No alert for tier %d; nothing changed", order)
        return list(alerts)
    return [edit(a) if a.order == order else a for a in alerts]
