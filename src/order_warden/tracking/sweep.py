"""Batch re-check of stored orders, reporting risk transitions."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from order_warden.config import SweepConfig
from order_warden.tracking.risk import ensure_utc
from order_warden.tracking.service import TrackingService
from order_warden.types import (
    NormalizedTracking,
    OrderSnapshot,
    RiskLevel,
    RiskTransition,
    TrackingQuery,
    TrackingStatus,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SweepSummary:
    checked: int = 0
    risk_updated: int = 0
    errors: int = 0
    duration_ms: float = 0.0
    results: dict[str, NormalizedTracking] = field(default_factory=dict)
    risk_changes: list[RiskTransition] = field(default_factory=list)

    @property
    def high_risk_alerts(self) -> list[RiskTransition]:
        return [change for change in self.risk_changes if change.new_risk is RiskLevel.RED]

    def to_dict(self, *, max_changes: int = 10) -> dict[str, Any]:
        return {
            "duration": f"{self.duration_ms:.0f}ms",
            "summary": {
                "totalChecked": self.checked,
                "riskUpdated": self.risk_updated,
                "errors": self.errors,
                "highRiskAlerts": len(self.high_risk_alerts),
            },
            "results": {order_id: result.to_dict() for order_id, result in self.results.items()},
            "riskChanges": [change.to_dict() for change in self.risk_changes[:max_changes]],
        }


def select_due_orders(
    orders: Iterable[OrderSnapshot],
    *,
    now: datetime | None = None,
    config: SweepConfig | None = None,
) -> list[OrderSnapshot]:
    """Orders that are not delivered and were not checked recently, oldest first."""
    settings = config or SweepConfig()
    current = ensure_utc(now) if now else datetime.now(timezone.utc)
    cutoff = current - timedelta(hours=settings.min_interval_hours)

    due = [
        order
        for order in orders
        if TrackingStatus.coerce(order.last_status) is not TrackingStatus.DELIVERED
        and (order.last_checked_at is None or ensure_utc(order.last_checked_at) < cutoff)
    ]
    # never-checked orders sort first
    due.sort(
        key=lambda order: (
            order.last_checked_at is not None,
            ensure_utc(order.last_checked_at) if order.last_checked_at else current,
        )
    )
    return due[: settings.max_orders]


class TrackingSweep:
    """Re-checks many orders in sequence.

    One order's failure never stops the sweep. The pause between checks keeps
    request rates under provider limits.
    """

    def __init__(
        self,
        service: TrackingService,
        *,
        config: SweepConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.service = service
        self.config = config or SweepConfig()
        self._sleep = sleep

    def run(self, orders: Iterable[OrderSnapshot]) -> SweepSummary:
        summary = SweepSummary()
        started = time.perf_counter()
        orders = list(orders)
        logger.info(f"Starting tracking sweep over {len(orders)} orders")

        for index, order in enumerate(orders):
            if index and self.config.delay_seconds:
                self._sleep(self.config.delay_seconds)
            try:
                result = self.service.check(TrackingQuery(order.tracking_number, order.carrier))
            except Exception as exc:
                logger.error(f"Error checking order {order.order_id}: {exc}", exc_info=True)
                summary.errors += 1
                continue

            summary.checked += 1
            summary.results[order.order_id] = result
            if order.risk_level != result.risk_level.value:
                summary.risk_updated += 1
                summary.risk_changes.append(
                    RiskTransition(
                        order_id=order.order_id,
                        tracking_number=order.tracking_number,
                        old_risk=order.risk_level,
                        new_risk=result.risk_level,
                        status=result.status,
                    )
                )
                logger.info(
                    f"Risk changed for {order.order_id}: {order.risk_level} -> {result.risk_level.value}"
                )

        summary.duration_ms = (time.perf_counter() - started) * 1000.0
        for alert in summary.high_risk_alerts:
            logger.warning(f"Order {alert.order_id} became HIGH RISK ({alert.status.value})")
        logger.info(
            f"Sweep completed: {summary.checked} checked, {summary.risk_updated} updated, "
            f"{summary.errors} errors in {summary.duration_ms:.0f}ms"
        )
        return summary
