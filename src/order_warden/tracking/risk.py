"""Delivery-risk classification shared by every provider."""

from __future__ import annotations

from datetime import datetime, timezone

from order_warden.config import RiskConfig
from order_warden.types import RiskLevel, TrackingStatus

_RED_STATUSES = frozenset(
    {TrackingStatus.EXCEPTION, TrackingStatus.DELIVERY_FAILED, TrackingStatus.LOST}
)
_GREEN_STATUSES = frozenset({TrackingStatus.DELIVERED, TrackingStatus.OUT_FOR_DELIVERY})

_DEFAULT_THRESHOLDS = RiskConfig()


def classify_risk(
    status: TrackingStatus | str | None,
    last_update: datetime | None,
    *,
    now: datetime | None = None,
    thresholds: RiskConfig | None = None,
) -> RiskLevel:
    """Map a status and the time of its last update to a risk tier.

    Pre-transit shipments are always green: staleness only escalates risk once
    the carrier has scanned the package.
    """
    normalized = TrackingStatus.coerce(status)

    if normalized in _RED_STATUSES:
        return RiskLevel.RED
    if normalized in _GREEN_STATUSES:
        return RiskLevel.GREEN
    if normalized is TrackingStatus.PRE_TRANSIT:
        return RiskLevel.GREEN
    if normalized is TrackingStatus.IN_TRANSIT:
        if last_update is None:
            return RiskLevel.GREEN
        limits = thresholds or _DEFAULT_THRESHOLDS
        hours = hours_since(last_update, now=now)
        if hours > limits.red_after_hours:
            return RiskLevel.RED
        if hours > limits.yellow_after_hours:
            return RiskLevel.YELLOW
        return RiskLevel.GREEN
    if normalized is TrackingStatus.UNKNOWN:
        return RiskLevel.YELLOW
    return RiskLevel.GREEN


def hours_since(moment: datetime, *, now: datetime | None = None) -> float:
    current = ensure_utc(now or datetime.now(timezone.utc))
    return (current - ensure_utc(moment)).total_seconds() / 3600.0


def ensure_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
