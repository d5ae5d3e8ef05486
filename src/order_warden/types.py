"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class TrackingStatus(str, Enum):
    """Universal shipment status, independent of any provider vocabulary."""

    PRE_TRANSIT = "pre_transit"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    EXCEPTION = "exception"
    DELIVERY_FAILED = "delivery_failed"
    LOST = "lost"
    UNKNOWN = "unknown"

    @classmethod
    def coerce(cls, value: TrackingStatus | str | None) -> TrackingStatus:
        """Return the matching member, or `UNKNOWN` for anything unrecognized."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class RiskLevel(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class Tone(str, Enum):
    URGENT = "urgent"
    REASSURING = "reassuring"
    POSITIVE = "positive"
    NEUTRAL = "neutral"


@dataclass(frozen=True, slots=True)
class TrackingQuery:
    """One check-tracking request."""

    tracking_number: str
    carrier_hint: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.tracking_number, str):
            raise TypeError("tracking_number must be a string")
        number = self.tracking_number.strip()
        if not number:
            raise ValueError("tracking_number must be a non-empty string")
        object.__setattr__(self, "tracking_number", number)
        hint = self.carrier_hint.strip() if self.carrier_hint else None
        object.__setattr__(self, "carrier_hint", hint or None)


@dataclass(slots=True)
class RawProviderRecord:
    """Provider-native tracking payload, with events ordered newest-first."""

    provider: str
    tracking_number: str
    carrier: str
    status_token: str | None
    events: list[dict[str, Any]] = field(default_factory=list)
    expected_delivery: Any = None


@dataclass(slots=True)
class NormalizedTracking:
    """Provider-neutral tracking result returned to callers."""

    status: TrackingStatus
    risk_level: RiskLevel
    carrier: str
    last_update: datetime
    location: str | None = None
    message: str | None = None
    delivery_date: datetime | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "riskLevel": self.risk_level.value,
            "carrier": self.carrier,
            "lastUpdate": self.last_update.isoformat(),
            "location": self.location,
            "message": self.message,
            "deliveryDate": self.delivery_date.isoformat() if self.delivery_date else None,
            "error": self.error,
        }


@dataclass(frozen=True, slots=True)
class MessageTemplate:
    """Ready-to-send buyer notification draft."""

    subject: str
    message: str
    tone: Tone
    copyable: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "message": self.message,
            "tone": self.tone.value,
            "copyable": self.copyable,
        }


@dataclass(slots=True)
class OrderSnapshot:
    """Previously stored tracking state of one order, as supplied by the caller."""

    order_id: str
    tracking_number: str
    carrier: str | None = None
    last_status: str | None = None
    risk_level: str | None = None
    last_checked_at: datetime | None = None


@dataclass(slots=True)
class RiskTransition:
    order_id: str
    tracking_number: str
    old_risk: str | None
    new_risk: RiskLevel
    status: TrackingStatus

    def to_dict(self) -> dict[str, Any]:
        return {
            "orderId": self.order_id,
            "trackingNumber": self.tracking_number,
            "oldRisk": self.old_risk,
            "newRisk": self.new_risk.value,
            "status": self.status.value,
        }
