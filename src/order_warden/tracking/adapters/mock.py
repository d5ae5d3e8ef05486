"""Offline adapter used when no provider credential is configured."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from order_warden.tracking.adapters.base import CarrierAdapter
from order_warden.tracking.detector import DEFAULT_CARRIER
from order_warden.types import RawProviderRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MockAdapter(CarrierAdapter):
    """Deterministic demo data without any network access.

    Every lookup reports an in-transit package last scanned in Los Angeles at
    the moment of the call, so offline environments still exercise the full
    normalize/classify path.
    """

    name = "mock"

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock

    def fetch_raw_tracking(self, tracking_number: str, carrier_code: str | None) -> RawProviderRecord:
        return RawProviderRecord(
            provider=self.name,
            tracking_number=tracking_number,
            carrier=(carrier_code or DEFAULT_CARRIER).lower(),
            status_token="in_transit",
            events=[
                {
                    "datetime": self._clock().isoformat(),
                    "message": "Package is in transit",
                    "status": "in_transit",
                    "tracking_location": {"city": "Los Angeles", "state": "CA"},
                }
            ],
        )
