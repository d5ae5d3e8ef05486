"""Check-tracking orchestration: detect, fetch, normalize, degrade."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from order_warden.obs.tracing import CheckTraceStore, Timer
from order_warden.tracking.adapters.base import CarrierAdapter, ProviderError
from order_warden.tracking.detector import detect_carrier
from order_warden.tracking.normalizer import TrackingNormalizer
from order_warden.tracking.risk import ensure_utc
from order_warden.types import (
    NormalizedTracking,
    RiskLevel,
    TrackingQuery,
    TrackingStatus,
)

logger = logging.getLogger(__name__)


class TrackingService:
    """Runs one tracking check against the active carrier adapter.

    Provider failures never reach the caller: they come back as an `unknown`
    / `yellow` result with the failure text in `error`, which downstream code
    treats the same as "provider has no data yet".
    """

    def __init__(
        self,
        adapter: CarrierAdapter,
        *,
        normalizer: TrackingNormalizer | None = None,
        trace_store: CheckTraceStore | None = None,
    ) -> None:
        self.adapter = adapter
        self.normalizer = normalizer or TrackingNormalizer()
        self.trace_store = trace_store

    @property
    def offline(self) -> bool:
        return self.adapter.name == "mock"

    def check(self, query: TrackingQuery, *, now: datetime | None = None) -> NormalizedTracking:
        carrier = (query.carrier_hint or detect_carrier(query.tracking_number)).lower()
        logger.info(f"Checking {query.tracking_number} (carrier: {carrier}, provider: {self.adapter.name})")

        with Timer() as timer:
            try:
                raw = self.adapter.fetch_raw_tracking(query.tracking_number, carrier)
                result = self.normalizer.normalize(raw, now=now)
            except ProviderError as exc:
                logger.warning(f"Tracking check failed for {query.tracking_number}: {exc}")
                result = self._fallback(carrier, str(exc), now=now)

        if result.carrier == "unknown":
            result.carrier = carrier
        logger.info(
            f"Result for {query.tracking_number} - Status: {result.status.value}, "
            f"Risk: {result.risk_level.value}"
        )

        if self.trace_store is not None:
            self.trace_store.create_record(
                tracking_number=query.tracking_number,
                provider=self.adapter.name,
                result=result,
                latency_ms=timer.elapsed_ms,
            )
        return result

    def check_tracking(
        self, tracking_number: str, carrier_hint: str | None = None
    ) -> NormalizedTracking:
        return self.check(TrackingQuery(tracking_number, carrier_hint))

    @staticmethod
    def _fallback(carrier: str, error: str, *, now: datetime | None = None) -> NormalizedTracking:
        return NormalizedTracking(
            status=TrackingStatus.UNKNOWN,
            risk_level=RiskLevel.YELLOW,
            carrier=carrier or "unknown",
            last_update=ensure_utc(now) if now else datetime.now(timezone.utc),
            location=None,
            message=None,
            error=error or "Tracking provider failure",
        )
