"""Check tracing and latency accounting."""

from __future__ import annotations

import threading
import time
import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone

from order_warden.types import NormalizedTracking


@dataclass(slots=True)
class CheckRecord:
    trace_id: str
    timestamp_utc: str
    tracking_number: str
    provider: str
    carrier: str
    status: str
    risk_level: str
    error: str | None
    latency_ms: float


class CheckTraceStore:
    """In-memory trace storage for API-level observability."""

    def __init__(self, *, max_records: int = 5000) -> None:
        self._records: dict[str, CheckRecord] = {}
        self._max_records = max_records
        self._lock = threading.Lock()

    def create_record(
        self,
        *,
        tracking_number: str,
        provider: str,
        result: NormalizedTracking,
        latency_ms: float,
    ) -> CheckRecord:
        record = CheckRecord(
            trace_id=str(uuid.uuid4()),
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            tracking_number=tracking_number,
            provider=provider,
            carrier=result.carrier,
            status=result.status.value,
            risk_level=result.risk_level.value,
            error=result.error,
            latency_ms=latency_ms,
        )
        with self._lock:
            self._records[record.trace_id] = record
            while len(self._records) > self._max_records:
                self._records.pop(next(iter(self._records)))
        return record

    def get(self, trace_id: str) -> CheckRecord:
        with self._lock:
            record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[CheckRecord]:
        with self._lock:
            return list(self._records.values())[-limit:]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def summary(self) -> dict[str, object]:
        """Aggregate check metrics for dashboard display."""
        with self._lock:
            records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_checks": 0,
                "failed_checks": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "by_risk": {},
                "by_status": {},
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        return {
            "total_checks": total,
            "failed_checks": sum(1 for record in records if record.error),
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "by_risk": dict(Counter(record.risk_level for record in records)),
            "by_status": dict(Counter(record.status for record in records)),
        }


class Timer:
    """Simple context timer used around provider calls."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0
