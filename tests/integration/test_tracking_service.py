from datetime import datetime, timedelta, timezone

import httpx
import pytest

from order_warden.config import ProviderConfig
from order_warden.obs.tracing import CheckTraceStore
from order_warden.tracking.adapters.base import CarrierAdapter, ProviderNotFoundError
from order_warden.tracking.adapters.mock import MockAdapter
from order_warden.tracking.adapters.track17 import Track17Adapter
from order_warden.tracking.service import TrackingService
from order_warden.types import RawProviderRecord, RiskLevel, TrackingQuery, TrackingStatus

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
UPS_NUMBER = "1Z999AA10123456784"


def _track17_payload(last_event: datetime) -> dict:
    return {
        "code": 0,
        "data": {
            "accepted": [
                {
                    "number": UPS_NUMBER,
                    "carrier": 100002,
                    "track_info": {
                        "latest_status": {"status": "InTransit"},
                        "tracking": {
                            "providers": [
                                {
                                    "provider": {"name": "UPS"},
                                    "events": [
                                        {
                                            "time_utc": last_event.isoformat(),
                                            "description": "Arrived at facility",
                                            "address": {"city": "Los Angeles", "state": "CA"},
                                        }
                                    ],
                                }
                            ]
                        },
                    },
                }
            ]
        },
    }


def test_stale_in_transit_ups_shipment_is_yellow() -> None:
    carriers_sent: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        carriers_sent.append(request.content)
        return httpx.Response(200, json=_track17_payload(NOW - timedelta(hours=50)))

    adapter = Track17Adapter(
        ProviderConfig(provider="17track", api_key="secret"),
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    service = TrackingService(adapter)

    result = service.check(TrackingQuery(UPS_NUMBER), now=NOW)

    assert b"100002" in carriers_sent[0]
    assert result.to_dict() | {"lastUpdate": None} == {
        "status": "in_transit",
        "riskLevel": "yellow",
        "carrier": "ups",
        "lastUpdate": None,
        "location": "Los Angeles, CA",
        "message": "Arrived at facility",
        "deliveryDate": None,
        "error": None,
    }


def test_unreachable_provider_degrades_to_unknown_yellow() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("network is unreachable", request=request)

    adapter = Track17Adapter(
        ProviderConfig(provider="17track", api_key="secret"),
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    trace_store = CheckTraceStore()
    service = TrackingService(adapter, trace_store=trace_store)

    result = service.check(TrackingQuery(UPS_NUMBER), now=NOW)

    assert result.status is TrackingStatus.UNKNOWN
    assert result.risk_level is RiskLevel.YELLOW
    assert result.location is None
    assert result.carrier == "ups"
    assert result.error
    assert trace_store.summary()["failed_checks"] == 1


@pytest.mark.parametrize(
    "data",
    [
        {"accepted": ["oops"]},
        {"accepted": [{"track_info": []}]},
        {"accepted": [{"track_info": {"latest_status": "InTransit"}}]},
        {"rejected": ["bad"]},
        {"accepted": {"a": 1}},
    ],
)
def test_malformed_provider_payload_degrades_to_unknown_yellow(data: dict) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": 0, "data": data})

    adapter = Track17Adapter(
        ProviderConfig(provider="17track", api_key="secret"),
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    result = TrackingService(adapter).check(TrackingQuery(UPS_NUMBER), now=NOW)

    assert result.status is TrackingStatus.UNKNOWN
    assert result.risk_level is RiskLevel.YELLOW
    assert result.error


class _NotFoundAdapter(CarrierAdapter):
    name = "17track"

    def fetch_raw_tracking(self, tracking_number: str, carrier_code: str | None) -> RawProviderRecord:
        raise ProviderNotFoundError("Tracking info not found", provider=self.name)


def test_not_found_degrades_to_unknown_yellow() -> None:
    result = TrackingService(_NotFoundAdapter()).check_tracking("123456789012")

    assert result.status is TrackingStatus.UNKNOWN
    assert result.risk_level is RiskLevel.YELLOW
    assert result.carrier == "fedex"
    assert result.error == "Tracking info not found"


def test_offline_mode_returns_mock_data() -> None:
    service = TrackingService(MockAdapter())

    result = service.check_tracking("9400100000000000000000")

    assert service.offline
    assert result.status is TrackingStatus.IN_TRANSIT
    assert result.risk_level is RiskLevel.GREEN
    assert result.carrier == "usps"
    assert result.location == "Los Angeles, CA"
    assert result.error is None


def test_carrier_hint_overrides_detection() -> None:
    result = TrackingService(MockAdapter()).check_tracking("9400100000000000000000", "FedEx")
    assert result.carrier == "fedex"


def test_invalid_input_fails_fast() -> None:
    service = TrackingService(MockAdapter())
    with pytest.raises(ValueError):
        service.check_tracking("   ")
    with pytest.raises(TypeError):
        service.check_tracking(None)  # type: ignore[arg-type]


def test_checks_are_recorded_in_trace_store() -> None:
    trace_store = CheckTraceStore()
    service = TrackingService(MockAdapter(), trace_store=trace_store)

    service.check_tracking(UPS_NUMBER)

    [record] = trace_store.list_recent()
    assert record.provider == "mock"
    assert record.carrier == "ups"
    assert record.latency_ms >= 0.0
