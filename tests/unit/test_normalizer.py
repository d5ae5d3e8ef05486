from datetime import datetime, timedelta, timezone

import pytest

from order_warden.tracking.normalizer import TrackingNormalizer, parse_timestamp
from order_warden.types import RawProviderRecord, RiskLevel, TrackingStatus

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _track17_record(status: str | None, events: list[dict]) -> RawProviderRecord:
    return RawProviderRecord(
        provider="17track",
        tracking_number="1Z999AA10123456784",
        carrier="ups",
        status_token=status,
        events=events,
        expected_delivery="2026-03-12T00:00:00Z",
    )


def test_track17_record_uses_latest_event() -> None:
    latest = (NOW - timedelta(hours=50)).isoformat()
    older = (NOW - timedelta(hours=80)).isoformat()
    record = _track17_record(
        "InTransit",
        [
            {
                "time_utc": latest,
                "description": "Departed facility",
                "address": {"city": "Los Angeles", "state": "CA", "country": None},
            },
            {"time_utc": older, "description": "Label created", "address": {"city": "Reno"}},
        ],
    )

    result = TrackingNormalizer().normalize(record, now=NOW)

    assert result.status is TrackingStatus.IN_TRANSIT
    assert result.risk_level is RiskLevel.YELLOW
    assert result.carrier == "ups"
    assert result.location == "Los Angeles, CA"
    assert result.message == "Departed facility"
    assert result.last_update == NOW - timedelta(hours=50)
    assert result.delivery_date == datetime(2026, 3, 12, tzinfo=timezone.utc)
    assert result.error is None


def test_unrecognized_status_token_maps_to_unknown() -> None:
    record = _track17_record("Teleported", [])

    result = TrackingNormalizer().normalize(record, now=NOW)

    assert result.status is TrackingStatus.UNKNOWN
    assert result.risk_level is RiskLevel.YELLOW


def test_missing_optional_fields_become_none() -> None:
    record = _track17_record("Delivered", [{}])

    result = TrackingNormalizer().normalize(record, now=NOW)

    assert result.status is TrackingStatus.DELIVERED
    assert result.location is None
    assert result.message is None
    assert result.last_update == NOW


def test_empty_events_default_last_update_to_now() -> None:
    result = TrackingNormalizer().normalize(_track17_record(None, []), now=NOW)

    assert result.status is TrackingStatus.UNKNOWN
    assert result.last_update == NOW
    assert result.location is None


def test_status_falls_back_to_latest_event_stage() -> None:
    record = _track17_record(None, [{"stage": "OutForDelivery", "time_utc": NOW.isoformat()}])

    result = TrackingNormalizer().normalize(record, now=NOW)

    assert result.status is TrackingStatus.OUT_FOR_DELIVERY
    assert result.risk_level is RiskLevel.GREEN


def test_track17_location_string_is_used_without_address() -> None:
    record = _track17_record(
        "Exception", [{"time_utc": NOW.isoformat(), "location": "MEMPHIS, TN"}]
    )

    result = TrackingNormalizer().normalize(record, now=NOW)

    assert result.location == "MEMPHIS, TN"
    assert result.risk_level is RiskLevel.RED


def test_aftership_checkpoint_fields() -> None:
    record = RawProviderRecord(
        provider="aftership",
        tracking_number="123456789012",
        carrier="fedex",
        status_token="AttemptFail",
        events=[
            {
                "checkpoint_time": "2026-03-10T08:00:00",
                "city": "Austin",
                "state": "TX",
                "country_name": "USA",
                "message": "Customer not available",
            }
        ],
    )

    result = TrackingNormalizer().normalize(record, now=NOW)

    assert result.status is TrackingStatus.DELIVERY_FAILED
    assert result.risk_level is RiskLevel.RED
    assert result.location == "Austin, TX, USA"
    assert result.last_update == datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)


def test_mock_record_vocabulary() -> None:
    record = RawProviderRecord(
        provider="mock",
        tracking_number="9400100000000000000000",
        carrier="USPS",
        status_token="in_transit",
        events=[
            {
                "datetime": NOW.isoformat(),
                "message": "Package is in transit",
                "tracking_location": {"city": "Los Angeles", "state": "CA"},
            }
        ],
    )

    result = TrackingNormalizer().normalize(record, now=NOW)

    assert result.status is TrackingStatus.IN_TRANSIT
    assert result.carrier == "usps"
    assert result.location == "Los Angeles, CA"


def test_unknown_provider_is_a_programming_error() -> None:
    record = RawProviderRecord(provider="nope", tracking_number="x", carrier="ups", status_token=None)
    with pytest.raises(KeyError):
        TrackingNormalizer().normalize(record, now=NOW)


def test_parse_timestamp_accepts_epoch_and_iso() -> None:
    expected = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
    assert parse_timestamp(int(expected.timestamp())) == expected
    assert parse_timestamp(str(int(expected.timestamp()))) == expected
    assert parse_timestamp("2026-03-10T12:00:00Z") == expected
    assert parse_timestamp("2026-03-10T14:00:00+02:00") == expected
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None
