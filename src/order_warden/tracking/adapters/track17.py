"""17TRACK API v2.4 adapter."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from order_warden.tracking.adapters.base import (
    HttpCarrierAdapter,
    ProviderNotFoundError,
    ProviderResponseError,
)
from order_warden.tracking.normalizer import parse_timestamp
from order_warden.types import RawProviderRecord

logger = logging.getLogger(__name__)

# 17TRACK carrier codes for common carriers
CARRIER_CODES: dict[str, int] = {
    "fedex": 100003,
    "ups": 100002,
    "usps": 21051,
    "dhl": 100001,
    "amazon": 100143,
    "ontrac": 100049,
    "lasership": 100104,
    "canada_post": 3041,
    "royal_mail": 11031,
}

NOT_REGISTERED = -18019902
ALREADY_REGISTERED = -18019901


class Track17Adapter(HttpCarrierAdapter):
    """Looks shipments up through 17TRACK.

    Flow:
    1. Ask for tracking info.
    2. If the number was never registered, register it and ask once more.
    """

    name = "17track"

    def _headers(self) -> dict[str, str]:
        return {"17token": self.config.api_key or "", "Content-Type": "application/json"}

    def fetch_raw_tracking(self, tracking_number: str, carrier_code: str | None) -> RawProviderRecord:
        logger.info(f"Tracking {tracking_number} via 17TRACK API")
        accepted, error = self._get_track_info(tracking_number, carrier_code)

        if accepted is None and error.get("code") == NOT_REGISTERED:
            logger.info(f"Tracking number {tracking_number} not registered, registering...")
            self.register_tracking(tracking_number, carrier_code)
            accepted, error = self._get_track_info(tracking_number, carrier_code)

        if accepted is None:
            raise ProviderNotFoundError(
                error.get("message") or "Tracking info not found",
                provider=self.name,
            )
        return self._to_record(accepted, tracking_number, carrier_code)

    def register_tracking(self, tracking_number: str, carrier_code: str | None) -> None:
        data = self._post("register", tracking_number, carrier_code)
        if self._sequence(data.get("accepted"), "accepted"):
            logger.info(f"Registered {tracking_number} with 17TRACK")
            return

        error = self._first_rejection(data)
        if error.get("code") == ALREADY_REGISTERED:
            logger.debug(f"{tracking_number} already registered with 17TRACK")
            return
        raise ProviderResponseError(
            f"17TRACK registration failed: {error.get('message', 'unknown error')}",
            provider=self.name,
        )

    def _get_track_info(
        self, tracking_number: str, carrier_code: str | None
    ) -> tuple[dict[str, Any] | None, dict[str, Any]]:
        data = self._post("gettrackinfo", tracking_number, carrier_code)
        accepted = self._sequence(data.get("accepted"), "accepted")
        if accepted:
            return self._mapping(accepted[0], "accepted[0]"), {}
        return None, self._first_rejection(data)

    def _first_rejection(self, data: dict[str, Any]) -> dict[str, Any]:
        rejected = self._sequence(data.get("rejected"), "rejected")
        if not rejected:
            return {}
        entry = self._mapping(rejected[0], "rejected[0]")
        return self._mapping(entry.get("error"), "rejected[0].error")

    def _post(self, endpoint: str, tracking_number: str, carrier_code: str | None) -> dict[str, Any]:
        item: dict[str, Any] = {"number": tracking_number}
        numeric_carrier = _carrier_number(carrier_code)
        if numeric_carrier is not None:
            item["carrier"] = numeric_carrier

        response = self._request("POST", endpoint, json=[item])
        self._raise_for_status(response)
        payload = self._json(response, self.name)
        if payload.get("code") != 0:
            raise ProviderResponseError(
                f"17TRACK API error: {payload.get('code')}", provider=self.name
            )
        data = payload.get("data")
        if not isinstance(data, dict):
            raise ProviderResponseError("17TRACK response has no data", provider=self.name)
        return data

    def _to_record(
        self,
        accepted: dict[str, Any],
        tracking_number: str,
        carrier_code: str | None,
    ) -> RawProviderRecord:
        track_info = self._mapping(accepted.get("track_info"), "track_info")
        tracking = self._mapping(track_info.get("tracking"), "track_info.tracking")
        providers = [
            self._mapping(provider, "tracking.providers[]")
            for provider in self._sequence(tracking.get("providers"), "tracking.providers")
        ]

        events: list[dict[str, Any]] = []
        for provider in providers:
            events.extend(
                event
                for event in self._sequence(provider.get("events"), "providers[].events")
                if isinstance(event, dict)
            )
        events.sort(key=_event_sort_key, reverse=True)

        carrier = _carrier_name(accepted.get("carrier"))
        if carrier is None and providers:
            source = self._mapping(providers[0].get("provider"), "providers[0].provider")
            name = self._optional_text(source.get("name"), "provider.name")
            carrier = name.lower() if name else None

        latest_status = self._mapping(track_info.get("latest_status"), "latest_status")
        time_metrics = self._mapping(track_info.get("time_metrics"), "time_metrics")
        estimated = self._mapping(
            time_metrics.get("estimated_delivery_date"), "estimated_delivery_date"
        )
        return RawProviderRecord(
            provider=self.name,
            tracking_number=tracking_number,
            carrier=carrier or (carrier_code or "unknown").lower(),
            status_token=self._optional_text(latest_status.get("status"), "latest_status.status"),
            events=events,
            expected_delivery=estimated.get("from"),
        )


def _carrier_number(carrier: str | None) -> int | None:
    """Convert a carrier slug (or an already numeric code) to a 17TRACK code."""
    if not carrier:
        return None
    if carrier.isdigit():
        return int(carrier)
    return CARRIER_CODES.get(carrier.lower().replace(" ", "_").replace("-", "_"))


def _carrier_name(code: Any) -> str | None:
    if not code:
        return None
    for name, value in CARRIER_CODES.items():
        if value == code:
            return name
    return None


_NO_TIME = datetime.min.replace(tzinfo=timezone.utc)


def _event_sort_key(event: dict[str, Any]) -> datetime:
    for key in ("time_utc", "time_iso"):
        parsed = parse_timestamp(event.get(key))
        if parsed is not None:
            return parsed
    return _NO_TIME
