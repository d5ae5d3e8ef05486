"""Provider-specific normalization into the universal tracking shape."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from order_warden.config import RiskConfig
from order_warden.tracking.risk import classify_risk, ensure_utc
from order_warden.types import NormalizedTracking, RawProviderRecord, TrackingStatus

logger = logging.getLogger(__name__)

_S = TrackingStatus


@dataclass(frozen=True, slots=True)
class ProviderProfile:
    """Where one provider keeps each piece of tracking data.

    Status tables are keyed by tokens folded with `fold_token`, so `InTransit`,
    `in_transit` and `IN TRANSIT` all hit the same entry.
    """

    name: str
    statuses: Mapping[str, TrackingStatus]
    event_status_key: str
    time_keys: tuple[str, ...]
    message_key: str
    location_container: str | None = None
    location_keys: tuple[str, ...] = ("city", "state", "country")
    location_text_key: str | None = "location"


MOCK_PROFILE = ProviderProfile(
    name="mock",
    statuses={status.value.replace("_", ""): status for status in TrackingStatus},
    event_status_key="status",
    time_keys=("datetime",),
    message_key="message",
    location_container="tracking_location",
)

TRACK17_PROFILE = ProviderProfile(
    name="17track",
    statuses={
        "notfound": _S.UNKNOWN,
        "inforeceived": _S.PRE_TRANSIT,
        "intransit": _S.IN_TRANSIT,
        "expired": _S.LOST,
        "availableforpickup": _S.OUT_FOR_DELIVERY,
        "outfordelivery": _S.OUT_FOR_DELIVERY,
        "deliveryfailure": _S.DELIVERY_FAILED,
        "delivered": _S.DELIVERED,
        "exception": _S.EXCEPTION,
    },
    event_status_key="stage",
    time_keys=("time_utc", "time_iso"),
    message_key="description",
    location_container="address",
)

AFTERSHIP_PROFILE = ProviderProfile(
    name="aftership",
    statuses={
        "pending": _S.PRE_TRANSIT,
        "inforeceived": _S.PRE_TRANSIT,
        "intransit": _S.IN_TRANSIT,
        "outfordelivery": _S.OUT_FOR_DELIVERY,
        "availableforpickup": _S.OUT_FOR_DELIVERY,
        "attemptfail": _S.DELIVERY_FAILED,
        "delivered": _S.DELIVERED,
        "exception": _S.EXCEPTION,
        "expired": _S.LOST,
    },
    event_status_key="tag",
    time_keys=("checkpoint_time",),
    message_key="message",
    location_keys=("city", "state", "country_name"),
)


def fold_token(token: str) -> str:
    return re.sub(r"[\s_\-]", "", token.strip().lower())


def parse_timestamp(value: Any) -> datetime | None:
    """Parse epoch seconds or an ISO-8601 string into an aware UTC datetime."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return parse_timestamp(int(text))
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


class TrackingNormalizer:
    """Converts `RawProviderRecord`s to `NormalizedTracking`.

    Never raises for missing or malformed optional data: unknown status tokens
    become `unknown`, absent fields become `None` and an unreadable timestamp
    falls back to the time of the check.
    """

    def __init__(
        self,
        profiles: list[ProviderProfile] | None = None,
        *,
        risk_config: RiskConfig | None = None,
    ) -> None:
        self._profiles: dict[str, ProviderProfile] = {}
        for profile in profiles or [MOCK_PROFILE, TRACK17_PROFILE, AFTERSHIP_PROFILE]:
            self.register(profile)
        self.risk_config = risk_config or RiskConfig()

    def register(self, profile: ProviderProfile) -> None:
        self._profiles[profile.name] = profile

    def normalize(self, raw: RawProviderRecord, *, now: datetime | None = None) -> NormalizedTracking:
        profile = self._profiles.get(raw.provider)
        if profile is None:
            raise KeyError(f"No normalization profile for provider: {raw.provider}")

        checked_at = ensure_utc(now) if now else datetime.now(timezone.utc)
        latest: dict[str, Any] = raw.events[0] if raw.events else {}
        if not isinstance(latest, dict):
            latest = {}

        token = raw.status_token or latest.get(profile.event_status_key)
        status = self._map_status(profile, token)

        last_update = _first_timestamp(latest, profile.time_keys) or checked_at
        risk_level = classify_risk(
            status, last_update, now=checked_at, thresholds=self.risk_config
        )

        return NormalizedTracking(
            status=status,
            risk_level=risk_level,
            carrier=(raw.carrier or "unknown").lower(),
            last_update=last_update,
            location=_location(latest, profile),
            message=_text(latest.get(profile.message_key)),
            delivery_date=parse_timestamp(raw.expected_delivery),
        )

    def _map_status(self, profile: ProviderProfile, token: Any) -> TrackingStatus:
        if not token:
            return TrackingStatus.UNKNOWN
        status = profile.statuses.get(fold_token(str(token)))
        if status is None:
            logger.debug(f"Unrecognized {profile.name} status token: {token!r}")
            return TrackingStatus.UNKNOWN
        return status


def _first_timestamp(event: dict[str, Any], keys: tuple[str, ...]) -> datetime | None:
    for key in keys:
        parsed = parse_timestamp(event.get(key))
        if parsed is not None:
            return parsed
    return None


def _location(event: dict[str, Any], profile: ProviderProfile) -> str | None:
    source: Any = event
    if profile.location_container:
        source = event.get(profile.location_container)
    if isinstance(source, dict):
        parts = [_text(source.get(key)) for key in profile.location_keys]
        joined = ", ".join(part for part in parts if part)
        if joined:
            return joined
    if profile.location_text_key:
        return _text(event.get(profile.location_text_key))
    return None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
