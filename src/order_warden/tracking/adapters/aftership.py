"""AfterShip tracking API adapter."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from order_warden.tracking.adapters.base import (
    HttpCarrierAdapter,
    ProviderNotFoundError,
    ProviderResponseError,
)
from order_warden.types import RawProviderRecord

logger = logging.getLogger(__name__)

ALREADY_EXISTS = 4003
NOT_FOUND = 4004


class AfterShipAdapter(HttpCarrierAdapter):
    """Creates the tracking (idempotently) and then reads it back."""

    name = "aftership"

    def _headers(self) -> dict[str, str]:
        return {"aftership-api-key": self.config.api_key or "", "Content-Type": "application/json"}

    def fetch_raw_tracking(self, tracking_number: str, carrier_code: str | None) -> RawProviderRecord:
        if not carrier_code:
            raise ValueError("AfterShip lookups need a carrier slug")
        slug = carrier_code.lower()
        logger.info(f"Tracking {tracking_number} via AfterShip ({slug})")
        self.register_tracking(tracking_number, slug)

        response = self._request(
            "GET", f"trackings/{quote(slug, safe='')}/{quote(tracking_number, safe='')}"
        )
        payload = self._checked_payload(response)
        data = self._mapping(payload.get("data"), "data")
        tracking = data.get("tracking")
        if not isinstance(tracking, dict):
            raise ProviderResponseError("AfterShip response has no tracking", provider=self.name)

        # AfterShip lists checkpoints oldest first
        checkpoints = [
            checkpoint
            for checkpoint in reversed(self._sequence(tracking.get("checkpoints"), "checkpoints"))
            if isinstance(checkpoint, dict)
        ]
        returned_slug = self._optional_text(tracking.get("slug"), "tracking.slug")
        return RawProviderRecord(
            provider=self.name,
            tracking_number=tracking_number,
            carrier=(returned_slug or slug).lower(),
            status_token=self._optional_text(tracking.get("tag"), "tracking.tag"),
            events=checkpoints,
            expected_delivery=tracking.get("shipment_delivery_date") or tracking.get("expected_delivery"),
        )

    def register_tracking(self, tracking_number: str, carrier_code: str | None) -> None:
        body: dict[str, Any] = {"tracking_number": tracking_number}
        if carrier_code:
            body["slug"] = carrier_code.lower()
        response = self._request("POST", "trackings", json={"tracking": body})
        if response.is_success:
            logger.info(f"Created AfterShip tracking for {tracking_number}")
            return

        meta = self._meta(response)
        if meta.get("code") == ALREADY_EXISTS:
            logger.debug(f"AfterShip tracking for {tracking_number} already exists")
            return
        self._raise_for_status(response)

    def _checked_payload(self, response: httpx.Response) -> dict[str, Any]:
        meta = self._meta(response)
        if meta.get("code") == NOT_FOUND:
            raise ProviderNotFoundError(
                meta.get("message") or "Tracking does not exist", provider=self.name
            )
        self._raise_for_status(response)
        return self._json(response, self.name)

    def _meta(self, response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            return {}
        if not isinstance(payload, dict):
            return {}
        meta = payload.get("meta")
        return meta if isinstance(meta, dict) else {}
