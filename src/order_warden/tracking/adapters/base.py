"""Carrier adapter interface and provider failure types."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from order_warden.config import ProviderConfig
from order_warden.types import RawProviderRecord

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """A tracking provider could not supply usable data."""

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class ProviderHTTPError(ProviderError):
    """Provider answered with a non-2xx status."""

    def __init__(self, message: str, *, status_code: int, provider: str | None = None) -> None:
        super().__init__(message, provider=provider)
        self.status_code = status_code


class ProviderNotFoundError(ProviderError):
    """Provider has no record of the tracking number."""


class ProviderResponseError(ProviderError):
    """Provider answered with a payload we cannot interpret."""


class CarrierAdapter(ABC):
    """Talks to exactly one tracking provider."""

    name: str = ""

    @abstractmethod
    def fetch_raw_tracking(self, tracking_number: str, carrier_code: str | None) -> RawProviderRecord:
        """Fetch provider-native tracking data for one shipment."""

    def register_tracking(self, tracking_number: str, carrier_code: str | None) -> None:
        """Register a shipment before querying, for providers that require it."""

    def close(self) -> None:
        """Release any held network resources."""


class HttpCarrierAdapter(CarrierAdapter):
    """Base for adapters backed by an HTTP API reached through `httpx`."""

    def __init__(
        self,
        config: ProviderConfig,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        if not config.api_key:
            raise ValueError(f"{self.name} adapter requires an API key")
        self.config = config
        self.base_url = config.resolved_base_url()
        self._client = client or httpx.Client(timeout=config.timeout_seconds)

    def close(self) -> None:
        self._client.close()

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            return self._client.request(
                method,
                url,
                headers=self._headers(),
                timeout=self.config.timeout_seconds,
                **kwargs,
            )
        except httpx.TimeoutException as exc:
            logger.warning(f"{self.name} request timed out: {method} {url}")
            raise ProviderError(
                f"{self.name} request timed out after {self.config.timeout_seconds}s",
                provider=self.name,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning(f"{self.name} transport error: {exc}")
            raise ProviderError(f"{self.name} connection error: {exc}", provider=self.name) from exc

    @staticmethod
    def _json(response: httpx.Response, provider: str) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderResponseError(
                f"{provider} returned a non-JSON body", provider=provider
            ) from exc
        if not isinstance(payload, dict):
            raise ProviderResponseError(
                f"{provider} returned an unexpected payload type", provider=provider
            )
        return payload

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        if response.status_code == 404:
            raise ProviderNotFoundError(
                f"{self.name} has no tracking data for this number", provider=self.name
            )
        raise ProviderHTTPError(
            f"{self.name} responded with HTTP {response.status_code}",
            status_code=response.status_code,
            provider=self.name,
        )

    def _mapping(self, value: Any, field: str) -> dict[str, Any]:
        """`value` as a JSON object; `None` reads as empty."""
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ProviderResponseError(
                f"{self.name} response field '{field}' is not an object", provider=self.name
            )
        return value

    def _sequence(self, value: Any, field: str) -> list[Any]:
        """`value` as a JSON array; `None` reads as empty."""
        if value is None:
            return []
        if not isinstance(value, list):
            raise ProviderResponseError(
                f"{self.name} response field '{field}' is not a list", provider=self.name
            )
        return value

    def _optional_text(self, value: Any, field: str) -> str | None:
        if value is None or value == "":
            return None
        if not isinstance(value, str):
            raise ProviderResponseError(
                f"{self.name} response field '{field}' is not a string", provider=self.name
            )
        return value
