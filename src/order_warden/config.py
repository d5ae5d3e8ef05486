"""Configuration models for the tracking core."""

from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, Field, model_validator

ProviderName = Literal["mock", "17track", "aftership"]

DEFAULT_BASE_URLS: dict[str, str] = {
    "17track": "https://api.17track.net/track/v2.4",
    "aftership": "https://api.aftership.com/v4",
}


class RiskConfig(BaseModel):
    """Staleness thresholds for in-transit shipments."""

    yellow_after_hours: float = Field(default=48.0, gt=0.0)
    red_after_hours: float = Field(default=72.0, gt=0.0)

    @model_validator(mode="after")
    def _check_order(self) -> RiskConfig:
        if self.red_after_hours < self.yellow_after_hours:
            raise ValueError("red_after_hours must not be below yellow_after_hours")
        return self


class ProviderConfig(BaseModel):
    """Selects and configures the active tracking provider."""

    provider: ProviderName = "mock"
    api_key: str | None = None
    base_url: str | None = None
    timeout_seconds: float = Field(default=15.0, gt=0.0, le=120.0)

    @property
    def offline(self) -> bool:
        return self.provider == "mock" or not self.api_key

    def resolved_base_url(self) -> str:
        if self.base_url:
            return self.base_url.rstrip("/")
        return DEFAULT_BASE_URLS[self.provider]

    @classmethod
    def from_env(cls) -> ProviderConfig:
        """Build provider settings from environment variables.

        `TRACKING_PROVIDER` wins when set; otherwise the first provider with an
        API key present is chosen, falling back to the offline mock.
        """
        track17_key = os.getenv("TRACK17_API_KEY") or None
        aftership_key = os.getenv("AFTERSHIP_API_KEY") or None
        provider = (os.getenv("TRACKING_PROVIDER") or "").strip().lower()
        if not provider:
            if track17_key:
                provider = "17track"
            elif aftership_key:
                provider = "aftership"
            else:
                provider = "mock"

        api_key = {"17track": track17_key, "aftership": aftership_key}.get(provider)
        timeout = os.getenv("TRACKING_TIMEOUT_SECONDS")
        return cls(
            provider=provider,
            api_key=api_key,
            base_url=os.getenv("TRACKING_API_BASE_URL") or None,
            timeout_seconds=float(timeout) if timeout else 15.0,
        )


class SweepConfig(BaseModel):
    """Configures batch re-checks of stored orders."""

    min_interval_hours: float = Field(default=2.0, ge=0.0)
    max_orders: int = Field(default=100, ge=1)
    delay_seconds: float = Field(default=0.5, ge=0.0)
    max_reported_changes: int = Field(default=10, ge=0)
