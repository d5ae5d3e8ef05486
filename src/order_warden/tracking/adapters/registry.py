"""Maps provider names to adapter implementations."""

from __future__ import annotations

import logging

import httpx

from order_warden.config import ProviderConfig
from order_warden.tracking.adapters.aftership import AfterShipAdapter
from order_warden.tracking.adapters.base import CarrierAdapter, HttpCarrierAdapter
from order_warden.tracking.adapters.mock import MockAdapter
from order_warden.tracking.adapters.track17 import Track17Adapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Selects the one active carrier adapter for a deployment."""

    def __init__(self, adapters: list[type[HttpCarrierAdapter]] | None = None) -> None:
        self._adapters: dict[str, type[HttpCarrierAdapter]] = {}
        for adapter_cls in adapters or [Track17Adapter, AfterShipAdapter]:
            self.register(adapter_cls)

    def register(self, adapter_cls: type[HttpCarrierAdapter]) -> None:
        if adapter_cls.name in self._adapters:
            raise ValueError(f"Adapter already registered: {adapter_cls.name}")
        self._adapters[adapter_cls.name] = adapter_cls

    def providers(self) -> list[str]:
        return sorted(self._adapters)

    def create(
        self,
        config: ProviderConfig,
        *,
        client: httpx.Client | None = None,
    ) -> CarrierAdapter:
        if config.offline:
            logger.info("No tracking provider credential configured; running in offline mode")
            return MockAdapter()

        adapter_cls = self._adapters.get(config.provider)
        if adapter_cls is None:
            raise KeyError(f"Unknown tracking provider: {config.provider}")
        return adapter_cls(config, client=client)


def create_adapter(config: ProviderConfig, *, client: httpx.Client | None = None) -> CarrierAdapter:
    return AdapterRegistry().create(config, client=client)
