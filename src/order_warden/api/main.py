"""FastAPI entrypoint for tracking check, template and sweep endpoints."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator

from order_warden.config import ProviderConfig, SweepConfig
from order_warden.messages.templates import select_template
from order_warden.obs.tracing import CheckTraceStore
from order_warden.tracking.adapters.registry import create_adapter
from order_warden.tracking.detector import detect_carrier, tracking_url
from order_warden.tracking.service import TrackingService
from order_warden.tracking.sweep import TrackingSweep, select_due_orders
from order_warden.types import OrderSnapshot, TrackingQuery

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class CheckRequest(_CamelModel):
    order_id: str = Field(alias="orderId", min_length=1)
    tracking_number: str = Field(alias="trackingNumber", min_length=1)
    carrier: str | None = None

    @field_validator("carrier")
    @classmethod
    def _blank_carrier_is_none(cls, value: str | None) -> str | None:
        return value or None


class DetectRequest(_CamelModel):
    tracking_number: str = Field(alias="trackingNumber", min_length=1)


class TemplateRequest(_CamelModel):
    status: str | None = None
    risk_level: str | None = Field(default=None, alias="riskLevel")
    order_id: str = Field(alias="orderId", min_length=1)


class SweepOrder(_CamelModel):
    order_id: str = Field(alias="orderId", min_length=1)
    tracking_number: str = Field(alias="trackingNumber", min_length=1)
    carrier: str | None = None
    last_status: str | None = Field(default=None, alias="lastStatus")
    risk_level: str | None = Field(default=None, alias="riskLevel")
    last_checked_at: datetime | None = Field(default=None, alias="lastCheckedAt")


class SweepRequest(_CamelModel):
    orders: list[SweepOrder] = Field(default_factory=list)
    force: bool = False


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Release the provider connection pool on shutdown."""
    try:
        yield
    finally:
        _adapter.close()


app = FastAPI(title="OrderWarden Tracking", version="0.1.0", lifespan=lifespan)

_provider_config = ProviderConfig.from_env()
_trace_store = CheckTraceStore()
_adapter = create_adapter(_provider_config)
_service = TrackingService(_adapter, trace_store=_trace_store)
_sweep_config = SweepConfig(delay_seconds=0.0) if _service.offline else SweepConfig()
_sweep = TrackingSweep(_service, config=_sweep_config)


@app.get("/health")
def health() -> dict[str, Any]:
    return {
        "status": "ok",
        "provider": _adapter.name,
        "offline_mode": _service.offline,
        "check_count": len(_trace_store),
    }


@app.post("/tracking/check")
def check_tracking(request: CheckRequest) -> dict[str, Any]:
    try:
        result = _service.check(TrackingQuery(request.tracking_number, request.carrier))
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(f"Check failed for order {request.order_id}: {exc}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to check tracking") from exc

    template = select_template(result.status, result.risk_level, request.order_id)
    return {
        "orderId": request.order_id,
        "tracking": result.to_dict(),
        "recommendedMessage": template.to_dict(),
    }


@app.post("/carriers/detect")
def carriers_detect(request: DetectRequest) -> dict[str, Any]:
    carrier = detect_carrier(request.tracking_number)
    return {
        "carrier": carrier,
        "trackingUrl": tracking_url(carrier, request.tracking_number),
    }


@app.post("/messages/template")
def message_template(request: TemplateRequest) -> dict[str, Any]:
    return select_template(request.status, request.risk_level, request.order_id).to_dict()


@app.post("/sweep")
def sweep(request: SweepRequest) -> dict[str, Any]:
    snapshots = [
        OrderSnapshot(
            order_id=order.order_id,
            tracking_number=order.tracking_number,
            carrier=order.carrier,
            last_status=order.last_status,
            risk_level=order.risk_level,
            last_checked_at=order.last_checked_at,
        )
        for order in request.orders
    ]
    if not request.force:
        snapshots = select_due_orders(snapshots, config=_sweep_config)

    summary = _sweep.run(snapshots)
    return {
        "success": True,
        **summary.to_dict(max_changes=_sweep_config.max_reported_changes),
    }


@app.get("/traces")
def traces(limit: int = 20) -> dict[str, Any]:
    records = [asdict(record) for record in _trace_store.list_recent(limit=limit)]
    return {"items": records}


@app.get("/traces/{trace_id}")
def trace_detail(trace_id: str) -> dict[str, Any]:
    try:
        record = _trace_store.get(trace_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return asdict(record)


@app.get("/metrics")
def metrics() -> dict[str, Any]:
    return _trace_store.summary()
