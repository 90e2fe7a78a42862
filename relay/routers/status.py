from __future__ import annotations

import time

from fastapi import APIRouter, Depends, Request

from relay import topics
from relay.config import Settings, get_settings
from relay.http_utils import broker_client, relay_state
from relay.schemas import BrokerStatus, StatusResponse

router = APIRouter()


@router.get("/healthz")
async def healthz():
    return {"status": "ok"}


@router.get("/status", response_model=StatusResponse)
async def status_endpoint(request: Request, settings: Settings = Depends(get_settings)) -> StatusResponse:
    uptime = int(time.monotonic() - getattr(request.app.state, "started_at", time.monotonic()))
    state = relay_state(request.app)
    broker = broker_client(request.app)
    return StatusResponse(
        service_name=settings.service_name,
        service_version=settings.service_version,
        uptime_seconds=max(uptime, 0),
        broker=BrokerStatus(
            enabled=settings.mqtt_enabled,
            connected=bool(broker and broker.connected),
            url=settings.mqtt_url,
            client_id=settings.mqtt_client_id,
            last_error=broker.last_error if broker else None,
            subscriptions=topics.all_topics() if broker else [],
        ),
        readings=state.readings.snapshot(),
        alert_count=len(state.alerts),
    )
