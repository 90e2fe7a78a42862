from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from relay.http_utils import relay_state
from relay.schemas import AlertsResponse, ClearAlertsResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/alerts", response_model=AlertsResponse)
async def list_alerts(request: Request) -> AlertsResponse:
    return AlertsResponse(alerts=relay_state(request.app).alerts.records())


@router.post("/clear_alerts", response_model=ClearAlertsResponse)
async def clear_alerts(request: Request) -> ClearAlertsResponse:
    log = relay_state(request.app).alerts
    cleared = len(log)
    log.clear()
    logger.info("Cleared %s alert(s)", cleared)
    return ClearAlertsResponse()
