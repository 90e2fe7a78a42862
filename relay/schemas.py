from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class AlertRecord(BaseModel):
    """A fired alert as stored in the alert log and served by ``GET /alerts``."""

    model_config = ConfigDict(frozen=True)

    sensor: str = Field(description="Alert topic that fired")
    value: Union[float, str] = Field(description="Last known reading, or the raw message text")
    date: str = Field(description="MM/DD/YYYY, host local time")
    time: str = Field(description="HH:MM 24-hour, host local time")
    location: Optional[str] = None


class AlertsResponse(BaseModel):
    alerts: List[AlertRecord] = Field(default_factory=list)


class ClearAlertsResponse(BaseModel):
    message: str = "Alerts cleared"


class BrokerStatus(BaseModel):
    enabled: bool
    connected: bool
    url: str
    client_id: str
    last_error: Optional[str] = None
    subscriptions: List[str] = Field(default_factory=list)


class StatusResponse(BaseModel):
    service_name: str
    service_version: str
    uptime_seconds: int
    broker: BrokerStatus
    readings: Dict[str, Union[float, str, None]]
    alert_count: int
