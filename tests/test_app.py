from __future__ import annotations

import asyncio
import importlib

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from relay.config import get_settings
from relay.schemas import AlertRecord
from relay.services.broker import BrokerClient

FRONTEND = "http://dashboard.local:3001"


@pytest.fixture(scope="module")
def api() -> TestClient:
    """TestClient with the broker and SNS turned off."""

    mp = pytest.MonkeyPatch()
    mp.setenv("RELAY_MQTT_ENABLED", "false")
    mp.setenv("RELAY_STATIC_DIR", "")
    mp.setenv("RELAY_FRONTEND_ORIGIN", FRONTEND)
    mp.setenv("RELAY_ALERT_LOCATION", "Workshop")
    mp.delenv("RELAY_SNS_TOPIC_ARN", raising=False)
    get_settings.cache_clear()

    import relay.main as main_module

    importlib.reload(main_module)
    client_context = TestClient(main_module.app)
    client = client_context.__enter__()
    try:
        yield client
    finally:
        client_context.__exit__(None, None, None)
        mp.undo()
        get_settings.cache_clear()


@pytest.fixture(autouse=True)
def empty_alert_log(api):
    api.app.state.relay_state.alerts.clear()
    yield


def _record(sensor: str, value: float | str) -> AlertRecord:
    return AlertRecord(sensor=sensor, value=value, date="01/02/2025", time="23:15", location="Workshop")


def test_alerts_starts_empty(api) -> None:
    resp = api.get("/alerts")
    assert resp.status_code == 200
    assert resp.json() == {"alerts": []}


def test_alerts_are_listed_in_insertion_order(api) -> None:
    log = api.app.state.relay_state.alerts
    log.append(_record("Alert_temp", 33.5))
    log.append(_record("Alert_darkness", "ON"))

    body = api.get("/alerts").json()

    assert body["alerts"] == [
        {"sensor": "Alert_temp", "value": 33.5, "date": "01/02/2025", "time": "23:15", "location": "Workshop"},
        {"sensor": "Alert_darkness", "value": "ON", "date": "01/02/2025", "time": "23:15", "location": "Workshop"},
    ]


def test_clear_alerts_empties_the_log(api) -> None:
    api.app.state.relay_state.alerts.append(_record("Alert_humidity", 88.0))

    resp = api.post("/clear_alerts")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Alerts cleared"}
    assert api.get("/alerts").json() == {"alerts": []}

    again = api.post("/clear_alerts")
    assert again.status_code == 200
    assert again.json() == {"message": "Alerts cleared"}


def test_handler_alerts_are_served_over_http(api) -> None:
    handler = api.app.state.handler
    handler.handle("sensors/temperature", '{"temperature": 29}')
    handler.handle("Alert_temp", '{"status": "on"}')
    handler.handle("Alert_humidity", '{"status": "off"}')

    alerts = api.get("/alerts").json()["alerts"]

    assert len(alerts) == 1
    assert alerts[0]["sensor"] == "Alert_temp"
    assert alerts[0]["value"] == 29.0
    assert alerts[0]["location"] == "Workshop"


def test_status_reports_readings_and_broker_state(api) -> None:
    api.app.state.relay_state.readings.set("fan_status", "on")

    body = api.get("/status").json()

    assert body["broker"]["enabled"] is False
    assert body["broker"]["connected"] is False
    assert body["readings"]["fan_status"] == "on"
    assert body["readings"]["humidity"] is None
    assert body["alert_count"] == 0


def test_healthz(api) -> None:
    assert api.get("/healthz").json() == {"status": "ok"}


def test_cors_allows_frontend_origin(api) -> None:
    resp = api.get("/alerts", headers={"Origin": FRONTEND})
    assert resp.headers["access-control-allow-origin"] == FRONTEND
    assert resp.headers["access-control-allow-credentials"] == "true"

    other = api.get("/alerts", headers={"Origin": "http://evil.example"})
    assert "access-control-allow-origin" not in other.headers


def test_request_id_header_is_echoed(api) -> None:
    resp = api.get("/healthz", headers={"X-Request-ID": "abc123"})
    assert resp.headers["X-Request-ID"] == "abc123"


def test_control_intake_without_broker_drops_commands(api, caplog) -> None:
    published = api.app.state.control_intake.handle({"fan": "on"})

    assert published == 1
    assert any("MQTT disabled" in record.getMessage() for record in caplog.records)


def test_lifespan_wires_broker_into_control_intake(api, monkeypatch) -> None:
    import relay.main as main_module

    monkeypatch.setenv("RELAY_MQTT_ENABLED", "true")
    monkeypatch.setenv("RELAY_MQTT_URL", "mqtt://broker.local:1883")
    get_settings.cache_clear()
    started = []
    monkeypatch.setattr(BrokerClient, "start", lambda self: started.append(self))
    app = FastAPI()

    async def runner() -> None:
        async with main_module.lifespan(app):
            broker = app.state.broker
            assert isinstance(broker, BrokerClient)
            assert started == [broker]
            assert broker.on_message == app.state.handler.handle
            assert app.state.control_intake.publisher is broker

    try:
        asyncio.run(runner())
    finally:
        # lifespan re-registers Socket.IO handlers; point them back at the shared app
        main_module.register_handlers(main_module.sio, api.app.state.control_intake)
