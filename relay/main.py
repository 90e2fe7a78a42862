"""FastAPI + Socket.IO application relaying broker telemetry to browser clients."""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from relay.config import get_settings
from relay.observability import configure_observability
from relay.routers import alerts as alerts_router
from relay.routers import status as status_router
from relay.services.alerts import AlertEvaluator
from relay.services.broker import BrokerClient
from relay.services.control import ControlIntake, DisabledPublisher
from relay.services.handler import MessageHandler
from relay.services.notifier import NotificationDispatcher
from relay.services.push import PushBroadcaster, create_server, register_handlers
from relay.services.state import RelayState

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    state = RelayState()
    broadcaster = PushBroadcaster(sio)
    notifier = NotificationDispatcher.from_settings(settings)
    evaluator = AlertEvaluator(
        state.readings,
        state.alerts,
        notifier,
        broadcaster,
        location=settings.alert_location,
    )
    handler = MessageHandler(state, evaluator, broadcaster)

    broker = None
    if settings.mqtt_enabled:
        broker = BrokerClient(settings, handler.handle)
        broker.start()
    else:
        logger.warning("MQTT disabled; relay will not receive telemetry")
    intake = ControlIntake(broker if broker else DisabledPublisher())
    register_handlers(sio, intake)

    app.state.relay_state = state
    app.state.broadcaster = broadcaster
    app.state.notifier = notifier
    app.state.handler = handler
    app.state.broker = broker
    app.state.control_intake = intake
    app.state.started_at = time.monotonic()
    logger.info("Telemetry relay started on port %s", settings.listen_port)

    try:
        yield
    finally:
        if broker:
            await broker.stop()
        await notifier.stop()
        await broadcaster.stop()
        logger.info("Telemetry relay stopped")


settings = get_settings()
app = FastAPI(title="Telemetry Relay", lifespan=lifespan)
configure_observability(app, service_name=settings.service_name, log_level=settings.log_level)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_origin],
    allow_methods=["GET", "POST"],
    allow_credentials=True,
)

app.include_router(status_router.router)
app.include_router(alerts_router.router)

static_path = settings.static_path
if static_path is not None:
    app.mount("/", StaticFiles(directory=static_path, html=True), name="static")

sio = create_server(settings.frontend_origin)
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)


def main() -> None:  # pragma: no cover
    import uvicorn

    uvicorn.run(asgi_app, host=settings.listen_host, port=settings.listen_port)


if __name__ == "__main__":  # pragma: no cover
    main()
