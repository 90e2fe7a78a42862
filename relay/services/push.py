"""Socket.IO push channel to browser clients."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import socketio

from relay.services.control import ControlIntake
from relay.utils.tasks import BackgroundTasks

logger = logging.getLogger(__name__)


def create_server(frontend_origin: str) -> socketio.AsyncServer:
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=[frontend_origin],
        cors_credentials=True,
    )


class PushBroadcaster:
    """Emit events to every connected client.

    No acknowledgement and no buffering: a client that connects later never
    sees earlier events.
    """

    def __init__(self, server: socketio.AsyncServer) -> None:
        self.server = server
        self._tasks = BackgroundTasks("push-emit")

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        self._tasks.spawn(self._emit(event, payload), name=f"push-{event}")

    async def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        try:
            await self.server.emit(event, payload)
        except Exception:
            logger.exception("Failed to broadcast %s", event)

    async def stop(self) -> None:
        await self._tasks.drain()


def register_handlers(server: socketio.AsyncServer, intake: ControlIntake) -> None:
    """Wire client lifecycle logging and ``control_update`` intake."""

    async def connect(sid: str, environ: Dict[str, Any], auth: Optional[Any] = None) -> None:
        logger.info("WebSocket client connected", extra={"sid": sid})

    async def disconnect(sid: str, *args: Any) -> None:
        logger.info("WebSocket client disconnected", extra={"sid": sid})

    async def control_update(sid: str, data: Any) -> None:
        logger.info("Received control update: %s", data, extra={"sid": sid})
        intake.handle(data)

    server.on("connect", connect)
    server.on("disconnect", disconnect)
    server.on("control_update", control_update)
