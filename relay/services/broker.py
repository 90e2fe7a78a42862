"""MQTT connection: subscribe to telemetry topics and publish control messages."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from aiomqtt import Client, MqttError, TLSParameters

from relay import topics
from relay.config import Settings
from relay.utils.tasks import BackgroundTasks

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str, str], None]


def _require_file(path: Optional[str], label: str, *, required: bool = False) -> Optional[str]:
    if not path:
        if required:
            raise FileNotFoundError(f"MQTT {label} not configured")
        return None
    resolved = Path(path).expanduser()
    if not resolved.is_file():
        raise FileNotFoundError(f"MQTT {label} not found: {resolved}")
    return str(resolved)


def build_tls_parameters(settings: Settings) -> Optional[TLSParameters]:
    """TLS material for the broker session. An unset or missing client certificate or key fails here, at startup."""

    if not settings.mqtt_tls:
        return None
    return TLSParameters(
        ca_certs=_require_file(settings.mqtt_ca_path, "CA bundle"),
        certfile=_require_file(settings.mqtt_cert_path, "client certificate", required=True),
        keyfile=_require_file(settings.mqtt_key_path, "private key", required=True),
    )


class BrokerClient:
    """Single long-lived broker session.

    Reconnects after a fixed delay when the session drops; there is no retry
    budget. Publishing is fire-and-forget and never surfaces errors.
    """

    def __init__(
        self,
        settings: Settings,
        on_message: MessageCallback,
        *,
        subscription_groups: Sequence[Iterable[str]] = topics.SUBSCRIPTION_GROUPS,
    ) -> None:
        self.settings = settings
        self.on_message = on_message
        self.subscription_groups = [tuple(group) for group in subscription_groups]
        self.tls_params = build_tls_parameters(settings)
        self._client: Client | None = None
        self._task: asyncio.Task | None = None
        self._stop = asyncio.Event()
        self._publishes = BackgroundTasks("mqtt-publish")
        self.connected: bool = False
        self.last_error: Optional[str] = None

    def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._run(), name="mqtt-broker-client")

    async def stop(self) -> None:
        self._stop.set()
        await self._publishes.drain()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    def publish(self, topic: str, payload: str) -> None:
        client = self._client
        if client is None or not self.connected:
            logger.warning("Not connected to MQTT; dropping publish to %s", topic)
            return
        self._publishes.spawn(self._publish(client, topic, payload), name=f"mqtt-publish-{topic}")

    async def _publish(self, client: Client, topic: str, payload: str) -> None:
        try:
            await client.publish(topic, payload.encode("utf-8"))
        except MqttError as exc:
            logger.error("Error publishing to %s: %s", topic, exc)
            return
        logger.info("Published %s to %s", payload, topic)

    async def _run(self) -> None:
        delay = self.settings.mqtt_reconnect_seconds
        while not self._stop.is_set():
            try:
                logger.info(
                    "Connecting to MQTT broker %s:%s", self.settings.mqtt_host, self.settings.mqtt_port
                )
                async with Client(
                    self.settings.mqtt_host,
                    port=self.settings.mqtt_port,
                    identifier=self.settings.mqtt_client_id,
                    username=self.settings.mqtt_username,
                    password=self.settings.mqtt_password,
                    keepalive=self.settings.mqtt_keepalive_seconds,
                    tls_params=self.tls_params,
                ) as client:
                    self._client = client
                    self.connected = True
                    self.last_error = None
                    logger.info("Connected to MQTT broker %s", self.settings.mqtt_host)
                    try:
                        await self._subscribe(client)
                        await self._listen(client)
                    finally:
                        self.connected = False
                        self._client = None
            except asyncio.CancelledError:
                break
            except MqttError as exc:
                self.last_error = str(exc)
                logger.warning("MQTT connection error: %s", exc)
            except Exception:
                logger.exception("Unhandled MQTT client error")
            if self._stop.is_set():
                break
            await asyncio.sleep(delay)

    async def _subscribe(self, client: Client) -> None:
        for group in self.subscription_groups:
            try:
                await client.subscribe([(topic, 0) for topic in group])
            except MqttError as exc:
                logger.error("Subscription error for topics %s: %s", list(group), exc)
            else:
                logger.info("Successfully subscribed to topics %s", list(group))

    async def _listen(self, client: Client) -> None:
        async for message in client.messages:
            topic = getattr(message.topic, "value", None)
            if topic is None:
                topic = str(message.topic)
            self.dispatch(topic, message.payload)

    def dispatch(self, topic: str, payload: object) -> None:
        if isinstance(payload, (bytes, bytearray)):
            text = bytes(payload).decode("utf-8", errors="replace")
        elif payload is None:
            text = ""
        else:
            text = str(payload)
        try:
            self.on_message(topic, text)
        except Exception:
            logger.exception("Failed to handle message on %s", topic)
