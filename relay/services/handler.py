"""Route inbound broker messages to the reading store, alert evaluator and push channel."""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional

from relay import topics
from relay.services.alerts import AlertEvaluator, Broadcaster
from relay.services.state import RelayState

logger = logging.getLogger(__name__)


def _to_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if parsed != parsed:  # NaN
        return None
    return parsed


class MessageHandler:
    """Apply one broker message to the relay state.

    ``handle`` never awaits: the state read/modify/write for a message runs to
    completion before the next message or HTTP request is served. Outbound
    I/O (broadcasts, notifications) is scheduled in the background.
    """

    def __init__(self, state: RelayState, evaluator: AlertEvaluator, broadcaster: Broadcaster) -> None:
        self.state = state
        self.evaluator = evaluator
        self.broadcaster = broadcaster
        self._routes: Dict[str, Callable[[str, Any], None]] = {
            topics.TEMPERATURE: self._numeric("temperature", "temperature"),
            topics.HUMIDITY: self._numeric("humidity", "humidity"),
            topics.LDR: self._numeric("darkness", "darkness"),
            topics.FAN: self._status("fan_status", "fan_status"),
            topics.LIGHT: self._status("light_status", "light_status"),
            topics.FAN_USAGE: self._numeric("fan_usage_percentage", "percentage"),
            topics.LIGHT_USAGE: self._numeric("light_usage_percentage", "percentage"),
        }

    def handle(self, topic: str, payload: str) -> None:
        text = payload.strip()
        logger.info("Received [%s]: %s", topic, text)

        parsed: Any = None
        parse_failed = False
        try:
            parsed = json.loads(text)
        except (ValueError, RecursionError) as exc:
            parse_failed = True
            logger.warning("JSON parsing error for %s: %s", topic, exc)

        route = self._routes.get(topic)
        if route is not None and isinstance(parsed, dict):
            route(topic, parsed)
        elif topic in topics.ALERT_TOPICS:
            self.evaluator.evaluate(topic, text, parsed, parse_failed=parse_failed)

        self.broadcaster.emit("mqtt_message", {"topic": topic, "message": text})

    def _numeric(self, field: str, key: str) -> Callable[[str, Dict[str, Any]], None]:
        def apply(topic: str, data: Dict[str, Any]) -> None:
            raw = data.get(key)
            value = _to_number(raw)
            if value is None:
                logger.warning("Non-numeric %s in %s payload: %r", key, topic, raw)
            self.state.readings.set(field, value)
            logger.info("%s: %s", field, value)

        return apply

    def _status(self, field: str, event: str) -> Callable[[str, Dict[str, Any]], None]:
        def apply(topic: str, data: Dict[str, Any]) -> None:
            raw = data.get("status")
            status = None if raw is None else str(raw).lower()
            self.state.readings.set(field, status)
            logger.info("%s: %s", field, status)
            self.broadcaster.emit(event, {"status": status})

        return apply
