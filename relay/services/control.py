"""Republish browser control commands onto the broker."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Protocol, Tuple

from relay import topics

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    def publish(self, topic: str, payload: str) -> None: ...


class DisabledPublisher:
    """Stand-in publisher used when the broker connection is turned off."""

    def publish(self, topic: str, payload: str) -> None:
        logger.warning("MQTT disabled; dropping publish of %s to %s", payload, topic)


class ControlIntake:
    def __init__(self, publisher: Publisher, mapping: Mapping[str, str] = topics.CONTROL_TOPICS) -> None:
        self.publisher = publisher
        self.mapping: Dict[str, str] = dict(mapping)

    def commands(self, data: Any) -> List[Tuple[str, str]]:
        """Topic/payload pairs for every recognized key present in ``data``."""

        if not isinstance(data, dict):
            logger.warning("Ignoring control update that is not an object: %r", data)
            return []
        resolved: List[Tuple[str, str]] = []
        for key, topic in self.mapping.items():
            if key not in data:
                continue
            resolved.append((topic, json.dumps(data[key], separators=(",", ":"), ensure_ascii=False)))
        return resolved

    def handle(self, data: Any) -> int:
        published = 0
        for topic, content in self.commands(data):
            self.publisher.publish(topic, content)
            published += 1
        return published
