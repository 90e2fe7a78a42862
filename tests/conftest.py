from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Tuple

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from relay.config import get_settings  # noqa: E402
from relay.schemas import AlertRecord  # noqa: E402


class RecordingBroadcaster:
    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, object]]] = []

    def emit(self, event: str, payload: Dict[str, object]) -> None:
        self.events.append((event, dict(payload)))

    def named(self, event: str) -> List[Dict[str, object]]:
        return [payload for name, payload in self.events if name == event]


class RecordingDispatcher:
    def __init__(self) -> None:
        self.records: List[AlertRecord] = []

    def dispatch(self, record: AlertRecord) -> None:
        self.records.append(record)


class RecordingPublisher:
    def __init__(self) -> None:
        self.published: List[Tuple[str, str]] = []

    def publish(self, topic: str, payload: str) -> None:
        self.published.append((topic, payload))


def fixed_clock() -> datetime:
    return datetime(2024, 3, 5, 7, 4, 59)


@pytest.fixture(autouse=True)
def reset_settings_env(monkeypatch):
    monkeypatch.setenv("RELAY_MQTT_ENABLED", "false")
    monkeypatch.setenv("RELAY_STATIC_DIR", "")
    monkeypatch.delenv("RELAY_SNS_TOPIC_ARN", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
