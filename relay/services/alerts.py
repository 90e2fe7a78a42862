"""Alert log and the evaluator that feeds it."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Iterator, List, Optional, Protocol

from relay import topics
from relay.schemas import AlertRecord
from relay.services.readings import ReadingStore

logger = logging.getLogger(__name__)

DATE_FORMAT = "%m/%d/%Y"
TIME_FORMAT = "%H:%M"
ACTIVE_STATUS = "on"


class Broadcaster(Protocol):
    def emit(self, event: str, payload: dict) -> None: ...


class Dispatcher(Protocol):
    def dispatch(self, record: AlertRecord) -> None: ...


class AlertLog:
    """Append-only, insertion-ordered record list. Cleared in place, never persisted."""

    def __init__(self) -> None:
        self._records: List[AlertRecord] = []

    def append(self, record: AlertRecord) -> None:
        self._records.append(record)

    def clear(self) -> None:
        self._records.clear()

    def records(self) -> List[AlertRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AlertRecord]:
        return iter(list(self._records))


def alert_status(text: str, parsed: Any, *, parse_failed: bool) -> str:
    """Derive the lower-cased status of an alert message.

    A JSON object contributes its ``status`` field; any other JSON value has no
    status. Text that is not JSON at all is itself the status.
    """

    if parse_failed:
        return text.lower()
    if isinstance(parsed, dict):
        status = parsed.get("status")
        if status:
            return str(status).lower()
    return ""


class AlertEvaluator:
    def __init__(
        self,
        readings: ReadingStore,
        log: AlertLog,
        dispatcher: Dispatcher,
        broadcaster: Broadcaster,
        *,
        location: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.readings = readings
        self.log = log
        self.dispatcher = dispatcher
        self.broadcaster = broadcaster
        self.location = location
        self._clock = clock

    def evaluate(self, topic: str, text: str, parsed: Any, *, parse_failed: bool) -> Optional[AlertRecord]:
        status = alert_status(text, parsed, parse_failed=parse_failed)
        logger.info("Alert status for %s: %s", topic, status)
        if status != ACTIVE_STATUS:
            logger.info('No active alert for %s: "%s"', topic, text)
            return None

        record = self._build_record(topic, text)
        self.log.append(record)
        logger.info("New alert: %s", record.model_dump())
        self.dispatcher.dispatch(record)
        self.broadcaster.emit("alert_blink", {"topic": topic, "status": ACTIVE_STATUS})
        return record

    def _build_record(self, topic: str, text: str) -> AlertRecord:
        now = self._clock()
        value: float | str = text
        field = topics.ALERT_READING_FIELDS.get(topic)
        if field is not None:
            known = self.readings.get(field)
            if known is not None:
                value = known
        return AlertRecord(
            sensor=topic,
            value=value,
            date=now.strftime(DATE_FORMAT),
            time=now.strftime(TIME_FORMAT),
            location=self.location,
        )
