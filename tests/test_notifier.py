from __future__ import annotations

import asyncio
from typing import Dict, List

from botocore.exceptions import ClientError

from relay.config import Settings
from relay.schemas import AlertRecord
from relay.services.notifier import NotificationDispatcher, compose_message

TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:home-alerts"


class _FakeSns:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[Dict[str, str]] = []

    def publish(self, **kwargs: str) -> Dict[str, str]:
        self.calls.append(kwargs)
        if self.fail:
            raise ClientError({"Error": {"Code": "AuthorizationError", "Message": "denied"}}, "Publish")
        return {"MessageId": "msg-1"}


def _record(value: float | str = 31.0) -> AlertRecord:
    return AlertRecord(sensor="Alert_temp", value=value, date="03/05/2024", time="07:04", location="Kitchen")


def test_compose_message_lists_alert_fields() -> None:
    assert compose_message(_record()) == (
        "Alert triggered: Alert_temp\nValue: 31\nDate: 03/05/2024\nTime: 07:04\nLocation: Kitchen"
    )
    assert "Value: 31.5\n" in compose_message(_record(31.5))
    assert "Value: ON\n" in compose_message(_record("ON"))


def test_send_publishes_to_topic() -> None:
    sns = _FakeSns()
    dispatcher = NotificationDispatcher(sns, TOPIC_ARN)

    message_id = asyncio.run(dispatcher.send(_record()))

    assert message_id == "msg-1"
    assert sns.calls == [{"TopicArn": TOPIC_ARN, "Message": compose_message(_record())}]


def test_send_failure_is_logged_and_swallowed(caplog) -> None:
    dispatcher = NotificationDispatcher(_FakeSns(fail=True), TOPIC_ARN)

    assert asyncio.run(dispatcher.send(_record())) is None
    assert any("SNS publish error" in record.getMessage() for record in caplog.records)


def test_dispatch_is_fire_and_forget() -> None:
    async def runner() -> None:
        sns = _FakeSns()
        dispatcher = NotificationDispatcher(sns, TOPIC_ARN)
        dispatcher.dispatch(_record())
        assert sns.calls == []
        await dispatcher.stop()
        assert len(sns.calls) == 1

    asyncio.run(runner())


def test_dispatcher_without_topic_is_disabled() -> None:
    settings = Settings(sns_topic_arn=None)

    dispatcher = NotificationDispatcher.from_settings(settings)

    assert not dispatcher.enabled
    dispatcher.dispatch(_record())
