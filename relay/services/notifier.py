"""Send alert notifications to AWS SNS."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from relay.config import Settings
from relay.schemas import AlertRecord
from relay.utils.tasks import BackgroundTasks

logger = logging.getLogger(__name__)


def format_value(value: float | str) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def compose_message(record: AlertRecord) -> str:
    return (
        f"Alert triggered: {record.sensor}\n"
        f"Value: {format_value(record.value)}\n"
        f"Date: {record.date}\n"
        f"Time: {record.time}\n"
        f"Location: {record.location}"
    )


def build_sns_client(settings: Settings) -> Any:
    secret = settings.aws_secret_access_key.get_secret_value() if settings.aws_secret_access_key else None
    return boto3.client(
        "sns",
        region_name=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=secret,
    )


class NotificationDispatcher:
    """One-shot SNS publish per fired alert. Best effort: failures are logged, never retried."""

    def __init__(self, client: Any, topic_arn: Optional[str]) -> None:
        self._client = client
        self.topic_arn = topic_arn
        self._tasks = BackgroundTasks("sns-publish")

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationDispatcher":
        if not settings.sns_topic_arn:
            logger.warning("No SNS topic configured; alert notifications are disabled")
            return cls(None, None)
        return cls(build_sns_client(settings), settings.sns_topic_arn)

    @property
    def enabled(self) -> bool:
        return self._client is not None and bool(self.topic_arn)

    def dispatch(self, record: AlertRecord) -> None:
        if not self.enabled:
            logger.info("Skipping notification for %s: SNS disabled", record.sensor)
            return
        self._tasks.spawn(self.send(record), name=f"sns-publish-{record.sensor}")

    async def send(self, record: AlertRecord) -> Optional[str]:
        message = compose_message(record)
        try:
            response = await asyncio.to_thread(
                self._client.publish,
                TopicArn=self.topic_arn,
                Message=message,
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("SNS publish error for %s: %s", record.sensor, exc)
            return None
        message_id = response.get("MessageId")
        logger.info("SNS message sent with MessageId %s", message_id)
        return message_id

    async def stop(self) -> None:
        await self._tasks.drain()
