"""Publishers responsible for delivering events to external transports."""

from __future__ import annotations

import json
import logging
from typing import Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from cfs_core.events_engine.schemas import EventEnvelope

LOGGER = logging.getLogger("cfs_core.events_engine.publisher")


class EventPublishError(Exception):
    """Raised when a transport rejects an event."""


class EventPublisher(Protocol):
    def publish(self, envelope: EventEnvelope) -> None:
        ...


class NullEventPublisher(EventPublisher):
    """Drops events; used when no topic is configured."""

    def publish(self, envelope: EventEnvelope) -> None:
        LOGGER.debug(
            "events_engine_publish_skipped",
            extra={"event_id": str(envelope.event_id), "event_type": envelope.event_type},
        )


class SnsEventPublisher(EventPublisher):
    """Publishes events to an AWS SNS topic with ``event_type`` as a filterable attribute."""

    def __init__(self, *, topic_arn: str, region_name: str) -> None:
        self._topic_arn = topic_arn
        self._client = boto3.client("sns", region_name=region_name)

    def publish(self, envelope: EventEnvelope) -> None:
        try:
            self._client.publish(
                TopicArn=self._topic_arn,
                Message=json.dumps(envelope.model_dump(mode="json")),
                MessageAttributes={
                    "event_type": {"DataType": "String", "StringValue": envelope.event_type},
                },
            )
        except (BotoCoreError, ClientError) as exc:
            raise EventPublishError(f"SNS publish to {self._topic_arn} failed: {exc}") from exc
