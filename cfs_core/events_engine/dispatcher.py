"""Event dispatcher that builds envelopes and hands them to a publisher."""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

from cfs_core.core.config import get_settings
from cfs_core.events_engine.publisher import (
    EventPublisher,
    EventPublishError,
    NullEventPublisher,
    SnsEventPublisher,
)
from cfs_core.events_engine.schemas import EventEnvelope

_dispatcher: Optional["EventDispatcher"] = None

LOGGER = logging.getLogger("cfs_core.events_engine.dispatcher")


class EventDispatcher:
    """Publishes domain events, retrying transport failures a bounded number of times."""

    def __init__(self, *, publisher: EventPublisher, default_source: str, max_attempts: int = 1) -> None:
        self._publisher = publisher
        self._default_source = default_source
        self._max_attempts = max(max_attempts, 1)

    def publish_event(
        self,
        *,
        event_type: str,
        payload: Dict[str, object],
        correlation_id: Optional[str] = None,
    ) -> EventEnvelope:
        envelope = EventEnvelope(
            event_type=event_type,
            payload=payload,
            source=self._default_source,
            correlation_id=correlation_id,
        )

        for attempt in range(1, self._max_attempts + 1):
            try:
                self._publisher.publish(envelope)
                break
            except EventPublishError:
                LOGGER.warning(
                    "events_engine_publish_retry",
                    extra={"event_id": str(envelope.event_id), "event_type": event_type, "attempt": attempt},
                )
                if attempt == self._max_attempts:
                    raise

        LOGGER.info(
            "events_engine_published",
            extra={"event_id": str(envelope.event_id), "event_type": event_type, "source": envelope.source},
        )
        return envelope


def get_event_dispatcher() -> EventDispatcher:
    """Return the singleton event dispatcher for the application."""

    global _dispatcher
    if _dispatcher is not None:
        return _dispatcher

    settings = get_settings()
    if settings.event_topic_arn:
        region = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or "us-east-1"
        publisher: EventPublisher = SnsEventPublisher(topic_arn=settings.event_topic_arn, region_name=region)
    else:
        publisher = NullEventPublisher()

    _dispatcher = EventDispatcher(
        publisher=publisher,
        default_source=settings.event_source,
        max_attempts=settings.event_publish_attempts,
    )
    return _dispatcher


def set_event_dispatcher(dispatcher: Optional[EventDispatcher]) -> None:
    """Override the cached dispatcher (primarily for tests)."""

    global _dispatcher
    _dispatcher = dispatcher
