"""Notification sink: hands domain events to the log stream.

A sink failure is logged and swallowed; the operation that raised the
event has already committed and must not be reported as failed.
"""

from __future__ import annotations

import dataclasses

import structlog

from marketplace.domain.events import DomainEvent, EventPublisher

logger = structlog.get_logger(__name__)


class LoggingEventPublisher(EventPublisher):

    def __init__(self, event_logger=None) -> None:
        self._logger = event_logger or structlog.get_logger("marketplace.events")

    def publish(self, event: DomainEvent) -> None:
        try:
            payload = dataclasses.asdict(event)
            payload["occurred_at"] = event.occurred_at.isoformat()
            self._logger.info(event.name, **payload)
        except Exception:
            logger.exception("event_publish_failed", event=event.name)
