"""
In-Memory Event Sink

Records published events on the instance and logs them. Used in
development mode and in tests, where no Redis is available.
"""

import logging
from typing import Any, Optional

from food_delivery.services.events.base import (
    BaseEventSink,
    PublishedEvent,
    PublishResult,
    check_event_name,
)

logger = logging.getLogger(__name__)


class InMemoryEventSink(BaseEventSink):
    """Event sink that keeps every event in a list."""

    def __init__(self, max_events: Optional[int] = 1000):
        self.max_events = max_events
        self.events: list[PublishedEvent] = []
        logger.info(f"InMemoryEventSink initialized (max_events={max_events})")

    @property
    def provider_name(self) -> str:
        return "memory"

    async def publish(self, event_name: str, payload: dict[str, Any]) -> PublishResult:
        """Record the event."""
        check_event_name(event_name)

        self.events.append(PublishedEvent(event_name=event_name, payload=payload))
        if self.max_events is not None and len(self.events) > self.max_events:
            del self.events[: len(self.events) - self.max_events]

        logger.info(f"Event {event_name} recorded for order {payload.get('id', 'unknown')}")

        return PublishResult(
            success=True,
            event_name=event_name,
            receivers=1,
            provider="memory",
        )

    def events_named(self, event_name: str) -> list[PublishedEvent]:
        return [e for e in self.events if e.event_name == event_name]

    def clear(self) -> None:
        self.events.clear()

    async def health_check(self) -> bool:
        """In-memory sink is always healthy."""
        return True
