"""
Event Sink Factory

Returns the in-memory or Redis event sink based on ENV_MODE.

Usage:
    from food_delivery.services.events import get_event_sink

    sink = get_event_sink()
    await sink.publish(ORDER_NEW, projection)
"""

import logging
from functools import lru_cache

from food_delivery.core.config import get_settings
from food_delivery.services.events.base import (
    EVENT_NAMES,
    ORDER_NEW,
    ORDER_UPDATE,
    BaseEventSink,
    PublishedEvent,
    PublishResult,
)
from food_delivery.services.events.memory import InMemoryEventSink
from food_delivery.services.events.redis_sink import RedisEventSink

logger = logging.getLogger(__name__)


@lru_cache()
def get_event_sink() -> BaseEventSink:
    """Get the configured event sink."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Event Sink: Using InMemoryEventSink (development mode)")
        return InMemoryEventSink()
    else:
        logger.info(f"Event Sink: Using RedisEventSink ({settings.env_mode.value} mode)")
        return RedisEventSink()


def reset_event_sink() -> None:
    """Clear the cached sink instance."""
    get_event_sink.cache_clear()


__all__ = [
    "get_event_sink",
    "reset_event_sink",
    "BaseEventSink",
    "InMemoryEventSink",
    "RedisEventSink",
    "PublishResult",
    "PublishedEvent",
    "EVENT_NAMES",
    "ORDER_NEW",
    "ORDER_UPDATE",
]
