"""
Redis Event Sink

Production implementation: publishes a JSON envelope on a Redis pub/sub
channel. The websocket gateway subscribes to that channel and fans events
out to connected clients.

Envelope:
    {"event": "order:update", "payload": {...}, "published_at": "..."}
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from food_delivery.core.config import get_settings
from food_delivery.services.events.base import (
    BaseEventSink,
    PublishedEvent,
    PublishResult,
    check_event_name,
)

logger = logging.getLogger(__name__)


class RedisEventSink(BaseEventSink):
    """Event sink backed by Redis PUBLISH."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        channel: Optional[str] = None,
        client: Optional[aioredis.Redis] = None,
    ):
        settings = get_settings()
        self.channel = channel or settings.events_channel
        self.client = client or aioredis.from_url(
            redis_url or settings.redis_url,
            decode_responses=True,
        )
        logger.info(f"RedisEventSink initialized (channel={self.channel})")

    @property
    def provider_name(self) -> str:
        return "redis"

    async def publish(self, event_name: str, payload: dict[str, Any]) -> PublishResult:
        """Publish the event; transport errors are logged and reported."""
        check_event_name(event_name)

        message = json.dumps(
            PublishedEvent(event_name=event_name, payload=payload).to_envelope(),
            default=str,
        )

        try:
            receivers = await self.client.publish(self.channel, message)
        except RedisError as e:
            logger.error(f"Redis publish of {event_name} failed: {e}")
            return PublishResult(
                success=False,
                event_name=event_name,
                error_message=str(e),
                provider="redis",
            )

        logger.info(
            f"Event {event_name} for order {payload.get('id', 'unknown')} "
            f"published to {receivers} subscriber(s)"
        )
        return PublishResult(
            success=True,
            event_name=event_name,
            receivers=receivers,
            provider="redis",
        )

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()
