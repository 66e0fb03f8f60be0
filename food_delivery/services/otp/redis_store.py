"""
Redis OTP Store

Records are stored as JSON under ``otp:<key>`` with a Redis TTL equal to
the code's lifetime, so abandoned codes clean themselves up. Validity is
still decided by ``is_expired`` on the stored issue time.
"""

import json
import logging
from typing import Optional

import redis.asyncio as aioredis

from food_delivery.core.config import get_settings
from food_delivery.services.otp.base import BaseOtpStore, OtpRecord

logger = logging.getLogger(__name__)

KEY_PREFIX = "otp:"


class RedisOtpStore(BaseOtpStore):

    def __init__(
        self,
        redis_url: Optional[str] = None,
        client: Optional[aioredis.Redis] = None,
    ):
        self.client = client or aioredis.from_url(
            redis_url or get_settings().redis_url,
            decode_responses=True,
        )
        logger.info("RedisOtpStore initialized")

    @property
    def provider_name(self) -> str:
        return "redis"

    async def put(self, key: str, record: OtpRecord) -> None:
        await self.client.set(
            KEY_PREFIX + key,
            json.dumps(record.to_dict()),
            ex=record.ttl_seconds,
        )

    async def get(self, key: str) -> Optional[OtpRecord]:
        raw = await self.client.get(KEY_PREFIX + key)
        if raw is None:
            return None
        return OtpRecord.from_dict(json.loads(raw))

    async def delete(self, key: str) -> None:
        await self.client.delete(KEY_PREFIX + key)
