"""
OTP Service Factory

Returns an ``OtpService`` over the in-memory or Redis store based on
ENV_MODE.
"""

import logging
from functools import lru_cache

from food_delivery.core.config import get_settings
from food_delivery.services.otp.base import BaseOtpStore, OtpRecord, is_expired
from food_delivery.services.otp.memory import InMemoryOtpStore
from food_delivery.services.otp.redis_store import RedisOtpStore
from food_delivery.services.otp.service import OtpService

logger = logging.getLogger(__name__)


@lru_cache()
def get_otp_service() -> OtpService:
    """Get the configured OTP service."""
    settings = get_settings()

    if settings.is_development:
        logger.info("OTP Store: Using InMemoryOtpStore (development mode)")
        store: BaseOtpStore = InMemoryOtpStore()
    else:
        logger.info(f"OTP Store: Using RedisOtpStore ({settings.env_mode.value} mode)")
        store = RedisOtpStore()

    return OtpService(
        store,
        length=settings.otp_length,
        ttl_seconds=settings.otp_ttl_seconds,
    )


def reset_otp_service() -> None:
    """Clear the cached service instance."""
    get_otp_service.cache_clear()


__all__ = [
    "get_otp_service",
    "reset_otp_service",
    "BaseOtpStore",
    "InMemoryOtpStore",
    "RedisOtpStore",
    "OtpRecord",
    "OtpService",
    "is_expired",
]
