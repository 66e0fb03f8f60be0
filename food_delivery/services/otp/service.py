"""
OTP Service

Issues and verifies numeric one-time codes on top of a ``BaseOtpStore``.

    - a new code replaces any outstanding code for the same key
    - codes are single use: a successful verify deletes the record
    - expired codes and codes with too many failed attempts are deleted
"""

import hmac
import logging
import secrets
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from food_delivery.core.exceptions import InvalidInputError
from food_delivery.services.otp.base import BaseOtpStore, OtpRecord, is_expired

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OtpService:

    def __init__(
        self,
        store: BaseOtpStore,
        length: int = 6,
        ttl_seconds: int = 300,
        max_attempts: int = 5,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.length = length
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts
        self.clock = clock

    def _generate(self) -> str:
        return "".join(str(secrets.randbelow(10)) for _ in range(self.length))

    @staticmethod
    def _normalize_key(key: str) -> str:
        key = (key or "").strip().lower()
        if not key:
            raise InvalidInputError("OTP key is required", field="key")
        return key

    async def issue(self, key: str) -> OtpRecord:
        """Create and store a fresh code for ``key``."""
        key = self._normalize_key(key)
        record = OtpRecord(
            code=self._generate(),
            issued_at=self.clock(),
            ttl_seconds=self.ttl_seconds,
        )
        await self.store.put(key, record)
        logger.info(f"OTP issued for {key} (expires {record.expires_at.isoformat()})")
        return record

    async def verify(self, key: str, code: str) -> bool:
        """Check ``code`` against the stored code for ``key``."""
        key = self._normalize_key(key)
        record = await self.store.get(key)
        if record is None:
            logger.info(f"OTP verify for {key}: no outstanding code")
            return False

        if is_expired(record, self.clock()):
            await self.store.delete(key)
            logger.info(f"OTP verify for {key}: code expired")
            return False

        if hmac.compare_digest(record.code, str(code)):
            await self.store.delete(key)
            logger.info(f"OTP verified for {key}")
            return True

        attempts = record.attempts + 1
        if attempts >= self.max_attempts:
            await self.store.delete(key)
            logger.warning(f"OTP for {key} discarded after {attempts} failed attempts")
        else:
            await self.store.put(key, replace(record, attempts=attempts))
            logger.info(f"OTP verify for {key}: wrong code ({attempts}/{self.max_attempts})")
        return False
