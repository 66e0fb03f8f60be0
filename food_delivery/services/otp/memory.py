"""
In-Memory OTP Store

Per-instance dict, for development and tests. Expired records are left in
place until read; ``OtpService`` removes them.
"""

import logging
from typing import Optional

from food_delivery.services.otp.base import BaseOtpStore, OtpRecord

logger = logging.getLogger(__name__)


class InMemoryOtpStore(BaseOtpStore):

    def __init__(self):
        self._records: dict[str, OtpRecord] = {}

    @property
    def provider_name(self) -> str:
        return "memory"

    async def put(self, key: str, record: OtpRecord) -> None:
        self._records[key] = record

    async def get(self, key: str) -> Optional[OtpRecord]:
        return self._records.get(key)

    async def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def __len__(self) -> int:
        return len(self._records)
