"""
OTP Store Abstract Base Class

One-time codes live in an externally owned key/value store with expiry,
never in a module-level dict. The store only keeps records; whether a
record is still valid is decided by ``is_expired``, a pure function of the
record's issue time and the caller's notion of "now".
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional


@dataclass(frozen=True)
class OtpRecord:
    """A stored one-time code."""
    code: str
    issued_at: datetime
    ttl_seconds: int
    attempts: int = 0

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + timedelta(seconds=self.ttl_seconds)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "issued_at": self.issued_at.isoformat(),
            "ttl_seconds": self.ttl_seconds,
            "attempts": self.attempts,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OtpRecord":
        return cls(
            code=data["code"],
            issued_at=datetime.fromisoformat(data["issued_at"]),
            ttl_seconds=int(data["ttl_seconds"]),
            attempts=int(data.get("attempts", 0)),
        )


def is_expired(record: OtpRecord, now: datetime) -> bool:
    """Return ``True`` once ``now`` has reached the record's expiry time."""
    return now >= record.expires_at


class BaseOtpStore(ABC):
    """Abstract base class for OTP stores."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def put(self, key: str, record: OtpRecord) -> None:
        """Store ``record`` under ``key``, replacing any previous code."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[OtpRecord]:
        """Return the record for ``key`` or ``None``."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass
