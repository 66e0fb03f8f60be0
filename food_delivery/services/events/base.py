"""
Event Sink Abstract Base Class

Defines the interface for broadcasting order events to live clients
(restaurant dashboards, customer apps, delivery partner apps).

Only two events exist:
    - order:new      published once after an order is stored
    - order:update   published after every status change or delivery
                     partner assignment

The payload is the full order projection (order, line items, restaurant,
customer, delivery partner). Delivery is fire-and-forget: a failed publish
is reported in the result but never fails the request that triggered it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from food_delivery.core.exceptions import InvalidInputError

ORDER_NEW = "order:new"
ORDER_UPDATE = "order:update"
EVENT_NAMES = frozenset({ORDER_NEW, ORDER_UPDATE})


@dataclass
class PublishResult:
    """Result from publishing an event."""
    success: bool
    event_name: str
    receivers: int = 0
    error_message: Optional[str] = None
    provider: str = "unknown"


@dataclass
class PublishedEvent:
    """An event as recorded by a sink."""
    event_name: str
    payload: dict[str, Any]
    published_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_envelope(self) -> dict[str, Any]:
        return {
            "event": self.event_name,
            "payload": self.payload,
            "published_at": self.published_at.isoformat(),
        }


def check_event_name(event_name: str) -> None:
    if event_name not in EVENT_NAMES:
        raise InvalidInputError(
            f"Unknown event '{event_name}'. Options: {sorted(EVENT_NAMES)}",
            field="event_name",
        )


class BaseEventSink(ABC):
    """Abstract base class for order event sinks."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def publish(self, event_name: str, payload: dict[str, Any]) -> PublishResult:
        """
        Broadcast an order event.

        Args:
            event_name: ``order:new`` or ``order:update``
            payload: JSON-ready order projection

        Returns:
            PublishResult: never raises for transport failures

        Raises:
            InvalidInputError: unknown event name
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check sink connectivity."""
        pass

    async def close(self) -> None:
        """Release connections held by the sink."""
        return None
