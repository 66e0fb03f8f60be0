"""
Order Aggregate

The order value object and the only ways it may change after creation:
a validated status transition or a delivery partner assignment. Each
operation returns a new ``Order``; pricing fields are never rewritten.
"""

import enum
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

from food_delivery.core.exceptions import InvalidInputError
from food_delivery.engine.lifecycle import (
    INITIAL_STATUS,
    OrderStatus,
    StatusLike,
    is_terminal,
    transition,
)
from food_delivery.engine.pricing import (
    CatalogLookup,
    LineItemRequest,
    Number,
    OrderTotals,
    PricedLineItem,
    price,
    to_decimal,
)


class PaymentType(str, enum.Enum):
    """How the customer pays."""
    COD = "COD"
    ONLINE = "ONLINE"


@dataclass(frozen=True)
class Order:
    """Aggregate root for a placed order."""
    id: str
    restaurant_id: str
    customer_id: str
    items: tuple[PricedLineItem, ...]
    totals: OrderTotals
    status: OrderStatus
    placed_at: datetime
    payment_type: PaymentType
    distance_km: Decimal
    notes: Optional[str] = None
    address: Optional[str] = None
    delivery_partner_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "customer_id": self.customer_id,
            "items": [item.to_dict() for item in self.items],
            **self.totals.to_dict(),
            "status": self.status.value,
            "placed_at": self.placed_at.isoformat(),
            "payment_type": self.payment_type.value,
            "distance_km": self.distance_km,
            "notes": self.notes,
            "address": self.address,
            "delivery_partner_id": self.delivery_partner_id,
        }


def _parse_payment_type(value: Any) -> PaymentType:
    try:
        return PaymentType(value)
    except ValueError:
        raise InvalidInputError(
            f"Invalid payment type '{value}'. Options: {[p.value for p in PaymentType]}",
            field="payment_type",
        )


def place_order(
    order_id: str,
    restaurant_id: str,
    customer_id: str,
    requests: Sequence[LineItemRequest],
    distance_km: Number,
    payment_type: Any,
    tax_rate: Number,
    per_km_rate: Number,
    lookup: CatalogLookup,
    placed_at: datetime,
    notes: Optional[str] = None,
    address: Optional[str] = None,
) -> Order:
    """
    Price a cart and build a new order in the initial status.

    ``placed_at`` comes from the caller so the engine never reads the clock.
    """
    if not customer_id:
        raise InvalidInputError("customer_id is required", field="customer_id")
    payment = _parse_payment_type(payment_type)

    items, totals = price(
        restaurant_id=restaurant_id,
        line_item_requests=requests,
        distance_km=distance_km,
        tax_rate=tax_rate,
        per_km_rate=per_km_rate,
        lookup=lookup,
    )

    return Order(
        id=order_id,
        restaurant_id=restaurant_id,
        customer_id=customer_id,
        items=items,
        totals=totals,
        status=INITIAL_STATUS,
        placed_at=placed_at,
        payment_type=payment,
        distance_km=to_decimal(distance_km, "distance_km"),
        notes=notes,
        address=address,
    )


def advance(order: Order, requested: StatusLike) -> Order:
    """Return a copy of ``order`` moved to ``requested``, or raise."""
    return replace(order, status=transition(order.status, requested))


def assign_delivery_partner(order: Order, partner_id: str) -> Order:
    """Return a copy of ``order`` with a delivery partner attached."""
    if not partner_id:
        raise InvalidInputError("delivery_partner_id is required", field="delivery_partner_id")
    if is_terminal(order.status):
        raise InvalidInputError(
            f"Cannot assign a delivery partner to a {order.status.value} order",
            field="delivery_partner_id",
        )
    return replace(order, delivery_partner_id=partner_id)
