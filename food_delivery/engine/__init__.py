"""
Order Pricing & Lifecycle Engine

Pure, synchronous domain logic: cart pricing, the order aggregate and the
order status state machine. Nothing in this package touches the database,
the network or the clock.
"""

from food_delivery.engine.lifecycle import (
    ACTIVE_STATUSES,
    HISTORY_STATUSES,
    INITIAL_STATUS,
    TERMINAL_STATUSES,
    TRANSITIONS,
    OrderStatus,
    allowed_transitions,
    can_transition,
    is_active,
    is_history,
    is_terminal,
    parse_status,
    transition,
)
from food_delivery.engine.order import (
    Order,
    PaymentType,
    advance,
    assign_delivery_partner,
    place_order,
)
from food_delivery.engine.pricing import (
    CatalogItem,
    LineItemRequest,
    OrderTotals,
    PricedLineItem,
    price,
    round_money,
)

__all__ = [
    "ACTIVE_STATUSES",
    "HISTORY_STATUSES",
    "INITIAL_STATUS",
    "TERMINAL_STATUSES",
    "TRANSITIONS",
    "OrderStatus",
    "allowed_transitions",
    "can_transition",
    "is_active",
    "is_history",
    "is_terminal",
    "parse_status",
    "transition",
    "Order",
    "PaymentType",
    "advance",
    "assign_delivery_partner",
    "place_order",
    "CatalogItem",
    "LineItemRequest",
    "OrderTotals",
    "PricedLineItem",
    "price",
    "round_money",
]
