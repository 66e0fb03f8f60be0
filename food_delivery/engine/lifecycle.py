"""Order status enumeration, allowed transitions and status classification."""

import enum
from typing import Union

from food_delivery.core.exceptions import IllegalTransitionError, InvalidInputError


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DISPATCH = "dispatch"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


INITIAL_STATUS = OrderStatus.PENDING

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({
        OrderStatus.PREPARING,
        OrderStatus.CANCELLED,
        # restaurant declines before accepting
        OrderStatus.REJECTED,
    }),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.DISPATCH, OrderStatus.CANCELLED}),
    # already left the restaurant: no cancel, no reject
    OrderStatus.DISPATCH: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REJECTED: frozenset(),
}

# Live operational views
ACTIVE_STATUSES = frozenset({
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.READY,
})

# Archival / paginated views
HISTORY_STATUSES = frozenset({
    OrderStatus.DISPATCH,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.REJECTED,
})

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

if ACTIVE_STATUSES & HISTORY_STATUSES or ACTIVE_STATUSES | HISTORY_STATUSES != set(OrderStatus):
    raise RuntimeError("Active and history statuses must partition OrderStatus")


StatusLike = Union[OrderStatus, str]


def parse_status(value: StatusLike) -> OrderStatus:
    """Coerce a status value or its string form into ``OrderStatus``."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        valid = [s.value for s in OrderStatus]
        raise InvalidInputError(
            f"Invalid status '{value}'. Options: {valid}", field="status"
        )


def allowed_transitions(status: StatusLike) -> frozenset[OrderStatus]:
    """Return the statuses reachable in one step from ``status``."""
    return TRANSITIONS[parse_status(status)]


def can_transition(current: StatusLike, requested: StatusLike) -> bool:
    """Return ``True`` if an order can move from ``current`` to ``requested``."""
    return parse_status(requested) in allowed_transitions(current)


def transition(current: StatusLike, requested: StatusLike) -> OrderStatus:
    """
    Validate a status change.

    Returns:
        The new status

    Raises:
        InvalidInputError: either value is not a known status
        IllegalTransitionError: ``requested`` is not reachable from ``current``
    """
    src = parse_status(current)
    dst = parse_status(requested)

    if src in TERMINAL_STATUSES:
        raise IllegalTransitionError(
            src, dst, message=f"Order is already '{src.value}' and cannot change"
        )
    if dst not in TRANSITIONS[src]:
        raise IllegalTransitionError(src, dst)
    return dst


def is_active(status: StatusLike) -> bool:
    return parse_status(status) in ACTIVE_STATUSES


def is_history(status: StatusLike) -> bool:
    return parse_status(status) in HISTORY_STATUSES


def is_terminal(status: StatusLike) -> bool:
    return parse_status(status) in TERMINAL_STATUSES
