from datetime import datetime, timezone
from decimal import Decimal

import pytest

from food_delivery.core.exceptions import (
    IllegalTransitionError,
    InvalidInputError,
    NotFoundError,
)
from food_delivery.engine import (
    CatalogItem,
    LineItemRequest,
    OrderStatus,
    PaymentType,
    advance,
    assign_delivery_partner,
    place_order,
)

PLACED_AT = datetime(2025, 3, 1, 12, 30, tzinfo=timezone.utc)
CATALOG = {
    "dal": CatalogItem(id="dal", base_price=Decimal("150.00")),
    "naan": CatalogItem(id="naan", base_price=Decimal("40.00"), discounted_price=Decimal("35.00")),
}


def _place(**overrides):
    kwargs = dict(
        order_id="order-1",
        restaurant_id="rest-1",
        customer_id="cust-1",
        requests=[LineItemRequest("dal", 1), LineItemRequest("naan", 4)],
        distance_km=Decimal("3.5"),
        payment_type="ONLINE",
        tax_rate=Decimal("0.05"),
        per_km_rate=Decimal("10"),
        lookup=CATALOG.get,
        placed_at=PLACED_AT,
        notes="Ring the bell",
    )
    kwargs.update(overrides)
    return place_order(**kwargs)


def test_new_order_is_pending_and_priced():
    order = _place()
    assert order.status is OrderStatus.PENDING
    assert order.payment_type is PaymentType.ONLINE
    assert order.placed_at == PLACED_AT
    assert order.totals.items_amount == Decimal("290.00")
    assert order.totals.tax == Decimal("14.50")
    assert order.totals.delivery_fee == Decimal("35.00")
    assert order.totals.grand_total == Decimal("339.50")
    assert order.delivery_partner_id is None


def test_invalid_payment_type():
    with pytest.raises(InvalidInputError) as excinfo:
        _place(payment_type="BARTER")
    assert excinfo.value.field == "payment_type"


def test_missing_item_creates_nothing():
    with pytest.raises(NotFoundError):
        _place(requests=[LineItemRequest("dal", 1), LineItemRequest("paneer", 1)])


def test_advance_returns_new_order_and_keeps_pricing():
    order = _place()
    preparing = advance(order, "preparing")

    assert preparing.status is OrderStatus.PREPARING
    assert order.status is OrderStatus.PENDING
    assert preparing.totals == order.totals
    assert preparing.items == order.items
    assert preparing.placed_at == order.placed_at


def test_failed_advance_leaves_order_untouched():
    order = advance(advance(_place(), "preparing"), "ready")
    with pytest.raises(IllegalTransitionError):
        advance(order, "rejected")
    assert order.status is OrderStatus.READY


def test_full_lifecycle():
    order = _place()
    for status in ("preparing", "ready", "dispatch", "delivered"):
        order = advance(order, status)
    assert order.status is OrderStatus.DELIVERED


def test_assign_delivery_partner():
    order = assign_delivery_partner(_place(), "dp-9")
    assert order.delivery_partner_id == "dp-9"


def test_cannot_assign_partner_to_closed_order():
    cancelled = advance(_place(), "cancelled")
    with pytest.raises(InvalidInputError):
        assign_delivery_partner(cancelled, "dp-9")


def test_to_dict_keeps_money_as_decimal():
    data = _place().to_dict()
    assert data["grand_total"] == Decimal("339.50")
    assert data["status"] == "pending"
    assert [i["catalog_item_id"] for i in data["items"]] == ["dal", "naan"]
