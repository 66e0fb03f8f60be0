"""
Order Pricing

Turns a cart into priced line items and order totals.

Rules:
    - unit price is the discounted price when present, else the base price
    - items amount is the exact sum of unit price x quantity
    - tax = items amount x tax rate
    - delivery fee = distance (km) x per-km rate
    - grand total = items amount + tax + delivery fee

All arithmetic is done on ``Decimal``. Monetary outputs are rounded once,
at the end, to the currency's minor unit with ROUND_HALF_UP; line totals
are never rounded on the way.

The calculator is a pure function: no clock, no I/O, no module state.
Catalog resolution is delegated to the ``lookup`` callable.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from food_delivery.core.exceptions import InvalidInputError, NotFoundError

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number, field_name: str) -> Decimal:
    """
    Convert a caller-supplied number to ``Decimal``.

    Floats go through ``str`` so their shortest repr is used rather than
    their binary expansion (``0.1`` becomes ``Decimal("0.1")``).
    """
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(f"{field_name} must be a number", field=field_name)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise InvalidInputError(f"{field_name} must be a number", field=field_name)
    if not result.is_finite():
        raise InvalidInputError(f"{field_name} must be finite", field=field_name)
    return result


def round_money(amount: Decimal) -> Decimal:
    """Round to the minor currency unit, half up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CatalogItem:
    """A purchasable menu entry, as seen by the pricing engine."""
    id: str
    base_price: Decimal
    discounted_price: Optional[Decimal] = None

    def __post_init__(self):
        if self.base_price is None or self.base_price < 0:
            raise InvalidInputError(
                f"Menu item {self.id} has an invalid base price", field="base_price"
            )
        if self.discounted_price is not None and not (
            0 <= self.discounted_price <= self.base_price
        ):
            raise InvalidInputError(
                f"Menu item {self.id}: discounted price must be between 0 and the base price",
                field="discounted_price",
            )

    @property
    def unit_price(self) -> Decimal:
        if self.discounted_price is not None:
            return self.discounted_price
        return self.base_price


@dataclass(frozen=True)
class LineItemRequest:
    """One cart entry: a catalog item at a quantity, plus opaque addons."""
    catalog_item_id: str
    quantity: int
    addons: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class PricedLineItem:
    """A line item with its price fixed at order time."""
    catalog_item_id: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    base_price: Decimal
    addons: Optional[Mapping[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "catalog_item_id": self.catalog_item_id,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "base_price": self.base_price,
            "line_total": self.line_total,
            "addons": dict(self.addons) if self.addons is not None else None,
        }


@dataclass(frozen=True)
class OrderTotals:
    """Order-level money, each value rounded to 2 decimal places."""
    items_amount: Decimal
    tax: Decimal
    delivery_fee: Decimal
    grand_total: Decimal

    def to_dict(self) -> dict[str, Decimal]:
        return {
            "items_amount": self.items_amount,
            "tax": self.tax,
            "delivery_fee": self.delivery_fee,
            "grand_total": self.grand_total,
        }


CatalogLookup = Callable[[str], Optional[CatalogItem]]


def _check_quantity(request: LineItemRequest, position: int) -> None:
    quantity = request.quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidInputError(
            f"Quantity for item {request.catalog_item_id} must be an integer >= 1",
            field=f"items[{position}].quantity",
        )


def _non_negative(value: Number, field_name: str) -> Decimal:
    amount = to_decimal(value, field_name)
    if amount < 0:
        raise InvalidInputError(f"{field_name} must be >= 0", field=field_name)
    return amount


def price(
    restaurant_id: str,
    line_item_requests: Sequence[LineItemRequest],
    distance_km: Number,
    tax_rate: Number,
    per_km_rate: Number,
    lookup: CatalogLookup,
) -> tuple[tuple[PricedLineItem, ...], OrderTotals]:
    """
    Price a cart.

    Args:
        restaurant_id: Restaurant the cart belongs to
        line_item_requests: Non-empty, ordered cart entries
        distance_km: Delivery distance, >= 0
        tax_rate: Tax rate as a fraction (0.05 for 5%), >= 0
        per_km_rate: Delivery charge per kilometre, >= 0
        lookup: Resolves a catalog item id, returning None when unknown

    Returns:
        (priced line items in cart order, order totals)

    Raises:
        InvalidInputError: empty cart, bad quantity, negative distance/rate
        NotFoundError: a catalog item id could not be resolved
    """
    if not restaurant_id:
        raise InvalidInputError("restaurant_id is required", field="restaurant_id")
    if not line_item_requests:
        raise InvalidInputError("Order must contain at least one item", field="items")

    distance = _non_negative(distance_km, "distance_km")
    tax_fraction = _non_negative(tax_rate, "tax_rate")
    km_rate = _non_negative(per_km_rate, "per_km_rate")

    for position, request in enumerate(line_item_requests):
        _check_quantity(request, position)

    priced: list[PricedLineItem] = []
    items_amount = Decimal("0")

    for request in line_item_requests:
        item = lookup(request.catalog_item_id)
        if item is None:
            raise NotFoundError("Menu item", request.catalog_item_id)

        unit_price = item.unit_price
        line_total = unit_price * request.quantity
        items_amount += line_total

        priced.append(
            PricedLineItem(
                catalog_item_id=request.catalog_item_id,
                quantity=request.quantity,
                unit_price=unit_price,
                line_total=line_total,
                base_price=item.base_price,
                addons=request.addons,
            )
        )

    tax = items_amount * tax_fraction
    delivery_fee = distance * km_rate
    grand_total = items_amount + tax + delivery_fee

    totals = OrderTotals(
        items_amount=round_money(items_amount),
        tax=round_money(tax),
        delivery_fee=round_money(delivery_fee),
        grand_total=round_money(grand_total),
    )
    return tuple(priced), totals
