"""
Repositories

Thin async data access on top of the ORM models. The pricing engine never
sees a session: ``CatalogRepository.load`` fetches every menu item a cart
references in one query and the resulting dict's ``get`` is handed to the
engine as its catalog lookup.

``OrderRepository.update_status`` is the persistence half of the status
state machine: it writes the new status only if the stored status still
equals the one the transition was validated against.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from food_delivery.core.exceptions import (
    InvalidInputError,
    NotFoundError,
    StaleStatusError,
)
from food_delivery.engine import (
    ACTIVE_STATUSES,
    HISTORY_STATUSES,
    CatalogItem,
    Order as DomainOrder,
    OrderStatus,
    OrderTotals,
    PricedLineItem,
)
from food_delivery.models import (
    MONEY_LIMIT,
    Customer,
    DeliveryPartner,
    MenuItem,
    Order,
    OrderItem,
    OrderReview,
    Restaurant,
)

logger = logging.getLogger(__name__)


def _projection_options():
    return (
        selectinload(Order.items).selectinload(OrderItem.menu_item),
        selectinload(Order.restaurant),
        selectinload(Order.customer),
        selectinload(Order.delivery_partner),
    )


def _review_options():
    return (
        selectinload(OrderReview.order),
        selectinload(OrderReview.customer),
        selectinload(OrderReview.restaurant),
        selectinload(OrderReview.delivery_partner),
    )


def _decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class CatalogRepository:
    """Menu item reads and writes."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load(self, restaurant_id: str, item_ids: Iterable[str]) -> dict[str, CatalogItem]:
        """
        Fetch the restaurant's menu items with the given ids.

        Ids that are unknown, or belong to another restaurant, are simply
        absent from the result.
        """
        ids = set(item_ids)
        if not ids:
            return {}

        result = await self.session.execute(
            select(MenuItem).where(
                MenuItem.id.in_(list(ids)),
                MenuItem.restaurant_id == restaurant_id,
            )
        )
        return {
            row.id: CatalogItem(
                id=row.id,
                base_price=_decimal(row.price),
                discounted_price=_decimal(row.discounted_price),
            )
            for row in result.scalars()
        }

    async def list_menu(self, restaurant_id: str) -> list[MenuItem]:
        result = await self.session.execute(
            select(MenuItem)
            .where(MenuItem.restaurant_id == restaurant_id)
            .order_by(MenuItem.created_at, MenuItem.name)
        )
        return list(result.scalars().all())

    async def get_menu_item(self, item_id: str) -> MenuItem:
        item = await self.session.get(MenuItem, item_id)
        if item is None:
            raise NotFoundError("Menu item", item_id)
        return item

    async def create_menu_item(self, restaurant_id: str, **fields: Any) -> MenuItem:
        if await self.session.get(Restaurant, restaurant_id) is None:
            raise NotFoundError("Restaurant", restaurant_id)

        item = MenuItem(restaurant_id=restaurant_id, **fields)
        self.session.add(item)
        await self.session.commit()
        await self.session.refresh(item)
        logger.info(f"Menu item {item.id} created for restaurant {restaurant_id}")
        return item


class OrderRepository:
    """Order persistence and listings."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # =========================================================================
    # WRITES
    # =========================================================================

    async def create(self, order: DomainOrder) -> Order:
        """Persist a freshly priced order and return its full projection."""
        amounts = [item.line_total for item in order.items] + [order.totals.grand_total]
        if max(amounts) > MONEY_LIMIT:
            raise InvalidInputError(
                f"Order total exceeds the largest storable amount ({MONEY_LIMIT})",
                field="items",
            )

        if await self.session.get(Restaurant, order.restaurant_id) is None:
            raise NotFoundError("Restaurant", order.restaurant_id)
        if await self.session.get(Customer, order.customer_id) is None:
            raise NotFoundError("Customer", order.customer_id)

        row = Order(
            id=order.id,
            restaurant_id=order.restaurant_id,
            customer_id=order.customer_id,
            status=order.status,
            payment_type=order.payment_type,
            customer_notes=order.notes,
            address=order.address,
            distance=order.distance_km,
            items_amount=order.totals.items_amount,
            gst=order.totals.tax,
            delivery_fee=order.totals.delivery_fee,
            total_amount=order.totals.grand_total,
            placed_at=order.placed_at,
            items=[
                OrderItem(
                    menu_item_id=item.catalog_item_id,
                    position=position,
                    quantity=item.quantity,
                    base_price=item.base_price,
                    unit_price=item.unit_price,
                    total_price=item.line_total,
                    addons=dict(item.addons) if item.addons is not None else None,
                )
                for position, item in enumerate(order.items)
            ],
        )
        self.session.add(row)
        await self.session.commit()
        logger.info(f"Order {order.id} stored (total {order.totals.grand_total})")
        return await self.get(order.id)

    async def update_status(
        self,
        order_id: str,
        expected: OrderStatus,
        new: OrderStatus,
    ) -> Order:
        """
        Compare-and-swap the order status.

        Raises:
            NotFoundError: the order does not exist
            StaleStatusError: the stored status is no longer ``expected``
        """
        result = await self.session.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == expected)
            .values(status=new)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.session.rollback()
            current = await self.get(order_id)
            raise StaleStatusError(expected, current.status, new)

        await self.session.commit()
        logger.info(f"Order {order_id} status {expected.value} -> {new.value}")
        return await self.get(order_id)

    async def assign_delivery_partner(self, order_id: str, partner_id: str) -> Order:
        if await self.session.get(DeliveryPartner, partner_id) is None:
            raise NotFoundError("Delivery partner", partner_id)

        result = await self.session.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(delivery_partner_id=partner_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.session.rollback()
            raise NotFoundError("Order", order_id)

        await self.session.commit()
        logger.info(f"Delivery partner {partner_id} assigned to order {order_id}")
        return await self.get(order_id)

    # =========================================================================
    # READS
    # =========================================================================

    async def get(self, order_id: str) -> Order:
        """Load an order with items, restaurant, customer and delivery partner."""
        result = await self.session.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(*_projection_options())
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError("Order", order_id)
        return row

    async def list_active(self, restaurant_id: Optional[str] = None) -> list[Order]:
        query = (
            select(Order)
            .where(Order.status.in_(list(ACTIVE_STATUSES)))
            .options(*_projection_options())
            .order_by(Order.placed_at.desc())
        )
        if restaurant_id is not None:
            query = query.where(Order.restaurant_id == restaurant_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_history(self, restaurant_id: str, page: int = 1, limit: int = 20) -> list[Order]:
        result = await self.session.execute(
            select(Order)
            .where(
                Order.restaurant_id == restaurant_id,
                Order.status.in_(list(HISTORY_STATUSES)),
            )
            .options(*_projection_options())
            .order_by(Order.placed_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_for_customer(self, customer_id: str) -> list[Order]:
        result = await self.session.execute(
            select(Order)
            .where(Order.customer_id == customer_id)
            .options(*_projection_options())
            .order_by(Order.placed_at.desc())
        )
        return list(result.scalars().all())

    # =========================================================================
    # MAPPING
    # =========================================================================

    @staticmethod
    def to_domain(row: Order) -> DomainOrder:
        """Rebuild the engine's value object from a stored order."""
        return DomainOrder(
            id=row.id,
            restaurant_id=row.restaurant_id,
            customer_id=row.customer_id,
            items=tuple(
                PricedLineItem(
                    catalog_item_id=item.menu_item_id,
                    quantity=item.quantity,
                    unit_price=_decimal(item.unit_price),
                    line_total=_decimal(item.total_price),
                    base_price=_decimal(item.base_price),
                    addons=item.addons,
                )
                for item in row.items
            ),
            totals=OrderTotals(
                items_amount=_decimal(row.items_amount),
                tax=_decimal(row.gst),
                delivery_fee=_decimal(row.delivery_fee),
                grand_total=_decimal(row.total_amount),
            ),
            status=row.status,
            placed_at=row.placed_at,
            payment_type=row.payment_type,
            distance_km=_decimal(row.distance),
            notes=row.customer_notes,
            address=row.address,
            delivery_partner_id=row.delivery_partner_id,
        )


class ReviewRepository:
    """
    Order reviews.

    Only the customer who placed an order may review it, and only once.
    Reviews of someone else's order, or someone else's review, are
    reported as not found.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_all(self, restaurant_id: Optional[str] = None) -> list[OrderReview]:
        query = (
            select(OrderReview)
            .options(*_review_options())
            .order_by(OrderReview.created_at.desc())
        )
        if restaurant_id is not None:
            query = query.where(OrderReview.restaurant_id == restaurant_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get(self, review_id: str) -> OrderReview:
        result = await self.session.execute(
            select(OrderReview)
            .where(OrderReview.id == review_id)
            .options(*_review_options())
            .execution_options(populate_existing=True)
        )
        review = result.scalar_one_or_none()
        if review is None:
            raise NotFoundError("Review", review_id)
        return review

    async def _get_owned(self, review_id: str, customer_id: str) -> OrderReview:
        review = await self.session.get(OrderReview, review_id)
        if review is None or review.customer_id != customer_id:
            raise NotFoundError("Review", review_id)
        return review

    async def create(self, order_id: str, customer_id: str, review_text: str) -> OrderReview:
        """
        Review an order.

        Raises:
            NotFoundError: no such order for this customer
            InvalidInputError: the order already has a review
        """
        order = await self.session.get(Order, order_id)
        if order is None or order.customer_id != customer_id:
            raise NotFoundError("Order", order_id)

        existing = await self.session.execute(
            select(OrderReview.id).where(OrderReview.order_id == order_id)
        )
        if existing.first() is not None:
            raise InvalidInputError(
                f"Order {order_id} has already been reviewed", field="order_id"
            )

        review = OrderReview(
            order_id=order_id,
            customer_id=customer_id,
            restaurant_id=order.restaurant_id,
            delivery_partner_id=order.delivery_partner_id,
            review_text=review_text,
        )
        self.session.add(review)
        try:
            await self.session.commit()
        except IntegrityError:
            # lost a race with another review of the same order
            await self.session.rollback()
            raise InvalidInputError(
                f"Order {order_id} has already been reviewed", field="order_id"
            )

        logger.info(f"Review {review.id} created for order {order_id}")
        return await self.get(review.id)

    async def update(self, review_id: str, customer_id: str, review_text: str) -> OrderReview:
        review = await self._get_owned(review_id, customer_id)
        review.review_text = review_text
        await self.session.commit()
        logger.info(f"Review {review_id} updated")
        return await self.get(review_id)

    async def delete(self, review_id: str, customer_id: str) -> None:
        review = await self._get_owned(review_id, customer_id)
        await self.session.delete(review)
        await self.session.commit()
        logger.info(f"Review {review_id} deleted")
