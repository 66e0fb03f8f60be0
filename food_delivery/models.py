"""
SQLAlchemy Database Models

Restaurants, customers and delivery partners are owned by other parts of
the platform; this service reads them to build order projections. Menu
items, orders (with their line items) and order reviews are written
here.

Money columns are NUMERIC so prices never pass through binary floats.
"""

import uuid
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from food_delivery.database import Base
from food_delivery.engine import OrderStatus, PaymentType

MONEY = Numeric(10, 2)
# largest value a MONEY column holds
MONEY_LIMIT = Decimal("99999999.99")


def new_id() -> str:
    return str(uuid.uuid4())


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(150), nullable=False)
    mobile = Column(String(20), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    cuisines = Column(String(255), nullable=True)
    veg_nonveg = Column(String(10), nullable=False, default="both")
    address = Column(JSON, nullable=True)
    approval = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    menu_items = relationship("MenuItem", back_populates="restaurant")

    def __repr__(self):
        return f"<Restaurant {self.id} - {self.name}>"


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(20), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Customer {self.id} - {self.email}>"


class DeliveryPartner(Base):
    __tablename__ = "delivery_partners"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<DeliveryPartner {self.id} - {self.name}>"


class MenuItem(Base):
    """
    A purchasable menu entry.

    ``discounted_price`` when set is what customers are charged; it is
    never above ``price``.
    """
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=new_id)
    restaurant_id = Column(String(36), ForeignKey("restaurants.id"), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(MONEY, nullable=False)
    discounted_price = Column(MONEY, nullable=True)
    is_veg = Column(Boolean, nullable=False, default=True)
    packaging_charges = Column(MONEY, nullable=False, default=0)
    cuisine = Column(String(100), nullable=True)
    image_url = Column(String(500), nullable=True)
    addons = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    restaurant = relationship("Restaurant", back_populates="menu_items")

    def __repr__(self):
        return f"<MenuItem {self.id} - {self.name}>"


class Order(Base):
    """
    Placed order.

    Pricing columns are written once at creation. After that only
    ``status`` and ``delivery_partner_id`` change.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    restaurant_id = Column(String(36), ForeignKey("restaurants.id"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    delivery_partner_id = Column(String(36), ForeignKey("delivery_partners.id"), nullable=True)

    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )
    payment_type = Column(Enum(PaymentType), nullable=False)
    customer_notes = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    # unscaled so the stored distance is exactly the one that was priced
    distance = Column(Numeric, nullable=False, default=0)

    # =========================================================================
    # PRICING
    # =========================================================================
    items_amount = Column(MONEY, nullable=False)
    gst = Column(MONEY, nullable=False)
    delivery_fee = Column(MONEY, nullable=False)
    total_amount = Column(MONEY, nullable=False)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    placed_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
    )
    restaurant = relationship("Restaurant")
    customer = relationship("Customer")
    delivery_partner = relationship("DeliveryPartner")

    def __repr__(self):
        return f"<Order {self.id} - {self.status.value}>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = Column(String(36), ForeignKey("menu_items.id"), nullable=False)
    position = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    base_price = Column(MONEY, nullable=False)
    unit_price = Column(MONEY, nullable=False)
    total_price = Column(MONEY, nullable=False)
    addons = Column(JSON, nullable=True)

    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem")

    def __repr__(self):
        return f"<OrderItem {self.menu_item_id} x{self.quantity}>"


class OrderReview(Base):
    """
    A customer's review of one of their orders.

    Restaurant and delivery partner are copied from the order when the
    review is written. One review per order.
    """
    __tablename__ = "order_reviews"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, unique=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    restaurant_id = Column(String(36), ForeignKey("restaurants.id"), nullable=False, index=True)
    delivery_partner_id = Column(String(36), ForeignKey("delivery_partners.id"), nullable=True)
    review_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    order = relationship("Order")
    customer = relationship("Customer")
    restaurant = relationship("Restaurant")
    delivery_partner = relationship("DeliveryPartner")

    def __repr__(self):
        return f"<OrderReview {self.id} - order {self.order_id}>"
