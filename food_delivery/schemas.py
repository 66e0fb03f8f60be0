"""
Pydantic Schemas for Request/Response Validation

Money is typed as ``Decimal`` end to end; in JSON responses it is
serialized as a string so no client ever parses a price as a float.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from food_delivery.engine import OrderStatus, PaymentType


# =============================================================================
# MENU SCHEMAS
# =============================================================================

class MenuItemCreate(BaseModel):
    """Request schema for creating a menu item."""
    restaurant_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=150, examples=["Paneer Tikka"])
    description: Optional[str] = Field(None, max_length=1000)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, examples=["249.00"])
    discounted_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    is_veg: bool = True
    packaging_charges: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    cuisine: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = Field(None, max_length=500)
    addons: Optional[Any] = None

    @model_validator(mode="after")
    def validate_discount(self) -> "MenuItemCreate":
        if self.discounted_price is not None and self.discounted_price > self.price:
            raise ValueError("discounted_price cannot exceed price")
        return self


class MenuItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    restaurant_id: str
    name: str
    description: Optional[str]
    price: Decimal
    discounted_price: Optional[Decimal]
    is_veg: bool
    packaging_charges: Decimal
    cuisine: Optional[str]
    image_url: Optional[str]
    addons: Optional[Any]


# =============================================================================
# ORDER REQUEST SCHEMAS
# =============================================================================

class OrderItemCreate(BaseModel):
    """Single cart entry."""
    menu_item_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1, examples=[2])
    addons: Optional[dict[str, Any]] = None


class OrderCreate(BaseModel):
    """Request schema for placing an order."""
    restaurant_id: str = Field(..., min_length=1)
    customer_id: str = Field(..., min_length=1)
    items: List[OrderItemCreate] = Field(..., min_length=1)
    payment_type: PaymentType = Field(..., examples=["COD"])
    customer_notes: Optional[str] = Field(None, max_length=500)
    distance: Decimal = Field(default=Decimal("0"), ge=0, examples=["3.5"])
    address: Optional[str] = Field(None, max_length=500)


class StatusUpdate(BaseModel):
    """Requested status; checked against the lifecycle by the engine."""
    status: str = Field(..., min_length=1, examples=["preparing"])


class DeliveryPartnerAssign(BaseModel):
    delivery_partner_id: str = Field(..., min_length=1)


# =============================================================================
# ORDER RESPONSE SCHEMAS
# =============================================================================

class RestaurantSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    mobile: str
    email: str


class CustomerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone: str


class DeliveryPartnerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    phone: str


class MenuItemSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    is_veg: bool
    image_url: Optional[str]


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    menu_item_id: str
    position: int
    quantity: int
    base_price: Decimal
    unit_price: Decimal
    total_price: Decimal
    addons: Optional[Any]
    menu_item: Optional[MenuItemSummary] = None


class OrderResponse(BaseModel):
    """Full order projection, also used as the event payload."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    restaurant_id: str
    customer_id: str
    delivery_partner_id: Optional[str]
    status: OrderStatus
    payment_type: PaymentType
    customer_notes: Optional[str]
    address: Optional[str]
    distance: Decimal
    items_amount: Decimal
    gst: Decimal
    delivery_fee: Decimal
    total_amount: Decimal
    placed_at: datetime
    updated_at: Optional[datetime]
    items: List[OrderItemResponse]
    restaurant: Optional[RestaurantSummary] = None
    customer: Optional[CustomerSummary] = None
    delivery_partner: Optional[DeliveryPartnerSummary] = None


class OrderListResponse(BaseModel):
    total: int
    orders: List[OrderResponse]


class OrderHistoryResponse(OrderListResponse):
    page: int
    limit: int


# =============================================================================
# OTP SCHEMAS
# =============================================================================

class OtpRequest(BaseModel):
    """Request a one-time code for a phone number or email address."""
    key: str = Field(..., min_length=3, max_length=255, examples=["9876543210"])


class OtpRequestResponse(BaseModel):
    success: bool
    message: str
    expires_at: datetime
    # only populated in development mode, where nothing is sent
    code: Optional[str] = None


class OtpVerify(BaseModel):
    key: str = Field(..., min_length=3, max_length=255)
    code: str = Field(..., min_length=4, max_length=10, pattern=r"^\d+$")


class OtpVerifyResponse(BaseModel):
    success: bool
    message: str


# =============================================================================
# REVIEW SCHEMAS
# =============================================================================

class ReviewText(BaseModel):
    review_text: str = Field(..., min_length=1, max_length=2000, examples=["Hot and on time"])

    @field_validator("review_text")
    @classmethod
    def strip_review_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("review_text cannot be blank")
        return v


class ReviewCreate(ReviewText):
    """Review of an order, written by the customer who placed it."""
    order_id: str = Field(..., min_length=1)
    customer_id: str = Field(..., min_length=1)


class ReviewUpdate(ReviewText):
    customer_id: str = Field(..., min_length=1)


class ReviewedOrderSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    status: OrderStatus
    total_amount: Decimal
    placed_at: datetime


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_id: str
    customer_id: str
    restaurant_id: str
    delivery_partner_id: Optional[str]
    review_text: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    order: Optional[ReviewedOrderSummary] = None
    customer: Optional[CustomerSummary] = None
    restaurant: Optional[RestaurantSummary] = None
    delivery_partner: Optional[DeliveryPartnerSummary] = None


class ReviewListResponse(BaseModel):
    total: int
    reviews: List[ReviewResponse]


class MessageResponse(BaseModel):
    success: bool
    message: str


# =============================================================================
# GENERIC
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    event_sink: str
    timestamp: datetime
