"""
FastAPI Application Entry Point

Food Delivery Order Service.

Endpoints:
    - GET   /api/restaurants/{restaurant_id}/menu: Restaurant menu
    - POST  /api/menu-items: Create menu item
    - POST  /api/orders: Place order
    - GET   /api/orders: Active orders
    - PATCH /api/orders/{order_id}/status: Move order through its lifecycle
    - GET   /api/orders/restaurant/{restaurant_id}/history: Paginated history
    - POST  /api/auth/otp: Issue one-time code
    - POST  /api/reviews: Review an order
    - GET   /health: System health check
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from food_delivery.core.config import get_settings, setup_logging
from food_delivery.core.exceptions import OrderEngineError
from food_delivery.database import engine, get_db, init_db
from food_delivery.engine import (
    LineItemRequest,
    advance,
    assign_delivery_partner as attach_delivery_partner,
    place_order,
)
from food_delivery.repositories import CatalogRepository, OrderRepository, ReviewRepository
from food_delivery.schemas import (
    DeliveryPartnerAssign,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    MenuItemCreate,
    MenuItemResponse,
    OrderCreate,
    OrderHistoryResponse,
    OrderListResponse,
    OrderResponse,
    OtpRequest,
    OtpRequestResponse,
    OtpVerify,
    OtpVerifyResponse,
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
    StatusUpdate,
)
from food_delivery.services.events import (
    ORDER_NEW,
    ORDER_UPDATE,
    BaseEventSink,
    get_event_sink,
)
from food_delivery.services.otp import OtpService, get_otp_service

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("Database initialized")

    event_sink = get_event_sink()
    otp_service = get_otp_service()
    logger.info(f"Event Sink: {event_sink.provider_name}")
    logger.info(f"OTP Store: {otp_service.store.provider_name}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"Missing production config: {missing}")

    logger.info("Application ready")

    yield  # Application runs

    logger.info("Shutting down...")
    await event_sink.close()
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Order placement, pricing and order status tracking for a "
        "food-delivery marketplace."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

async def publish_order(sink: BaseEventSink, event_name: str, projection: OrderResponse) -> None:
    """Broadcast an order projection; failures are logged, never raised."""
    result = await sink.publish(event_name, projection.model_dump(mode="json"))
    if not result.success:
        logger.warning(
            f"Event {event_name} for order {projection.id} not delivered: "
            f"{result.error_message}"
        )


def to_list_response(rows: list) -> OrderListResponse:
    orders = [OrderResponse.model_validate(row) for row in rows]
    return OrderListResponse(total=len(orders), orders=orders)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db),
    sink: BaseEventSink = Depends(get_event_sink),
) -> HealthResponse:
    """Verify the database and the event sink are reachable."""
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    sink_status = "healthy" if await sink.health_check() else "unhealthy"

    overall = "operational" if db_status == sink_status == "healthy" else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        event_sink=sink_status,
        timestamp=datetime.now(timezone.utc),
    )


# =============================================================================
# MENU ENDPOINTS
# =============================================================================

@app.get(
    "/api/restaurants/{restaurant_id}/menu",
    response_model=list[MenuItemResponse],
    tags=["Menu"],
)
async def get_menu(
    restaurant_id: str,
    db: AsyncSession = Depends(get_db),
) -> list[MenuItemResponse]:
    """List a restaurant's menu items."""
    items = await CatalogRepository(db).list_menu(restaurant_id)
    return [MenuItemResponse.model_validate(item) for item in items]


@app.post(
    "/api/menu-items",
    response_model=MenuItemResponse,
    status_code=201,
    responses={404: {"model": ErrorResponse}},
    tags=["Menu"],
)
async def create_menu_item(
    item_data: MenuItemCreate,
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    """Add an item to a restaurant's menu."""
    fields = item_data.model_dump(exclude={"restaurant_id"})
    item = await CatalogRepository(db).create_menu_item(item_data.restaurant_id, **fields)
    return MenuItemResponse.model_validate(item)


@app.get(
    "/api/menu-items/{item_id}",
    response_model=MenuItemResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Menu"],
)
async def get_menu_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    item = await CatalogRepository(db).get_menu_item(item_id)
    return MenuItemResponse.model_validate(item)


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders",
    response_model=OrderResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    order_data: OrderCreate,
    db: AsyncSession = Depends(get_db),
    sink: BaseEventSink = Depends(get_event_sink),
) -> OrderResponse:
    """
    Price the cart, store the order in ``pending`` and broadcast ``order:new``.
    """
    logger.info(
        f"Creating order for customer {order_data.customer_id} "
        f"at restaurant {order_data.restaurant_id} ({len(order_data.items)} items)"
    )

    requests = [
        LineItemRequest(
            catalog_item_id=item.menu_item_id,
            quantity=item.quantity,
            addons=item.addons,
        )
        for item in order_data.items
    ]
    catalog = await CatalogRepository(db).load(
        order_data.restaurant_id,
        (r.catalog_item_id for r in requests),
    )

    order = place_order(
        order_id=str(uuid.uuid4()),
        restaurant_id=order_data.restaurant_id,
        customer_id=order_data.customer_id,
        requests=requests,
        distance_km=order_data.distance,
        payment_type=order_data.payment_type,
        tax_rate=settings.tax_rate,
        per_km_rate=settings.per_km_rate,
        lookup=catalog.get,
        placed_at=datetime.now(timezone.utc),
        notes=order_data.customer_notes,
        address=order_data.address,
    )

    row = await OrderRepository(db).create(order)
    projection = OrderResponse.model_validate(row)
    await publish_order(sink, ORDER_NEW, projection)

    logger.info(f"Order {order.id} created: total {order.totals.grand_total} {settings.currency}")
    return projection


@app.get(
    "/api/orders",
    response_model=OrderListResponse,
    tags=["Orders"],
    summary="List Active Orders",
)
async def list_active_orders(
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """All orders still pending, preparing or ready."""
    return to_list_response(await OrderRepository(db).list_active())


@app.get(
    "/api/orders/customer/{customer_id}",
    response_model=OrderListResponse,
    tags=["Orders"],
)
async def list_customer_orders(
    customer_id: str,
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """Every order of a customer, newest first."""
    return to_list_response(await OrderRepository(db).list_for_customer(customer_id))


@app.get(
    "/api/orders/restaurant/{restaurant_id}",
    response_model=OrderListResponse,
    tags=["Orders"],
)
async def list_restaurant_orders(
    restaurant_id: str,
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """A restaurant's live (active) orders, newest first."""
    return to_list_response(await OrderRepository(db).list_active(restaurant_id))


@app.get(
    "/api/orders/restaurant/{restaurant_id}/history",
    response_model=OrderHistoryResponse,
    tags=["Orders"],
)
async def list_restaurant_history(
    restaurant_id: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> OrderHistoryResponse:
    """A restaurant's dispatched and closed orders, paginated."""
    limit = limit or settings.history_page_size
    rows = await OrderRepository(db).list_history(restaurant_id, page=page, limit=limit)
    orders = [OrderResponse.model_validate(row) for row in rows]
    return OrderHistoryResponse(total=len(orders), orders=orders, page=page, limit=limit)


@app.get(
    "/api/orders/{order_id}",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def get_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """Get a specific order by ID."""
    return OrderResponse.model_validate(await OrderRepository(db).get(order_id))


@app.patch(
    "/api/orders/{order_id}/status",
    response_model=OrderResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    tags=["Orders"],
    summary="Update Order Status",
)
async def update_order_status(
    order_id: str,
    status_update: StatusUpdate,
    db: AsyncSession = Depends(get_db),
    sink: BaseEventSink = Depends(get_event_sink),
) -> OrderResponse:
    """
    Move an order to a new status.

    The move is validated against the order lifecycle, then written only if
    nobody changed the status in the meantime.
    """
    logger.info(f"Status update requested for order {order_id}: {status_update.status}")

    repo = OrderRepository(db)
    current = repo.to_domain(await repo.get(order_id))
    updated = advance(current, status_update.status)

    row = await repo.update_status(order_id, current.status, updated.status)
    projection = OrderResponse.model_validate(row)
    await publish_order(sink, ORDER_UPDATE, projection)
    return projection


@app.patch(
    "/api/orders/{order_id}/delivery-partner",
    response_model=OrderResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def assign_delivery_partner(
    order_id: str,
    assignment: DeliveryPartnerAssign,
    db: AsyncSession = Depends(get_db),
    sink: BaseEventSink = Depends(get_event_sink),
) -> OrderResponse:
    """Attach a delivery partner to an open order."""
    repo = OrderRepository(db)
    attach_delivery_partner(repo.to_domain(await repo.get(order_id)), assignment.delivery_partner_id)

    row = await repo.assign_delivery_partner(order_id, assignment.delivery_partner_id)
    projection = OrderResponse.model_validate(row)
    await publish_order(sink, ORDER_UPDATE, projection)
    return projection


# =============================================================================
# OTP ENDPOINTS
# =============================================================================

@app.post(
    "/api/auth/otp",
    response_model=OtpRequestResponse,
    tags=["Auth"],
)
async def request_otp(
    otp_request: OtpRequest,
    otp: OtpService = Depends(get_otp_service),
) -> OtpRequestResponse:
    """Issue a one-time code. Delivery of the code is handled elsewhere."""
    record = await otp.issue(otp_request.key)
    return OtpRequestResponse(
        success=True,
        message="OTP generated",
        expires_at=record.expires_at,
        code=record.code if settings.is_development else None,
    )


@app.post(
    "/api/auth/otp/verify",
    response_model=OtpVerifyResponse,
    responses={401: {"model": OtpVerifyResponse}},
    tags=["Auth"],
)
async def verify_otp(
    otp_verify: OtpVerify,
    otp: OtpService = Depends(get_otp_service),
) -> Any:
    if await otp.verify(otp_verify.key, otp_verify.code):
        return OtpVerifyResponse(success=True, message="OTP verified")
    return JSONResponse(
        status_code=401,
        content=OtpVerifyResponse(success=False, message="Invalid or expired OTP").model_dump(),
    )


# =============================================================================
# REVIEW ENDPOINTS
# =============================================================================

@app.get(
    "/api/reviews",
    response_model=ReviewListResponse,
    tags=["Reviews"],
)
async def list_reviews(
    restaurant_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> ReviewListResponse:
    """All reviews, newest first, optionally for one restaurant."""
    reviews = await ReviewRepository(db).list_all(restaurant_id)
    return ReviewListResponse(
        total=len(reviews),
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
    )


@app.post(
    "/api/reviews",
    response_model=ReviewResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Reviews"],
)
async def create_review(
    review_data: ReviewCreate,
    db: AsyncSession = Depends(get_db),
) -> ReviewResponse:
    """Review an order. One review per order, by the customer who placed it."""
    review = await ReviewRepository(db).create(
        review_data.order_id,
        review_data.customer_id,
        review_data.review_text,
    )
    return ReviewResponse.model_validate(review)


@app.put(
    "/api/reviews/{review_id}",
    response_model=ReviewResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Reviews"],
)
async def update_review(
    review_id: str,
    review_data: ReviewUpdate,
    db: AsyncSession = Depends(get_db),
) -> ReviewResponse:
    review = await ReviewRepository(db).update(
        review_id, review_data.customer_id, review_data.review_text
    )
    return ReviewResponse.model_validate(review)


@app.delete(
    "/api/reviews/{review_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Reviews"],
)
async def delete_review(
    review_id: str,
    customer_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a review; only its author may."""
    await ReviewRepository(db).delete(review_id, customer_id)
    return MessageResponse(success=True, message="Review deleted")


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(OrderEngineError)
async def order_engine_exception_handler(request: Request, exc: OrderEngineError) -> JSONResponse:
    """Map domain errors to 400/404/409 responses."""
    logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, **exc.to_dict()},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "food_delivery.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
