"""Shared fixtures: a throwaway SQLite database and an API client wired to it."""

import asyncio
import os
from decimal import Decimal

# Defaults so importing the app never needs a real environment.
os.environ.setdefault("ENV_MODE", "development")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_food_delivery.db")
os.environ.setdefault("TAX_RATE", "0.05")
os.environ.setdefault("PER_KM_RATE", "10")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from food_delivery.database import Base, get_db  # noqa: E402
from food_delivery.main import app  # noqa: E402
from food_delivery.models import (  # noqa: E402
    Customer,
    DeliveryPartner,
    MenuItem,
    Restaurant,
)
from food_delivery.services.events import InMemoryEventSink, get_event_sink  # noqa: E402
from food_delivery.services.otp import InMemoryOtpStore, OtpService, get_otp_service  # noqa: E402

RESTAURANT_ID = "rest-1"
OTHER_RESTAURANT_ID = "rest-2"
CUSTOMER_ID = "cust-1"
OTHER_CUSTOMER_ID = "cust-2"
PARTNER_ID = "dp-1"
THALI_ID = "item-thali"
BIRYANI_ID = "item-biryani"
LASSI_ID = "item-lassi"
OTHER_ITEM_ID = "item-other"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def session_maker(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}",
        poolclass=NullPool,
    )

    async def create_schema():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_schema())
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def seeded(session_maker):
    """Two restaurants, two customers, one delivery partner and a small menu."""

    async def seed():
        async with session_maker() as session:
            session.add_all([
                Restaurant(id=RESTAURANT_ID, name="Spice Route", mobile="9000000001",
                           email="spice@example.com"),
                Restaurant(id=OTHER_RESTAURANT_ID, name="Dosa Corner", mobile="9000000002",
                           email="dosa@example.com"),
                Customer(id=CUSTOMER_ID, name="Asha", email="asha@example.com",
                         phone="9876543210"),
                Customer(id=OTHER_CUSTOMER_ID, name="Vikram", email="vikram@example.com",
                         phone="9876500000"),
                DeliveryPartner(id=PARTNER_ID, name="Ravi", phone="9123456780"),
                MenuItem(id=THALI_ID, restaurant_id=RESTAURANT_ID, name="Veg Thali",
                         price=Decimal("100.00")),
                MenuItem(id=BIRYANI_ID, restaurant_id=RESTAURANT_ID, name="Biryani",
                         price=Decimal("100.00"), discounted_price=Decimal("80.00"),
                         is_veg=False),
                MenuItem(id=LASSI_ID, restaurant_id=RESTAURANT_ID, name="Lassi",
                         price=Decimal("45.50")),
                MenuItem(id=OTHER_ITEM_ID, restaurant_id=OTHER_RESTAURANT_ID,
                         name="Masala Dosa", price=Decimal("60.00")),
            ])
            await session.commit()

    asyncio.run(seed())
    return session_maker


@pytest.fixture
def event_sink():
    return InMemoryEventSink()


@pytest.fixture
def otp_service():
    return OtpService(InMemoryOtpStore(), length=6, ttl_seconds=300)


@pytest.fixture
def client(seeded, event_sink, otp_service):
    async def override_get_db():
        async with seeded() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_sink] = lambda: event_sink
    app.dependency_overrides[get_otp_service] = lambda: otp_service

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def order_payload():
    return {
        "restaurant_id": RESTAURANT_ID,
        "customer_id": CUSTOMER_ID,
        "items": [
            {"menu_item_id": THALI_ID, "quantity": 2},
            {"menu_item_id": BIRYANI_ID, "quantity": 1, "addons": {"raita": True}},
        ],
        "payment_type": "COD",
        "distance": "5",
        "customer_notes": "Less spicy",
        "address": "12 MG Road",
    }
