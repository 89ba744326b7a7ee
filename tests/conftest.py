"""Test fixtures."""

from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from profitguard.database import Base, get_db
from profitguard.main import app
from profitguard.schemas import OrderLineItem, ShopifyOrder
from profitguard.services.auth import create_merchant_token
from profitguard.services.shopify import OrderNotFoundError, format_order_name, get_order_source

# Use SQLite for tests (no external DB needed)
TEST_DB_URL = "sqlite+aiosqlite:///./test.db"

test_engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=NullPool)
test_session = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with test_session() as session:
        yield session


SAMPLE_ORDER = ShopifyOrder(
    id="gid://shopify/Order/1001",
    name="#1001",
    line_items=[
        OrderLineItem(
            id="gid://shopify/LineItem/1",
            title="Canvas Sneaker",
            quantity=2,
            unit_price=Decimal("100.00"),
            unit_cost=Decimal("40.00"),
        ),
        OrderLineItem(
            id="gid://shopify/LineItem/2",
            title="Gift Card",
            quantity=1,
            unit_price=Decimal("25.00"),
        ),
    ],
)


class FakeOrderSource:
    """In-memory stand-in for the Shopify order client."""

    def __init__(self, orders=None):
        self.orders = {o.name: o for o in (orders or [SAMPLE_ORDER])}

    async def find_order_by_name(self, order_number: str) -> ShopifyOrder:
        name = format_order_name(order_number)
        if name not in self.orders:
            raise OrderNotFoundError(f'Could not find an order with the name "{name}".')
        return self.orders[name]

    async def get_order(self, order_id: str) -> ShopifyOrder:
        for order in self.orders.values():
            if order.id == order_id:
                return order
        raise OrderNotFoundError(f'Could not find an order with the id "{order_id}".')


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_order_source] = lambda: FakeOrderSource()


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with test_session() as session:
        yield session


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {create_merchant_token('merchant@example.com')}"}


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
