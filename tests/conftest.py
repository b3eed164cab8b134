"""Pytest fixtures for order_api tests."""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from order_api.application.create_order import CreateOrderDTO, CreateOrderUseCase, OrderLineDTO
from order_api.application.interfaces import MetricsRecorder
from order_api.domain.models import PaymentMethod
from order_api.infrastructure.db_schema import metadata, order_items_tbl, orders_tbl, products_tbl
from order_api.infrastructure.unit_of_work import UnitOfWork


class RecordingMetrics(MetricsRecorder):
    """Collects metric names instead of sending them anywhere."""

    def __init__(self):
        self.metrics = []
        self.errors = []

    async def record_metric(self, name, value=1):
        self.metrics.append((name, value))

    async def record_error(self, error):
        self.errors.append(error)

    @property
    def names(self):
        return [name for name, _ in self.metrics]


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite so concurrent sessions get separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def uow(session_factory):
    return UnitOfWork(session_factory, timeout=5)


@pytest.fixture
def metrics():
    return RecordingMetrics()


@pytest.fixture
def create_order(uow, metrics):
    return CreateOrderUseCase(uow, metrics)


@pytest.fixture
def add_product(session_factory):
    """Insert a product row and return its id."""

    async def _add(price="10.00", stock=10, name=None, is_active=True, category="Electronics"):
        product_id = str(uuid.uuid4())
        async with session_factory() as session:
            await session.execute(insert(products_tbl).values(
                id=product_id,
                name=name or f"Product {product_id[:8]}",
                description="Test product",
                price=Decimal(price),
                stock_quantity=stock,
                category=category,
                image_url=f"https://example.com/images/{product_id}.jpg",
                is_active=is_active,
            ))
            await session.commit()
        return product_id

    return _add


@pytest.fixture
def stock_of(session_factory):
    async def _stock(product_id):
        async with session_factory() as session:
            return await session.scalar(
                select(products_tbl.c.stock_quantity).where(products_tbl.c.id == product_id)
            )

    return _stock


@pytest.fixture
def set_price(session_factory):
    async def _set(product_id, price):
        async with session_factory() as session:
            await session.execute(
                update(products_tbl).where(products_tbl.c.id == product_id).values(price=Decimal(price))
            )
            await session.commit()

    return _set


@pytest.fixture
def count_rows(session_factory):
    """Return (orders, order_items) row counts."""

    async def _count():
        async with session_factory() as session:
            orders = await session.scalar(select(func.count()).select_from(orders_tbl))
            items = await session.scalar(select(func.count()).select_from(order_items_tbl))
            return orders, items

    return _count


def make_order_dto(*lines, **overrides):
    """Build a CreateOrderDTO from (product_id, quantity) pairs."""
    data = {
        "customer_email": "john.doe@example.com",
        "customer_name": "John Doe",
        "shipping_address": "123 Main St, City, State 12345",
        "payment_method": PaymentMethod.CREDIT_CARD,
        "items": [OrderLineDTO(product_id=product_id, quantity=quantity) for product_id, quantity in lines],
    }
    data.update(overrides)
    return CreateOrderDTO(**data)
