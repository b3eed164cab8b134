"""Tests for the order creation transaction."""

import asyncio
from decimal import Decimal

import pytest

from conftest import make_order_dto
from order_api.application.create_order import CreateOrderUseCase
from order_api.domain.exceptions import (
    InsufficientStockError,
    InvalidRequestError,
    ProductUnavailableError,
)
from order_api.domain.models import OrderStatus, PaymentMethod, PaymentStatus
from order_api.infrastructure.repositories import SQLAlchemyProductRepository


class TestTotals:
    async def test_free_shipping_scenario(self, create_order, add_product, stock_of):
        product_a = await add_product(price="50.00", stock=10)

        order = await create_order(make_order_dto((product_a, 3)))

        assert order.subtotal == Decimal("150.00")
        assert order.tax_amount == Decimal("12.00")
        assert order.shipping_amount == Decimal("0.00")
        assert order.total_amount == Decimal("162.00")
        assert await stock_of(product_a) == 7

    async def test_shipping_fee_below_threshold(self, create_order, add_product):
        product = await add_product(price="5.00", stock=10)

        order = await create_order(make_order_dto((product, 2)))

        assert order.subtotal == Decimal("10.00")
        assert order.tax_amount == Decimal("0.80")
        assert order.shipping_amount == Decimal("9.99")
        assert order.total_amount == Decimal("20.79")

    async def test_exactly_one_hundred_pays_shipping(self, create_order, add_product):
        product = await add_product(price="25.00", stock=10)

        order = await create_order(make_order_dto((product, 4)))

        assert order.subtotal == Decimal("100.00")
        assert order.shipping_amount == Decimal("9.99")
        assert order.total_amount == Decimal("117.99")

    async def test_total_matches_lines_plus_tax_and_shipping(self, create_order, add_product):
        first = await add_product(price="19.99", stock=10)
        second = await add_product(price="7.35", stock=10)

        order = await create_order(make_order_dto((first, 3), (second, 7)))

        subtotal = sum(item.total_price for item in order.items)
        assert subtotal == Decimal("111.42")
        assert order.tax_amount == (subtotal * Decimal("0.08")).quantize(Decimal("0.01"))
        assert order.total_amount == subtotal + order.tax_amount + order.shipping_amount


class TestCreatedOrder:
    async def test_initial_state_and_billing_default(self, create_order, add_product):
        product = await add_product()

        order = await create_order(make_order_dto((product, 1)))

        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.payment_method == PaymentMethod.CREDIT_CARD
        assert order.billing_address == order.shipping_address

    async def test_explicit_billing_address_is_kept(self, create_order, add_product):
        product = await add_product()

        order = await create_order(make_order_dto(
            (product, 1), billing_address="1 Billing Road, Somewhere 00001"
        ))

        assert order.billing_address == "1 Billing Road, Somewhere 00001"

    async def test_items_follow_request_order_with_product_fields(self, create_order, add_product):
        laptop = await add_product(price="1299.99", name="Gaming Laptop")
        mouse = await add_product(price="79.99", name="Wireless Gaming Mouse")

        order = await create_order(make_order_dto((mouse, 2), (laptop, 1)))

        assert [item.product_id for item in order.items] == [mouse, laptop]
        assert [item.quantity for item in order.items] == [2, 1]
        assert [item.total_price for item in order.items] == [Decimal("159.98"), Decimal("1299.99")]
        assert order.items[0].product_name == "Wireless Gaming Mouse"
        assert order.items[0].product_description == "Test product"
        assert order.items[0].product_image.endswith(f"{mouse}.jpg")

    async def test_unit_price_is_snapshotted(self, create_order, add_product, set_price, uow):
        product = await add_product(price="50.00")
        order = await create_order(make_order_dto((product, 2)))

        await set_price(product, "75.00")

        async with uow() as work:
            stored = await work.orders.get_by_id(order.id)
        assert stored.items[0].unit_price == Decimal("50.00")
        assert stored.items[0].total_price == Decimal("100.00")
        assert stored.total_amount == order.total_amount


class TestRollback:
    async def test_insufficient_stock_leaves_stock_unchanged(
        self, create_order, add_product, stock_of, count_rows
    ):
        product_b = await add_product(price="5.00", stock=5)

        with pytest.raises(InsufficientStockError) as exc_info:
            await create_order(make_order_dto((product_b, 6)))

        assert exc_info.value.available == 5
        assert exc_info.value.required == 6
        assert await stock_of(product_b) == 5
        assert await count_rows() == (0, 0)

    async def test_later_failure_restores_earlier_decrements(
        self, create_order, add_product, stock_of, count_rows
    ):
        plenty = await add_product(stock=10)
        scarce = await add_product(stock=1)

        with pytest.raises(InsufficientStockError):
            await create_order(make_order_dto((plenty, 4), (scarce, 2)))

        assert await stock_of(plenty) == 10
        assert await stock_of(scarce) == 1
        assert await count_rows() == (0, 0)

    async def test_inactive_product_is_unavailable(self, create_order, add_product, stock_of, count_rows):
        active = await add_product(stock=10)
        retired = await add_product(stock=10, is_active=False)

        with pytest.raises(ProductUnavailableError) as exc_info:
            await create_order(make_order_dto((active, 1), (retired, 1)))

        assert exc_info.value.product_id == retired
        assert await stock_of(active) == 10
        assert await stock_of(retired) == 10
        assert await count_rows() == (0, 0)

    async def test_unknown_product_is_unavailable(self, create_order, count_rows):
        with pytest.raises(ProductUnavailableError):
            await create_order(make_order_dto(("00000000-0000-0000-0000-000000000000", 1)))

        assert await count_rows() == (0, 0)


class TestDuplicateProductLines:
    """Repeated product ids are not merged; each line sees the stock left by earlier lines."""

    async def test_second_occurrence_fails_when_jointly_over_stock(
        self, create_order, add_product, stock_of, count_rows
    ):
        product = await add_product(stock=5)

        with pytest.raises(InsufficientStockError) as exc_info:
            await create_order(make_order_dto((product, 3), (product, 3)))

        assert exc_info.value.available == 2
        assert await stock_of(product) == 5
        assert await count_rows() == (0, 0)

    async def test_lines_kept_separate_when_stock_suffices(self, create_order, add_product, stock_of):
        product = await add_product(price="10.00", stock=5)

        order = await create_order(make_order_dto((product, 2), (product, 3)))

        assert len(order.items) == 2
        assert [item.quantity for item in order.items] == [2, 3]
        assert await stock_of(product) == 0


class TestDefensiveValidation:
    async def test_empty_items(self, create_order, count_rows):
        with pytest.raises(InvalidRequestError) as exc_info:
            await create_order(make_order_dto())

        assert exc_info.value.errors[0]["field"] == "items"
        assert await count_rows() == (0, 0)

    @pytest.mark.parametrize("quantity", [0, -1, 101])
    async def test_quantity_out_of_range(self, create_order, add_product, stock_of, quantity):
        product = await add_product(stock=200)

        with pytest.raises(InvalidRequestError) as exc_info:
            await create_order(make_order_dto((product, quantity)))

        assert exc_info.value.errors[0]["field"] == "items.0.quantity"
        assert await stock_of(product) == 200

    async def test_too_many_lines(self, create_order, add_product):
        product = await add_product(stock=100)

        with pytest.raises(InvalidRequestError):
            await create_order(make_order_dto(*[(product, 1)] * 51))

    async def test_blank_product_id(self, create_order):
        with pytest.raises(InvalidRequestError) as exc_info:
            await create_order(make_order_dto(("  ", 1)))

        assert exc_info.value.errors[0]["field"] == "items.0.product_id"


class TestConcurrency:
    async def test_last_unit_sold_once(self, uow, metrics, add_product, stock_of, count_rows):
        product = await add_product(stock=1)
        first = CreateOrderUseCase(uow, metrics)
        second = CreateOrderUseCase(uow, metrics)

        results = await asyncio.gather(
            first(make_order_dto((product, 1), customer_email="first@example.com")),
            second(make_order_dto((product, 1), customer_email="second@example.com")),
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, Exception)]
        assert len(succeeded) == 1
        assert len(failed) == 1
        assert isinstance(failed[0], InsufficientStockError)
        assert await stock_of(product) == 0
        assert await count_rows() == (1, 1)

    async def test_lost_race_reports_current_stock(self, create_order, add_product, monkeypatch, stock_of):
        product = await add_product(stock=2)
        original = SQLAlchemyProductRepository.get_active_for_update

        async def stale_read(self, product_id):
            found = await original(self, product_id)
            return found.model_copy(update={"stock_quantity": 10})

        monkeypatch.setattr(SQLAlchemyProductRepository, "get_active_for_update", stale_read)

        with pytest.raises(InsufficientStockError) as exc_info:
            await create_order(make_order_dto((product, 5)))

        assert exc_info.value.available == 2
        assert exc_info.value.required == 5
        assert await stock_of(product) == 2


class TestMetrics:
    async def test_success_records_place_order_metrics(self, create_order, add_product, metrics):
        product = await add_product()

        await create_order(make_order_dto((product, 1)))

        assert "Custom/Order/PlaceOrder" in metrics.names
        assert "Custom/Order/PlaceOrder/ResponseTime" in metrics.names
        assert "Custom/Order/PlaceOrder/Error" not in metrics.names

    async def test_failure_records_error(self, create_order, add_product, metrics):
        product = await add_product(stock=0)

        with pytest.raises(InsufficientStockError):
            await create_order(make_order_dto((product, 1)))

        assert "Custom/Order/PlaceOrder/Error" in metrics.names
        assert isinstance(metrics.errors[0], InsufficientStockError)
