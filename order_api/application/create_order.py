import logging
import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel

from order_api.domain.models import Order, OrderItem, OrderStatus, PaymentStatus, PaymentMethod
from order_api.domain.exceptions import (
    DomainException, InvalidRequestError, ProductUnavailableError, InsufficientStockError, OrderNotFoundError
)
from order_api.domain.pricing import calculate_totals, line_total
from order_api.application.interfaces import MetricsRecorder


logger = logging.getLogger(__name__)

MAX_LINES = 50
MIN_QUANTITY = 1
MAX_QUANTITY = 100


class OrderLineDTO(BaseModel):
    product_id: str
    quantity: int


class CreateOrderDTO(BaseModel):
    customer_email: str
    customer_name: str
    shipping_address: str
    billing_address: Optional[str] = None
    payment_method: PaymentMethod
    items: list[OrderLineDTO]


class CreateOrderUseCase:
    """Создание заказа: проверка наличия, списание остатков, расчет сумм и запись
    заказа со строками выполняются в одной транзакции.

    Строки обрабатываются в порядке запроса. Первый недоступный товар или нехватка
    остатка отменяет весь заказ. Повторяющиеся product_id не объединяются: каждая
    строка проверяет остаток, уже уменьшенный предыдущими строками.
    """

    def __init__(self, unit_of_work, metrics: MetricsRecorder):
        self._uow = unit_of_work
        self._metrics = metrics

    async def __call__(self, order_data: CreateOrderDTO) -> Order:
        started = time.monotonic()
        await self._metrics.record_metric("Custom/Order/PlaceOrder")
        try:
            order = await self._create(order_data)
        except DomainException as e:
            await self._metrics.record_metric("Custom/Order/PlaceOrder/Error")
            await self._metrics.record_error(e)
            raise

        elapsed_ms = (time.monotonic() - started) * 1000
        await self._metrics.record_metric("Custom/Order/PlaceOrder/ResponseTime", elapsed_ms)
        return order

    async def _create(self, order_data: CreateOrderDTO) -> Order:
        self._validate(order_data)
        order_id = str(uuid.uuid4())
        logger.info(
            f"Создание заказа {order_id} для {order_data.customer_email}, строк: {len(order_data.items)}"
        )

        async with self._uow() as uow:
            subtotal = Decimal("0.00")
            items = []

            # 1. Проверка товаров и списание остатков, строго в порядке запроса
            for line_number, line in enumerate(order_data.items, start=1):
                product = await uow.products.get_active_for_update(line.product_id)
                if not product:
                    raise ProductUnavailableError(line.product_id)
                if not product.has_stock(line.quantity):
                    raise InsufficientStockError(
                        product.id, product.name, product.stock_quantity, line.quantity
                    )

                item_total = line_total(product.price, line.quantity)

                if not await uow.products.decrement_stock(product.id, line.quantity):
                    # Остаток изменился конкурентной транзакцией, сообщаем актуальный
                    current = await uow.products.get_active(product.id)
                    raise InsufficientStockError(
                        product.id, product.name, current.stock_quantity if current else 0, line.quantity
                    )

                items.append(OrderItem(
                    id=str(uuid.uuid4()),
                    order_id=order_id,
                    product_id=product.id,
                    line_number=line_number,
                    quantity=line.quantity,
                    unit_price=product.price,
                    total_price=item_total
                ))
                subtotal += item_total

            # 2. Расчет налога, доставки и итоговой суммы
            totals = calculate_totals(subtotal)

            # 3. Создание заказа
            now = datetime.now(timezone.utc)
            order = Order(
                id=order_id,
                customer_email=order_data.customer_email,
                customer_name=order_data.customer_name,
                shipping_address=order_data.shipping_address,
                billing_address=order_data.billing_address or order_data.shipping_address,
                total_amount=totals.total_amount,
                tax_amount=totals.tax_amount,
                shipping_amount=totals.shipping_amount,
                status=OrderStatus.PENDING,
                payment_status=PaymentStatus.PENDING,
                payment_method=order_data.payment_method,
                created_at=now,
                updated_at=now
            )
            await uow.orders.insert_order_with_items(order, items)
            await uow.commit()

        logger.info(
            f"Заказ создан: {order_id}, сумма {totals.total_amount} "
            f"(подытог {totals.subtotal}, налог {totals.tax_amount}, доставка {totals.shipping_amount})"
        )

        # 4. Чтение заказа со строками уже после коммита
        async with self._uow() as uow:
            created = await uow.orders.get_by_id(order_id)
        if not created:
            raise OrderNotFoundError(f"Заказ {order_id} не найден после создания")
        return created

    def _validate(self, order_data: CreateOrderDTO) -> None:
        """Повторная проверка строк: данные запроса считаются недоверенными"""
        errors = []
        if not order_data.items:
            errors.append({"field": "items", "message": "Заказ должен содержать хотя бы одну строку"})
        elif len(order_data.items) > MAX_LINES:
            errors.append({"field": "items", "message": f"Заказ не может содержать больше {MAX_LINES} строк"})

        for index, line in enumerate(order_data.items):
            if not isinstance(line.product_id, str) or not line.product_id.strip():
                errors.append({"field": f"items.{index}.product_id", "message": "Некорректный ID товара"})
            if isinstance(line.quantity, bool) or not MIN_QUANTITY <= line.quantity <= MAX_QUANTITY:
                errors.append({
                    "field": f"items.{index}.quantity",
                    "message": f"Количество должно быть от {MIN_QUANTITY} до {MAX_QUANTITY}"
                })

        if errors:
            raise InvalidRequestError("Некорректный заказ", errors)
