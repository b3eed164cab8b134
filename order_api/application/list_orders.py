from typing import Optional
from pydantic import BaseModel

from order_api.domain.models import Order, OrderStatus, PaymentStatus
from order_api.domain.exceptions import DomainException, InvalidRequestError
from order_api.application.interfaces import MetricsRecorder

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class ListOrdersDTO(BaseModel):
    customer_email: Optional[str] = None
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class OrdersPage(BaseModel):
    orders: list[Order]
    pagination: Pagination


class ListOrdersUseCase:
    def __init__(self, unit_of_work, metrics: MetricsRecorder):
        self._uow = unit_of_work
        self._metrics = metrics

    async def __call__(self, query: ListOrdersDTO) -> OrdersPage:
        await self._metrics.record_metric("Custom/Order/GetOrders")
        try:
            return await self._list(query)
        except DomainException as e:
            await self._metrics.record_metric("Custom/Order/GetOrders/Error")
            await self._metrics.record_error(e)
            raise

    async def _list(self, query: ListOrdersDTO) -> OrdersPage:
        errors = []
        if not 1 <= query.limit <= MAX_LIMIT:
            errors.append({"field": "limit", "message": f"limit должен быть от 1 до {MAX_LIMIT}"})
        if query.offset < 0:
            errors.append({"field": "offset", "message": "offset не может быть отрицательным"})
        if errors:
            raise InvalidRequestError("Некорректные параметры запроса", errors)

        async with self._uow() as uow:
            orders, total = await uow.orders.list(
                customer_email=query.customer_email,
                status=query.status,
                payment_status=query.payment_status,
                limit=query.limit,
                offset=query.offset
            )

        return OrdersPage(
            orders=orders,
            pagination=Pagination(
                total=total,
                limit=query.limit,
                offset=query.offset,
                has_more=query.offset + query.limit < total
            )
        )
