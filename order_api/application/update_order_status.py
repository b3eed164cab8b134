import logging
from typing import Optional
from pydantic import BaseModel

from order_api.domain.models import Order, OrderStatus, PaymentStatus
from order_api.domain.exceptions import DomainException, InvalidRequestError, OrderNotFoundError
from order_api.application.interfaces import MetricsRecorder

logger = logging.getLogger(__name__)


class UpdateOrderStatusDTO(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None


class UpdateOrderStatusUseCase:
    def __init__(self, unit_of_work, metrics: MetricsRecorder):
        self._uow = unit_of_work
        self._metrics = metrics

    async def __call__(self, order_id: str, dto: UpdateOrderStatusDTO) -> Order:
        await self._metrics.record_metric("Custom/Order/UpdateStatus")
        try:
            order = await self._update(order_id, dto)
        except DomainException as e:
            await self._metrics.record_metric("Custom/Order/UpdateStatus/Error")
            await self._metrics.record_error(e)
            raise

        logger.info(f"Заказ {order_id}: status={order.status.value}, payment_status={order.payment_status.value}")
        return order

    async def _update(self, order_id: str, dto: UpdateOrderStatusDTO) -> Order:
        if dto.status is None and dto.payment_status is None:
            raise InvalidRequestError(
                "Не указан новый статус",
                [{"field": "status", "message": "Нужно указать status или payment_status"}]
            )

        async with self._uow() as uow:
            order = await uow.orders.update_status(
                order_id, status=dto.status, payment_status=dto.payment_status
            )
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            await uow.commit()
        return order
