from order_api.domain.models import Order
from order_api.domain.exceptions import DomainException, OrderNotFoundError
from order_api.application.interfaces import MetricsRecorder


class GetOrderUseCase:
    def __init__(self, unit_of_work, metrics: MetricsRecorder):
        self._uow = unit_of_work
        self._metrics = metrics

    async def __call__(self, order_id: str) -> Order:
        await self._metrics.record_metric("Custom/Order/GetOrder")
        try:
            async with self._uow() as uow:
                order = await uow.orders.get_by_id(order_id)
                if not order:
                    raise OrderNotFoundError(f"Заказ {order_id} не найден")
                return order
        except DomainException as e:
            await self._metrics.record_metric("Custom/Order/GetOrder/Error")
            await self._metrics.record_error(e)
            raise
