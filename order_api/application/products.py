from typing import Optional, List

from order_api.domain.models import Product
from order_api.domain.exceptions import DomainException, ProductNotFoundError
from order_api.application.interfaces import MetricsRecorder


class ListProductsUseCase:
    def __init__(self, unit_of_work, metrics: MetricsRecorder):
        self._uow = unit_of_work
        self._metrics = metrics

    async def __call__(self, category: Optional[str] = None) -> List[Product]:
        await self._metrics.record_metric("Custom/Product/GetProducts")
        try:
            async with self._uow() as uow:
                return await uow.products.list_active(category=category)
        except DomainException as e:
            await self._metrics.record_metric("Custom/Product/GetProducts/Error")
            await self._metrics.record_error(e)
            raise


class GetProductUseCase:
    def __init__(self, unit_of_work, metrics: MetricsRecorder):
        self._uow = unit_of_work
        self._metrics = metrics

    async def __call__(self, product_id: str) -> Product:
        await self._metrics.record_metric("Custom/Product/GetProduct")
        try:
            async with self._uow() as uow:
                product = await uow.products.get_active(product_id)
                if not product:
                    raise ProductNotFoundError(f"Товар {product_id} не найден")
                return product
        except DomainException as e:
            await self._metrics.record_metric("Custom/Product/GetProduct/Error")
            await self._metrics.record_error(e)
            raise
