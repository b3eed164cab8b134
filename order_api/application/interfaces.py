from abc import ABC, abstractmethod
from typing import Optional, List, Tuple
from order_api.domain.models import Order, OrderItem, OrderStatus, PaymentStatus, Product


class ProductRepository(ABC):
    @abstractmethod
    async def get_active(self, product_id: str) -> Optional[Product]:
        pass

    @abstractmethod
    async def get_active_for_update(self, product_id: str) -> Optional[Product]:
        pass

    @abstractmethod
    async def decrement_stock(self, product_id: str, amount: int) -> bool:
        pass

    @abstractmethod
    async def list_active(self, category: Optional[str] = None) -> List[Product]:
        pass


class OrderRepository(ABC):
    @abstractmethod
    async def insert_order_with_items(self, order: Order, items: List[OrderItem]) -> None:
        pass

    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def update_status(
        self,
        order_id: str,
        status: Optional[OrderStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> Optional[Order]:
        pass

    @abstractmethod
    async def list(
        self,
        customer_email: Optional[str] = None,
        status: Optional[OrderStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Order], int]:
        pass


class UnitOfWork(ABC):
    @property
    @abstractmethod
    def products(self) -> ProductRepository:
        pass

    @property
    @abstractmethod
    def orders(self) -> OrderRepository:
        pass

    @abstractmethod
    async def __call__(self):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


class MetricsRecorder(ABC):
    @abstractmethod
    async def record_metric(self, name: str, value: float = 1) -> None:
        pass

    @abstractmethod
    async def record_error(self, error: Exception) -> None:
        pass

    async def aclose(self) -> None:
        """Освобождение ресурсов при остановке приложения"""
        return None
