from typing import Optional, List, Tuple
from datetime import datetime, timezone
from sqlalchemy import select, insert, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from order_api.domain.models import Order, OrderItem, OrderStatus, PaymentStatus, PaymentMethod, Product
from order_api.infrastructure.db_schema import products_tbl, orders_tbl, order_items_tbl
from order_api.application.interfaces import ProductRepository, OrderRepository


class SQLAlchemyProductRepository(ProductRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    def _active(self, product_id: str):
        return select(products_tbl).where(
            products_tbl.c.id == product_id,
            products_tbl.c.is_active.is_(True)
        )

    async def get_active(self, product_id: str) -> Optional[Product]:
        result = await self._session.execute(self._active(product_id))
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def get_active_for_update(self, product_id: str) -> Optional[Product]:
        # Блокировка строки до конца транзакции (в SQLite игнорируется)
        result = await self._session.execute(self._active(product_id).with_for_update())
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def decrement_stock(self, product_id: str, amount: int) -> bool:
        stmt = (
            update(products_tbl)
            .where(
                products_tbl.c.id == product_id,
                products_tbl.c.is_active.is_(True),
                products_tbl.c.stock_quantity >= amount
            )
            .values(
                stock_quantity=products_tbl.c.stock_quantity - amount,
                updated_at=datetime.now(timezone.utc)
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def list_active(self, category: Optional[str] = None) -> List[Product]:
        stmt = select(products_tbl).where(products_tbl.c.is_active.is_(True))
        if category:
            stmt = stmt.where(products_tbl.c.category == category)
        result = await self._session.execute(stmt.order_by(products_tbl.c.name.asc()))
        return [self._to_domain(row) for row in result.fetchall()]

    def _to_domain(self, row) -> Product:
        """Трансформация DB → Domain"""
        return Product(
            id=row.id,
            name=row.name,
            description=row.description,
            price=row.price,
            stock_quantity=row.stock_quantity,
            category=row.category,
            image_url=row.image_url,
            is_active=row.is_active,
            created_at=row.created_at,
            updated_at=row.updated_at
        )


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def insert_order_with_items(self, order: Order, items: List[OrderItem]) -> None:
        stmt = insert(orders_tbl).values(
            id=order.id,
            customer_email=order.customer_email,
            customer_name=order.customer_name,
            shipping_address=order.shipping_address,
            billing_address=order.billing_address,
            total_amount=order.total_amount,
            tax_amount=order.tax_amount,
            shipping_amount=order.shipping_amount,
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            created_at=order.created_at,
            updated_at=order.updated_at
        )
        await self._session.execute(stmt)

        await self._session.execute(
            insert(order_items_tbl),
            [
                {
                    "id": item.id,
                    "order_id": order.id,
                    "product_id": item.product_id,
                    "line_number": item.line_number,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "total_price": item.total_price,
                    "created_at": order.created_at,
                    "updated_at": order.created_at
                }
                for item in items
            ]
        )

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        result = await self._session.execute(
            select(orders_tbl).where(orders_tbl.c.id == order_id)
        )
        row = result.fetchone()
        if not row:
            return None

        items_result = await self._session.execute(
            select(
                order_items_tbl,
                products_tbl.c.name.label("product_name"),
                products_tbl.c.description.label("product_description"),
                products_tbl.c.image_url.label("product_image")
            )
            .join(products_tbl, order_items_tbl.c.product_id == products_tbl.c.id)
            .where(order_items_tbl.c.order_id == order_id)
            .order_by(order_items_tbl.c.line_number.asc())
        )
        items = [self._item_to_domain(item_row) for item_row in items_result.fetchall()]
        return self._to_domain(row, items)

    async def update_status(
        self,
        order_id: str,
        status: Optional[OrderStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> Optional[Order]:
        values = {"updated_at": datetime.now(timezone.utc)}
        if status is not None:
            values["status"] = status
        if payment_status is not None:
            values["payment_status"] = payment_status

        result = await self._session.execute(
            update(orders_tbl).where(orders_tbl.c.id == order_id).values(**values)
        )
        if result.rowcount == 0:
            return None
        return await self.get_by_id(order_id)

    async def list(
        self,
        customer_email: Optional[str] = None,
        status: Optional[OrderStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Order], int]:
        conditions = []
        if customer_email:
            conditions.append(orders_tbl.c.customer_email == customer_email)
        if status:
            conditions.append(orders_tbl.c.status == status)
        if payment_status:
            conditions.append(orders_tbl.c.payment_status == payment_status)

        result = await self._session.execute(
            select(orders_tbl)
            .where(*conditions)
            .order_by(orders_tbl.c.created_at.desc(), orders_tbl.c.id.desc())
            .limit(limit)
            .offset(offset)
        )
        orders = [self._to_domain(row) for row in result.fetchall()]

        total = await self._session.scalar(
            select(func.count()).select_from(orders_tbl).where(*conditions)
        )
        return orders, int(total or 0)

    def _item_to_domain(self, row) -> OrderItem:
        return OrderItem(
            id=row.id,
            order_id=row.order_id,
            product_id=row.product_id,
            line_number=row.line_number,
            quantity=row.quantity,
            unit_price=row.unit_price,
            total_price=row.total_price,
            created_at=row.created_at,
            product_name=row.product_name,
            product_description=row.product_description,
            product_image=row.product_image
        )

    def _to_domain(self, row, items: Optional[List[OrderItem]] = None) -> Order:
        """Трансформация DB → Domain"""
        return Order(
            id=row.id,
            customer_email=row.customer_email,
            customer_name=row.customer_name,
            shipping_address=row.shipping_address,
            billing_address=row.billing_address or row.shipping_address,
            total_amount=row.total_amount,
            tax_amount=row.tax_amount,
            shipping_amount=row.shipping_amount,
            status=OrderStatus(row.status),
            payment_status=PaymentStatus(row.payment_status),
            payment_method=PaymentMethod(row.payment_method),
            created_at=row.created_at,
            updated_at=row.updated_at,
            items=items or []
        )
