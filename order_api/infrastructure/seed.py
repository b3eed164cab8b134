import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import delete, insert
from sqlalchemy.ext.asyncio import AsyncSession

from order_api.domain.models import OrderStatus, PaymentStatus, PaymentMethod
from order_api.domain.pricing import calculate_totals, line_total
from order_api.infrastructure.db_schema import products_tbl, orders_tbl, order_items_tbl

logger = logging.getLogger(__name__)

PRODUCTS = [
    ("laptop", "Gaming Laptop", "High-performance gaming laptop with RTX graphics", "1299.99", 25),
    ("mouse", "Wireless Gaming Mouse", "Precision wireless mouse for gaming", "79.99", 100),
    ("keyboard", "Mechanical Keyboard", "RGB mechanical keyboard with blue switches", "149.99", 50),
    ("monitor", "4K Gaming Monitor", "27-inch 4K monitor with 144Hz refresh rate", "599.99", 30),
    ("headphones", "Noise-Cancelling Headphones",
     "Premium wireless headphones with active noise cancellation", "299.99", 75),
    ("tablet", "Android Tablet", "10-inch Android tablet with stylus support", "399.99", 40),
    ("smartphone", "Flagship Smartphone", "Latest flagship smartphone with triple camera system", "899.99", 60),
    ("speaker", "Bluetooth Speaker", "Portable Bluetooth speaker with waterproof design", "129.99", 80),
]

# (email, имя, адрес, статус, статус оплаты, способ оплаты, [(товар, цена на момент заказа)])
SAMPLE_ORDERS = [
    ("john.doe@example.com", "John Doe", "123 Main St, City, State 12345",
     "delivered", "paid", "credit_card",
     [("laptop", "1299.99"), ("mouse", "79.99"), ("keyboard", "149.99")]),
    ("jane.smith@example.com", "Jane Smith", "456 Oak Ave, City, State 67890",
     "processing", "paid", "paypal",
     [("monitor", "599.99"), ("speaker", "129.99")]),
    ("bob.wilson@example.com", "Bob Wilson", "789 Pine St, City, State 13579",
     "pending", "pending", "credit_card",
     [("headphones", "99.99"), ("speaker", "129.99")]),
]


async def seed(session: AsyncSession) -> dict[str, str]:
    """Очищает таблицы и заполняет каталог и примеры заказов. Возвращает ID товаров по ключу"""
    await session.execute(delete(order_items_tbl))
    await session.execute(delete(orders_tbl))
    await session.execute(delete(products_tbl))

    product_ids = {key: str(uuid.uuid4()) for key, *_ in PRODUCTS}
    await session.execute(
        insert(products_tbl),
        [
            {
                "id": product_ids[key],
                "name": name,
                "description": description,
                "price": Decimal(price),
                "stock_quantity": stock,
                "category": "Electronics",
                "image_url": f"https://example.com/images/{key}.jpg",
                "is_active": True
            }
            for key, name, description, price, stock in PRODUCTS
        ]
    )

    now = datetime.now(timezone.utc)
    for index, (email, name, address, status, payment_status, method, lines) in enumerate(SAMPLE_ORDERS):
        order_id = str(uuid.uuid4())
        created_at = now - timedelta(days=len(SAMPLE_ORDERS) - index)
        items = [
            {
                "id": str(uuid.uuid4()),
                "order_id": order_id,
                "product_id": product_ids[key],
                "line_number": line_number,
                "quantity": 1,
                "unit_price": Decimal(price),
                "total_price": line_total(Decimal(price), 1),
                "created_at": created_at,
                "updated_at": created_at
            }
            for line_number, (key, price) in enumerate(lines, start=1)
        ]
        totals = calculate_totals(sum((item["total_price"] for item in items), Decimal("0.00")))
        await session.execute(insert(orders_tbl).values(
            id=order_id,
            customer_email=email,
            customer_name=name,
            shipping_address=address,
            billing_address=address,
            total_amount=totals.total_amount,
            tax_amount=totals.tax_amount,
            shipping_amount=totals.shipping_amount,
            status=OrderStatus(status),
            payment_status=PaymentStatus(payment_status),
            payment_method=PaymentMethod(method),
            created_at=created_at,
            updated_at=created_at
        ))
        await session.execute(insert(order_items_tbl), items)

    await session.commit()
    logger.info(f"Добавлено товаров: {len(PRODUCTS)}, заказов: {len(SAMPLE_ORDERS)}")
    return product_ids


async def main():
    from order_api.database import AsyncSessionLocal, engine

    async with AsyncSessionLocal() as session:
        await seed(session)
    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    asyncio.run(main())
