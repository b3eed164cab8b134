from sqlalchemy import (
    Table, Column, String, Integer, Numeric, Text, Boolean, Enum, DateTime, ForeignKey, MetaData,
    CheckConstraint
)
from sqlalchemy.sql import func

from order_api.domain.models import OrderStatus, PaymentStatus, PaymentMethod

metadata = MetaData()


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


products_tbl = Table(
    "products",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("description", Text, nullable=True),
    Column("price", Numeric(10, 2), nullable=False),
    Column("stock_quantity", Integer, nullable=False, default=0),
    Column("category", String(255), nullable=True, index=True),
    Column("image_url", String(255), nullable=True),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now()),
    CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative")
)


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("customer_email", String(255), nullable=False, index=True),
    Column("customer_name", String(255), nullable=False),
    Column("shipping_address", Text, nullable=False),
    Column("billing_address", Text, nullable=True),
    Column("total_amount", Numeric(10, 2), nullable=False),
    Column("tax_amount", Numeric(10, 2), nullable=False, default=0),
    Column("shipping_amount", Numeric(10, 2), nullable=False, default=0),
    Column(
        "status",
        Enum(OrderStatus, name="order_status", values_callable=_enum_values),
        nullable=False,
        default=OrderStatus.PENDING,
    ),
    Column(
        "payment_status",
        Enum(PaymentStatus, name="payment_status", values_callable=_enum_values),
        nullable=False,
        default=PaymentStatus.PENDING,
    ),
    Column(
        "payment_method",
        Enum(PaymentMethod, name="payment_method", values_callable=_enum_values),
        nullable=False,
    ),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), index=True),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
)


order_items_tbl = Table(
    "order_items",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("order_id", String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("product_id", String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
    Column("line_number", Integer, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", Numeric(10, 2), nullable=False),
    Column("total_price", Numeric(10, 2), nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
)
