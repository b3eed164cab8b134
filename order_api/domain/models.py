from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    CASH_ON_DELIVERY = "cash_on_delivery"


class Product(BaseModel):
    """Value Object: товар из каталога"""
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    stock_quantity: int
    category: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def has_stock(self, quantity: int) -> bool:
        return self.stock_quantity >= quantity


class OrderItem(BaseModel):
    """Строка заказа. Цена фиксируется в момент создания заказа"""
    id: str
    order_id: str
    product_id: str
    line_number: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    created_at: Optional[datetime] = None
    # Поля каталога, подставляются при чтении
    product_name: Optional[str] = None
    product_description: Optional[str] = None
    product_image: Optional[str] = None


class Order(BaseModel):
    """Domain Entity: заказ"""
    id: str
    customer_email: str
    customer_name: str
    shipping_address: str
    billing_address: str
    total_amount: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod
    created_at: datetime
    updated_at: datetime
    items: list[OrderItem] = []

    @property
    def subtotal(self) -> Decimal:
        return sum((item.total_price for item in self.items), Decimal("0.00"))
