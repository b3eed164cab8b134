from datetime import datetime
from decimal import Decimal
from typing import Generic, Optional, TypeVar
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field, model_validator

from order_api.domain.models import OrderStatus, PaymentStatus, PaymentMethod

T = TypeVar("T")


class OrderItemRequest(BaseModel):
    product_id: UUID
    quantity: int = Field(ge=1, le=100)


class CreateOrderRequest(BaseModel):
    customer_email: EmailStr
    customer_name: str = Field(min_length=2, max_length=100)
    shipping_address: str = Field(min_length=10, max_length=500)
    billing_address: Optional[str] = Field(default=None, min_length=10, max_length=500)
    payment_method: PaymentMethod
    items: list[OrderItemRequest] = Field(min_length=1, max_length=50)


class UpdateOrderStatusRequest(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None

    @model_validator(mode="after")
    def check_not_empty(self):
        if self.status is None and self.payment_status is None:
            raise ValueError("Нужно указать status или payment_status")
        return self


class ProductResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    stock_quantity: int
    category: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, product):
        return cls(**product.model_dump())


class OrderItemResponse(BaseModel):
    id: str
    order_id: str
    product_id: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    product_name: Optional[str] = None
    product_description: Optional[str] = None
    product_image: Optional[str] = None


class OrderResponse(BaseModel):
    id: str
    customer_email: str
    customer_name: str
    shipping_address: str
    billing_address: str
    total_amount: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    created_at: datetime
    updated_at: datetime
    items: Optional[list[OrderItemResponse]] = None

    @classmethod
    def from_domain(cls, order, with_items: bool = True):
        return cls(
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
            updated_at=order.updated_at,
            items=[
                OrderItemResponse(**item.model_dump(exclude={"line_number", "created_at"}))
                for item in order.items
            ] if with_items else None
        )


class PaginationResponse(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool = Field(serialization_alias="hasMore")


class OrdersPageResponse(BaseModel):
    orders: list[OrderResponse]
    pagination: PaginationResponse


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class FieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: Optional[list[FieldError]] = None
    error: Optional[str] = None
