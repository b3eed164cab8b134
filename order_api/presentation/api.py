from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from order_api.database import get_session_factory
from order_api.presentation.schemas import (
    CreateOrderRequest, UpdateOrderStatusRequest, OrderResponse, OrdersPageResponse,
    PaginationResponse, ProductResponse, ApiResponse, ErrorResponse
)
from order_api.application.interfaces import MetricsRecorder
from order_api.application.create_order import CreateOrderUseCase, CreateOrderDTO, OrderLineDTO
from order_api.application.get_order import GetOrderUseCase
from order_api.application.list_orders import ListOrdersUseCase, ListOrdersDTO, DEFAULT_LIMIT, MAX_LIMIT
from order_api.application.update_order_status import UpdateOrderStatusUseCase, UpdateOrderStatusDTO
from order_api.application.products import ListProductsUseCase, GetProductUseCase
from order_api.domain.models import OrderStatus, PaymentStatus
from order_api.infrastructure.unit_of_work import UnitOfWork
from order_api.config import settings

router = APIRouter()


# Фабрики для создания use cases
def get_unit_of_work(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory)
) -> UnitOfWork:
    return UnitOfWork(session_factory, timeout=settings.TRANSACTION_TIMEOUT)


def get_metrics_recorder(request: Request) -> MetricsRecorder:
    # Один recorder на приложение, создается в lifespan
    return request.app.state.metrics


def get_create_order_use_case(
    uow: UnitOfWork = Depends(get_unit_of_work),
    metrics: MetricsRecorder = Depends(get_metrics_recorder)
):
    return CreateOrderUseCase(uow, metrics)


def get_get_order_use_case(
    uow: UnitOfWork = Depends(get_unit_of_work),
    metrics: MetricsRecorder = Depends(get_metrics_recorder)
):
    return GetOrderUseCase(uow, metrics)


def get_list_orders_use_case(
    uow: UnitOfWork = Depends(get_unit_of_work),
    metrics: MetricsRecorder = Depends(get_metrics_recorder)
):
    return ListOrdersUseCase(uow, metrics)


def get_update_order_status_use_case(
    uow: UnitOfWork = Depends(get_unit_of_work),
    metrics: MetricsRecorder = Depends(get_metrics_recorder)
):
    return UpdateOrderStatusUseCase(uow, metrics)


def get_list_products_use_case(
    uow: UnitOfWork = Depends(get_unit_of_work),
    metrics: MetricsRecorder = Depends(get_metrics_recorder)
):
    return ListProductsUseCase(uow, metrics)


def get_get_product_use_case(
    uow: UnitOfWork = Depends(get_unit_of_work),
    metrics: MetricsRecorder = Depends(get_metrics_recorder)
):
    return GetProductUseCase(uow, metrics)


@router.get("/products", response_model=ApiResponse[list[ProductResponse]])
async def list_products(
    category: Optional[str] = None,
    use_case: ListProductsUseCase = Depends(get_list_products_use_case)
):
    """Список активных товаров, по имени"""
    products = await use_case(category=category)
    return ApiResponse(data=[ProductResponse.from_domain(product) for product in products])


@router.get(
    "/products/{product_id}",
    response_model=ApiResponse[ProductResponse],
    responses={404: {"model": ErrorResponse}}
)
async def get_product(
    product_id: str,
    use_case: GetProductUseCase = Depends(get_get_product_use_case)
):
    """Получить товар по ID"""
    product = await use_case(product_id)
    return ApiResponse(data=ProductResponse.from_domain(product))


@router.post(
    "/orders",
    response_model=ApiResponse[OrderResponse],
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse}
    },
    status_code=status.HTTP_201_CREATED
)
async def create_order(
    request: CreateOrderRequest,
    use_case: CreateOrderUseCase = Depends(get_create_order_use_case)
):
    """Создать новый заказ"""
    dto = CreateOrderDTO(
        customer_email=request.customer_email,
        customer_name=request.customer_name,
        shipping_address=request.shipping_address,
        billing_address=request.billing_address,
        payment_method=request.payment_method,
        items=[
            OrderLineDTO(product_id=str(item.product_id), quantity=item.quantity)
            for item in request.items
        ]
    )
    order = await use_case(dto)
    return ApiResponse(message="Заказ успешно создан", data=OrderResponse.from_domain(order))


@router.get(
    "/orders",
    response_model=ApiResponse[OrdersPageResponse],
    responses={400: {"model": ErrorResponse}}
)
async def list_orders(
    customer_email: Optional[EmailStr] = None,
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    payment_status: Optional[PaymentStatus] = None,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    use_case: ListOrdersUseCase = Depends(get_list_orders_use_case)
):
    """Список заказов с фильтрами и пагинацией"""
    page = await use_case(ListOrdersDTO(
        customer_email=customer_email,
        status=order_status,
        payment_status=payment_status,
        limit=limit,
        offset=offset
    ))
    return ApiResponse(data=OrdersPageResponse(
        orders=[OrderResponse.from_domain(order, with_items=False) for order in page.orders],
        pagination=PaginationResponse(**page.pagination.model_dump())
    ))


@router.get(
    "/orders/{order_id}",
    response_model=ApiResponse[OrderResponse],
    responses={404: {"model": ErrorResponse}}
)
async def get_order(
    order_id: str,
    use_case: GetOrderUseCase = Depends(get_get_order_use_case)
):
    """Получить заказ по ID"""
    order = await use_case(order_id)
    return ApiResponse(data=OrderResponse.from_domain(order))


@router.patch(
    "/orders/{order_id}/status",
    response_model=ApiResponse[OrderResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def update_order_status(
    order_id: str,
    request: UpdateOrderStatusRequest,
    use_case: UpdateOrderStatusUseCase = Depends(get_update_order_status_use_case)
):
    """Обновить статус заказа и/или статус оплаты"""
    order = await use_case(
        order_id,
        UpdateOrderStatusDTO(status=request.status, payment_status=request.payment_status)
    )
    return ApiResponse(message="Статус заказа обновлен", data=OrderResponse.from_domain(order))
