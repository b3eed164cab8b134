class DomainException(Exception):
    pass


class InvalidRequestError(DomainException):
    """Некорректные входные данные с ошибками по полям"""

    def __init__(self, message: str, errors: list[dict] | None = None):
        self.errors = errors or []
        super().__init__(message)


class ProductNotFoundError(DomainException):
    pass


class ProductUnavailableError(DomainException):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Товар {product_id} не найден или не активен")


class InsufficientStockError(DomainException):
    def __init__(self, product_id: str, product_name: str, available: int, required: int):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.required = required
        super().__init__(
            f"Недостаточно товара {product_name}. Доступно: {available}, требуется: {required}"
        )


class OrderNotFoundError(DomainException):
    pass


class StorageUnavailableError(DomainException):
    """Временная ошибка хранилища, операцию можно повторить целиком"""
    pass


class ConstraintViolationError(DomainException):
    pass
