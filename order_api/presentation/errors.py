import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from order_api.config import settings
from order_api.domain.exceptions import (
    DomainException,
    InvalidRequestError,
    ProductNotFoundError,
    ProductUnavailableError,
    InsufficientStockError,
    OrderNotFoundError,
    StorageUnavailableError,
    ConstraintViolationError,
)
from order_api.presentation.schemas import ErrorResponse, FieldError

logger = logging.getLogger(__name__)

CONSTRAINT_VIOLATION_MESSAGE = "Запись уже существует"

# Единственное место, где ошибки превращаются в HTTP статусы
DOMAIN_STATUS_CODES = [
    (InvalidRequestError, status.HTTP_400_BAD_REQUEST),
    (ProductUnavailableError, status.HTTP_400_BAD_REQUEST),
    (InsufficientStockError, status.HTTP_409_CONFLICT),
    (OrderNotFoundError, status.HTTP_404_NOT_FOUND),
    (ProductNotFoundError, status.HTTP_404_NOT_FOUND),
    (ConstraintViolationError, status.HTTP_409_CONFLICT),
    (StorageUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _status_for(exc: DomainException) -> int:
    for exc_type, status_code in DOMAIN_STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        field = ".".join(loc[1:]) or (loc[0] if loc else "")
        errors.append(FieldError(field=field, message=err.get("msg", "")))

    in_query = any(err.get("loc", ("",))[0] == "query" for err in exc.errors())
    message = "Некорректные параметры запроса" if in_query else "Ошибка валидации"
    logger.warning(f"{request.method} {request.url.path}: {message}: {[e.model_dump() for e in errors]}")
    return _error_response(status.HTTP_400_BAD_REQUEST, ErrorResponse(message=message, errors=errors))


async def domain_exception_handler(request: Request, exc: DomainException):
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc}", exc_info=exc)
        message = "Сервис временно недоступен"
        body = ErrorResponse(message=message, error=str(exc) if settings.IS_DEVELOPMENT else None)
    elif isinstance(exc, ConstraintViolationError):
        # Текст драйвера наружу только в development
        logger.warning(f"{request.method} {request.url.path}: {exc}")
        body = ErrorResponse(
            message=CONSTRAINT_VIOLATION_MESSAGE,
            error=str(exc) if settings.IS_DEVELOPMENT else None
        )
    else:
        logger.warning(f"{request.method} {request.url.path}: {exc}")
        errors = None
        if isinstance(exc, InvalidRequestError) and exc.errors:
            errors = [FieldError(**error) for error in exc.errors]
        body = ErrorResponse(message=str(exc), errors=errors)
    return _error_response(status_code, body)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        logger.warning(f"Endpoint не найден: {request.method} {request.url.path}")
        message = "Endpoint не найден"
    else:
        message = str(exc.detail)
    return _error_response(exc.status_code, ErrorResponse(message=message))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path}: необработанная ошибка")
    body = ErrorResponse(
        message="Внутренняя ошибка сервера",
        error=repr(exc) if settings.IS_DEVELOPMENT else "Something went wrong"
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
