# order_api/main.py
import time
import asyncio
import logging
from datetime import datetime, timezone
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, InterfaceError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from order_api.config import settings
from order_api.database import engine, get_session_factory
from order_api.infrastructure.metrics import create_metrics_recorder
from order_api.infrastructure.migrations import upgrade_database
from order_api.presentation.api import router
from order_api.presentation.errors import register_exception_handlers

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    # Схема ведется только миграциями Alembic
    try:
        await asyncio.to_thread(upgrade_database)
        logger.info("Миграции применены")
    except (OperationalError, InterfaceError, OSError) as e:
        logger.warning(f"Не удалось подключиться к БД при старте: {e}")

    logger.info(
        f"Order API запущен, окружение: {settings.ENVIRONMENT}, "
        f"метрики: {'включены' if settings.METRICS_ENABLED else 'выключены'}"
    )

    app.state.metrics = create_metrics_recorder(settings)

    yield

    logger.info("Приложение останавливается...")
    await app.state.metrics.aclose()
    await engine.dispose()
    logger.info("Соединения с БД закрыты")


app = FastAPI(
    title="Order API",
    description="Сервис заказов: каталог, заказы, остатки",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGIN_LIST,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)
app.include_router(router, prefix="/api")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.monotonic()
    response = await call_next(request)
    elapsed_ms = (time.monotonic() - started) * 1000
    logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
    return response


@app.get("/")
async def root():
    return {
        "message": "Order API работает",
        "version": app.version,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/health")
async def health(session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory)):
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
    except (OperationalError, InterfaceError, OSError) as e:
        logger.error(f"Health check: БД недоступна: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "ERROR", "timestamp": timestamp, "database": "disconnected"}
        )
    return {
        "status": "OK",
        "timestamp": timestamp,
        "database": "connected",
        "environment": settings.ENVIRONMENT
    }
