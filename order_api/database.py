from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from order_api.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    pool_pre_ping=True,
)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Фабрика сессий для Unit of Work (переопределяется в тестах)"""
    return AsyncSessionLocal
