import asyncio
from contextlib import asynccontextmanager
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from order_api.domain.exceptions import (
    DomainException, ConstraintViolationError, StorageUnavailableError
)
from order_api.infrastructure.repositories import (
    SQLAlchemyProductRepository,
    SQLAlchemyOrderRepository
)

DEFAULT_TIMEOUT = 10.0


class UnitOfWork:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], timeout: float = DEFAULT_TIMEOUT):
        self._session_factory = session_factory
        self._timeout = timeout

    @asynccontextmanager
    async def __call__(self):
        async with self._session_factory() as session:
            # Создаем реализацию с репозиториями
            uow_impl = _UnitOfWorkImpl(session)
            try:
                async with asyncio.timeout(self._timeout):
                    yield uow_impl  # Отдаем внутреннюю реализацию
            except DomainException:
                await session.rollback()
                raise
            except IntegrityError as e:
                await session.rollback()
                raise ConstraintViolationError(f"Нарушено ограничение БД: {e.orig}") from e
            except (OperationalError, InterfaceError, TimeoutError, OSError) as e:
                await session.rollback()
                raise StorageUnavailableError(f"Хранилище недоступно: {e}") from e
            except Exception:
                await session.rollback()
                raise
            # Если commit не вызван: rollback
            await session.rollback()


class _UnitOfWorkImpl:
    def __init__(self, session: AsyncSession):
        self._session = session
        self.products = SQLAlchemyProductRepository(session)
        self.orders = SQLAlchemyOrderRepository(session)

    async def commit(self):
        await self._session.commit()

    async def rollback(self):
        await self._session.rollback()
