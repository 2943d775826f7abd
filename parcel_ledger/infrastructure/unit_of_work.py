"""SQLAlchemy implementation of the ledger UnitOfWork."""

from types import TracebackType
from typing import Callable, Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from parcel_ledger.domain.interfaces import UnitOfWork
from parcel_ledger.infrastructure.repositories import (
    SqlEventRepository,
    SqlPaymentRepository,
    SqlPlanRepository,
    SqlTokenRepository,
)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    One AsyncSession, one transaction.

    All repositories share the session, so every guarded write issued inside
    the block commits or rolls back together.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        self._session = self._session_factory()
        self.tokens = SqlTokenRepository(self._session)
        self.plans = SqlPlanRepository(self._session)
        self.payments = SqlPaymentRepository(self._session)
        self.events = SqlEventRepository(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            await self._session.close()
            self._session = None

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()


def sqlalchemy_uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SqlAlchemyUnitOfWork]:
    """Bind a session factory into a zero-argument UnitOfWork factory."""

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory)

    return factory
