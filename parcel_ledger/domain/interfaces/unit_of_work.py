"""Transactional boundary shared by the ledger repositories."""

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Callable, Optional, Type

from .repositories import (
    EventRepository,
    PaymentRepository,
    PlanRepository,
    TokenRepository,
)


class UnitOfWork(ABC):
    """
    One atomic transaction scope over tokens, plans, payments and events.

    Usage:
        async with uow_factory() as uow:
            await uow.tokens.try_reserve(...)

    Leaving the block normally commits; an exception rolls back.
    """

    tokens: TokenRepository
    plans: PlanRepository
    payments: PaymentRepository
    events: EventRepository

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if exc_type is None:
            await self.commit()
        else:
            await self.rollback()

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...


UnitOfWorkFactory = Callable[[], UnitOfWork]
