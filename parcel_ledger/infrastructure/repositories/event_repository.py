"""SQL implementation of the ledger event outbox."""

from typing import List
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_ledger.domain.entities import (
    LedgerEvent,
    LedgerEventStatus,
    LedgerEventType,
)
from parcel_ledger.domain.interfaces import EventRepository
from parcel_ledger.infrastructure.database.models import LedgerEventModel


class SqlEventRepository(EventRepository):
    """
    SQLAlchemy implementation of the event outbox.

    Events share the session of the ledger change that produced them.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, event: LedgerEvent) -> LedgerEvent:
        """Persist an event record in the current transaction."""
        model = LedgerEventModel(
            id=str(event.id),
            event_type=event.event_type.value,
            owner_id=event.owner_id,
            entity_id=event.entity_id,
            amount_cents=event.amount_cents,
            due_date=event.due_date,
            status=event.status.value,
            attempts=event.attempts,
            last_attempt_at=event.last_attempt_at,
            created_at=event.created_at,
        )

        self._session.add(model)
        await self._session.flush()

        return event

    async def update(self, event: LedgerEvent) -> LedgerEvent:
        """Update delivery bookkeeping of an existing event."""
        stmt = (
            update(LedgerEventModel)
            .where(LedgerEventModel.id == str(event.id))
            .values(
                status=event.status.value,
                attempts=event.attempts,
                last_attempt_at=event.last_attempt_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        if result.rowcount != 1:
            raise ValueError(f"Ledger event {event.id} not found")

        return event

    async def get_pending(self, limit: int = 100) -> List[LedgerEvent]:
        """Retrieve pending events for delivery, oldest first."""
        stmt = (
            select(LedgerEventModel)
            .where(LedgerEventModel.status == LedgerEventStatus.PENDING.value)
            .order_by(LedgerEventModel.created_at.asc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    def _to_entity(self, model: LedgerEventModel) -> LedgerEvent:
        """Convert database model to domain entity."""
        return LedgerEvent(
            id=UUID(model.id),
            event_type=LedgerEventType(model.event_type),
            owner_id=model.owner_id,
            entity_id=model.entity_id,
            amount_cents=model.amount_cents,
            due_date=model.due_date,
            status=LedgerEventStatus(model.status),
            attempts=model.attempts,
            last_attempt_at=model.last_attempt_at,
            created_at=model.created_at,
        )
