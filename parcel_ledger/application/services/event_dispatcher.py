"""Event dispatcher - delivers committed outbox events to notifications."""

from typing import Iterable, List

import structlog

from parcel_ledger.core.config import settings
from parcel_ledger.domain.entities import LedgerEvent
from parcel_ledger.domain.interfaces import NotificationClient, UnitOfWorkFactory

logger = structlog.get_logger(__name__)


class EventDispatcher:
    """
    Delivers ledger events after the transaction that wrote them commits.

    Delivery outcome is written back to the outbox in a transaction of its
    own, so a notification failure never rolls back a ledger change.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notification_client: NotificationClient,
        batch_size: int | None = None,
    ):
        self._uow_factory = uow_factory
        self._client = notification_client
        self._batch_size = batch_size or settings.event_dispatch_batch_size

    async def dispatch(self, events: Iterable[LedgerEvent]) -> int:
        """
        Deliver events and record the outcome of each.

        Args:
            events: Events whose originating transaction has committed

        Returns:
            Number of events delivered
        """
        events = list(events)
        if not events:
            return 0

        delivered = 0
        for event in events:
            result = await self._client.send_event(event)
            if result.delivered:
                event.mark_sent(result.attempts)
                delivered += 1
            else:
                event.mark_failed(result.attempts)

        try:
            async with self._uow_factory() as uow:
                for event in events:
                    await uow.events.update(event)
        except Exception:
            # The ledger change is already committed; events stay pending
            logger.exception(
                "event_bookkeeping_failed",
                event_ids=[str(event.id) for event in events],
            )
            return delivered

        logger.info(
            "events_dispatched",
            count=len(events),
            delivered=delivered,
            failed=len(events) - delivered,
        )

        return delivered

    async def dispatch_pending(self, limit: int | None = None) -> int:
        """
        Deliver events left pending by earlier runs.

        Args:
            limit: Max events to deliver (default: configured batch size)

        Returns:
            Number of events delivered
        """
        async with self._uow_factory() as uow:
            pending: List[LedgerEvent] = await uow.events.get_pending(
                limit or self._batch_size
            )

        logger.info("pending_events_loaded", count=len(pending))

        return await self.dispatch(pending)
