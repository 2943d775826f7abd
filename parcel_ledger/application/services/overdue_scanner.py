"""Overdue scanner - the periodic sweep over past-due installments."""

from datetime import date, datetime
from typing import Callable, List, Optional

import structlog

from parcel_ledger.application.dto import OverdueScanResult
from parcel_ledger.core.metrics import record_payments_overdue, track_operation_latency
from parcel_ledger.domain.entities import LedgerEvent, LedgerEventType
from parcel_ledger.domain.interfaces import UnitOfWorkFactory
from parcel_ledger.service.installments import LedgerSettings, ledger_settings
from parcel_ledger.utils.date_utils import utcnow
from .credit_token_service import CreditTokenService
from .event_dispatcher import EventDispatcher

logger = structlog.get_logger(__name__)


class OverdueScanner:
    """
    Moves past-due pending payments to overdue, then applies token policy.

    Candidates are selected in batches of overdue_scan_batch_size until none
    remain. Each candidate is transitioned by its own guarded update, so a
    payment settled between selection and update stays paid. Running the
    sweep twice for the same day changes nothing the second time.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        token_service: CreditTokenService,
        dispatcher: Optional[EventDispatcher] = None,
        ledger_config: LedgerSettings = ledger_settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._uow_factory = uow_factory
        self._token_service = token_service
        self._dispatcher = dispatcher
        self._settings = ledger_config
        self._clock = clock

    async def run(self, as_of: date | None = None) -> OverdueScanResult:
        """
        Run one overdue sweep.

        Args:
            as_of: Payments due strictly before this date are overdue
                (default: today)

        Returns:
            OverdueScanResult with the counts of this sweep
        """
        now = self._clock()
        as_of = as_of or now.date()
        log = logger.bind(as_of=as_of.isoformat())
        log.info("overdue_scan_started")

        events: List[LedgerEvent] = []
        scanned = 0
        batch_size = self._settings.overdue_scan_batch_size

        with track_operation_latency("overdue_scan"):
            async with self._uow_factory() as uow:
                while True:
                    candidates = await uow.payments.find_overdue_candidates(
                        as_of, batch_size
                    )
                    scanned += len(candidates)
                    marked = 0

                    for payment in candidates:
                        if not await uow.payments.mark_overdue(payment.id, as_of):
                            continue
                        marked += 1

                        plan = await uow.plans.get_by_id(payment.plan_id)
                        event = LedgerEvent(
                            event_type=LedgerEventType.PAYMENT_OVERDUE,
                            owner_id=plan.owner_id,
                            entity_id=str(payment.id),
                            amount_cents=payment.amount_cents,
                            due_date=payment.due_date,
                        )
                        await uow.events.add(event)
                        events.append(event)

                    # A short batch is the last. A batch that moved nothing would repeat.
                    if len(candidates) < batch_size or marked == 0:
                        break

        record_payments_overdue(len(events))

        if self._dispatcher is not None and events:
            await self._dispatcher.dispatch(events)

        frozen = await self._token_service.freeze_overdue_tokens(
            self._settings.freeze_overdue_threshold
        )
        expired = await self._token_service.expire_stale_tokens(now)

        result = OverdueScanResult(
            as_of=as_of.isoformat(),
            scanned=scanned,
            marked_overdue=len(events),
            tokens_frozen=len(frozen),
            tokens_expired=len(expired),
        )

        log.info(
            "overdue_scan_completed",
            scanned=result.scanned,
            marked_overdue=result.marked_overdue,
            tokens_frozen=result.tokens_frozen,
            tokens_expired=result.tokens_expired,
        )

        return result
