"""Reschedule service - moves the due dates of pending installments."""

from datetime import date
from typing import Sequence
from uuid import UUID

import structlog

from parcel_ledger.application.dto import PlanResponse
from parcel_ledger.domain.exceptions import (
    CountMismatchException,
    IllegalTransitionException,
    InvalidDueDatesException,
    NothingToRescheduleException,
    PlanNotFoundException,
)
from parcel_ledger.domain.interfaces import UnitOfWorkFactory
from parcel_ledger.utils.date_utils import is_strictly_increasing

logger = structlog.get_logger(__name__)


class RescheduleService:
    """Application service for rescheduling a plan's pending payments."""

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def reschedule(
        self,
        plan_id: UUID,
        new_due_dates: Sequence[date],
    ) -> PlanResponse:
        """
        Assign new due dates to a plan's pending payments.

        Dates are matched positionally to the pending payments ordered by
        installment number. Paid and overdue payments keep their dates.

        Args:
            plan_id: Plan to reschedule
            new_due_dates: One date per pending payment, strictly increasing

        Returns:
            PlanResponse with the updated schedule

        Raises:
            PlanNotFoundException: If plan not found
            NothingToRescheduleException: If the plan has no pending payments
            CountMismatchException: If the date count differs from the pending count
            InvalidDueDatesException: If the dates are not strictly increasing
            IllegalTransitionException: If a payment stopped being pending meanwhile
        """
        new_due_dates = list(new_due_dates)
        log = logger.bind(plan_id=str(plan_id))

        async with self._uow_factory() as uow:
            plan = await uow.plans.get_by_id(plan_id)
            if plan is None:
                raise PlanNotFoundException(str(plan_id))

            pending = await uow.payments.get_pending_by_plan(plan_id)
            if not pending:
                raise NothingToRescheduleException(str(plan_id))

            if len(new_due_dates) != len(pending):
                raise CountMismatchException(len(pending), len(new_due_dates))

            if not is_strictly_increasing(new_due_dates):
                raise InvalidDueDatesException()

            for payment, due_date in zip(pending, new_due_dates):
                if not await uow.payments.update_due_date(payment.id, due_date):
                    current = await uow.payments.get_by_id(payment.id)
                    raise IllegalTransitionException(
                        "payment", current.status.value, "rescheduled"
                    )

            await uow.plans.refresh_next_due_date(plan_id)
            plan = await uow.plans.get_by_id(plan_id)

        log.info(
            "plan_rescheduled",
            rescheduled=len(pending),
            next_due_date=plan.next_due_date.isoformat() if plan.next_due_date else None,
        )

        return PlanResponse.from_entity(plan)
