"""Installment plan generator - turns a reserved purchase into a plan."""

from datetime import date, datetime
from typing import Callable, Optional
from uuid import UUID

import structlog

from parcel_ledger.application.dto import QuoteResponse
from parcel_ledger.core.metrics import track_operation_latency
from parcel_ledger.domain.entities import (
    InstallmentPayment,
    InstallmentPlan,
    LedgerEvent,
    LedgerEventType,
)
from parcel_ledger.domain.exceptions import (
    InvalidAmountException,
    TooManyInstallmentsException,
)
from parcel_ledger.domain.interfaces import UnitOfWorkFactory
from parcel_ledger.service.installments import (
    InstallmentSchedule,
    LedgerSettings,
    build_schedule,
    ledger_settings,
)
from parcel_ledger.utils.date_utils import utcnow
from .event_dispatcher import EventDispatcher

logger = structlog.get_logger(__name__)


class InstallmentPlanGenerator:
    """
    Creates an installment plan and its payments in one transaction.

    Credit for the purchase must already be reserved; the caller releases
    the reservation if generation fails.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        dispatcher: Optional[EventDispatcher] = None,
        ledger_config: LedgerSettings = ledger_settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._uow_factory = uow_factory
        self._dispatcher = dispatcher
        self._settings = ledger_config
        self._clock = clock

    async def generate(
        self,
        purchase_id: str,
        token_id: UUID,
        owner_id: str,
        total_amount_cents: int,
        num_installments: int,
        interest_rate_bps: int = 0,
    ) -> InstallmentPlan:
        """
        Generate and persist a plan for a purchase.

        Args:
            purchase_id: Caller's purchase reference (unique per plan)
            token_id: Token the purchase was reserved against
            owner_id: Token owner
            total_amount_cents: Purchase amount (the reserved principal)
            num_installments: Number of installments (N)
            interest_rate_bps: Periodic interest rate; 0 for an even split

        Returns:
            The active plan with N pending payments

        Raises:
            InvalidAmountException: If amount or installment count is not positive
            TooManyInstallmentsException: If N exceeds the configured cap
            DuplicatePurchaseException: If the purchase already has a plan
        """
        schedule = self._schedule(
            total_amount_cents,
            num_installments,
            interest_rate_bps,
            self._clock().date(),
        )

        plan = InstallmentPlan(
            purchase_id=purchase_id,
            token_id=token_id,
            owner_id=owner_id,
            total_installments=num_installments,
            installment_amount_cents=schedule.installment_amount_cents,
            principal_cents=schedule.principal_cents,
            total_cents=schedule.total_cents,
            interest_rate_bps=interest_rate_bps,
            next_due_date=schedule.first_due_date,
        )
        plan.payments = [
            InstallmentPayment(
                plan_id=plan.id,
                installment_number=line.installment_number,
                amount_cents=line.amount_cents,
                principal_cents=line.principal_cents,
                due_date=line.due_date,
            )
            for line in schedule.lines
        ]
        event = LedgerEvent(
            event_type=LedgerEventType.PLAN_CREATED,
            owner_id=owner_id,
            entity_id=str(plan.id),
            amount_cents=plan.total_cents,
            due_date=plan.next_due_date,
        )

        with track_operation_latency("generate_plan"):
            async with self._uow_factory() as uow:
                await uow.plans.add(plan)
                await uow.events.add(event)

        logger.info(
            "plan_created",
            plan_id=str(plan.id),
            purchase_id=purchase_id,
            token_id=str(token_id),
            num_installments=num_installments,
            total=plan.total_cents,
        )

        if self._dispatcher is not None:
            await self._dispatcher.dispatch([event])

        return plan

    def quote(
        self,
        amount_cents: int,
        num_installments: int,
        interest_rate_bps: int = 0,
        issued_on: date | None = None,
    ) -> QuoteResponse:
        """
        Preview the schedule a purchase would get, without persisting it.

        Raises:
            InvalidAmountException: If amount or installment count is not positive
            TooManyInstallmentsException: If N exceeds the configured cap
        """
        schedule = self._schedule(
            amount_cents,
            num_installments,
            interest_rate_bps,
            issued_on or self._clock().date(),
        )
        return QuoteResponse.from_schedule(schedule)

    def _schedule(
        self,
        amount_cents: int,
        num_installments: int,
        interest_rate_bps: int,
        issued_on: date,
    ) -> InstallmentSchedule:
        if amount_cents <= 0:
            raise InvalidAmountException(
                f"Purchase amount must be positive, got {amount_cents}"
            )
        if num_installments < 1:
            raise InvalidAmountException(
                f"Installment count must be at least 1, got {num_installments}"
            )
        if num_installments > self._settings.max_installments_cap:
            raise TooManyInstallmentsException(
                num_installments,
                self._settings.max_installments_cap,
            )
        if interest_rate_bps < 0:
            raise InvalidAmountException(
                f"Interest rate cannot be negative, got {interest_rate_bps}"
            )

        return build_schedule(
            amount_cents,
            num_installments,
            interest_rate_bps=interest_rate_bps,
            issued_on=issued_on,
            settings=self._settings,
        )
