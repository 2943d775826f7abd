"""Payment reconciler - settles installments and releases credit."""

from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID

import structlog

from parcel_ledger.application.dto import (
    PaymentConfirmation,
    PaymentDTO,
    SettlementResponse,
)
from parcel_ledger.core.metrics import (
    record_plan_completed,
    record_release,
    record_settlement,
    track_operation_latency,
)
from parcel_ledger.domain.entities import (
    InstallmentPayment,
    LedgerEvent,
    LedgerEventType,
    PaymentStatus,
)
from parcel_ledger.domain.exceptions import (
    AlreadyPaidException,
    IllegalTransitionException,
    InvalidAmountException,
    InvalidRequestException,
    PaymentNotFoundException,
)
from parcel_ledger.domain.interfaces import UnitOfWork, UnitOfWorkFactory
from parcel_ledger.utils.date_utils import as_naive_utc, utcnow
from .event_dispatcher import EventDispatcher

logger = structlog.get_logger(__name__)


class PaymentReconciler:
    """
    Application service for installment settlement.

    Settlement is a single transaction whose first statement is the guarded
    payment transition. Only the call that wins that transition goes on to
    update the plan and release credit, so a payment is counted and released
    at most once no matter how often its confirmation is delivered.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        dispatcher: Optional[EventDispatcher] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._uow_factory = uow_factory
        self._dispatcher = dispatcher
        self._clock = clock

    async def settle(
        self,
        payment_id: UUID,
        paid_at: datetime | None = None,
    ) -> SettlementResponse:
        """
        Settle one installment payment.

        Args:
            payment_id: Payment to settle
            paid_at: When the rail confirmed the payment (default: now)

        Returns:
            SettlementResponse with the committed payment, plan and token state

        Raises:
            PaymentNotFoundException: If payment not found
            AlreadyPaidException: If the payment was already settled
            IllegalTransitionException: If the payment expired
        """
        paid_at = as_naive_utc(paid_at) or self._clock()
        log = logger.bind(payment_id=str(payment_id))

        with track_operation_latency("settle"):
            async with self._uow_factory() as uow:
                if not await uow.payments.mark_paid(payment_id, paid_at):
                    await self._raise_settle_failure(uow, payment_id)

                payment = await uow.payments.get_by_id(payment_id)

                if not await uow.plans.record_payment(
                    payment.plan_id, payment.amount_cents
                ):
                    plan = await uow.plans.get_by_id(payment.plan_id)
                    raise IllegalTransitionException(
                        "plan", plan.status.value, "paid_installment"
                    )

                await uow.plans.refresh_next_due_date(payment.plan_id)
                plan = await uow.plans.get_by_id(payment.plan_id)

                await uow.tokens.release(plan.token_id, payment.principal_cents)
                token = await uow.tokens.get_by_id(plan.token_id)

                events = [
                    LedgerEvent(
                        event_type=LedgerEventType.PAYMENT_SETTLED,
                        owner_id=plan.owner_id,
                        entity_id=str(payment.id),
                        amount_cents=payment.amount_cents,
                        due_date=payment.due_date,
                    )
                ]
                if plan.is_completed:
                    events.append(
                        LedgerEvent(
                            event_type=LedgerEventType.PLAN_COMPLETED,
                            owner_id=plan.owner_id,
                            entity_id=str(plan.id),
                            amount_cents=plan.total_cents,
                        )
                    )
                for event in events:
                    await uow.events.add(event)

        record_settlement("settled")
        record_release(payment.principal_cents)

        log.info(
            "payment_settled",
            plan_id=str(plan.id),
            installment_number=payment.installment_number,
            amount=payment.amount_cents,
            released=payment.principal_cents,
            paid_installments=plan.paid_installments,
            available=token.available_cents,
        )

        if plan.is_completed:
            record_plan_completed()
            log.info("plan_completed", plan_id=str(plan.id))

        await self._dispatch(events)

        return SettlementResponse.from_entities(payment, plan, token)

    async def settle_by_charge(
        self,
        external_charge_id: str,
        paid_at: datetime | None = None,
    ) -> SettlementResponse:
        """
        Settle the payment a rail charge was attached to.

        Raises:
            PaymentNotFoundException: If no payment carries the charge
            AlreadyPaidException: If the payment was already settled
        """
        payment = await self._get_by_charge(external_charge_id)
        return await self.settle(payment.id, paid_at=paid_at)

    async def handle_confirmation(
        self,
        confirmation: PaymentConfirmation,
    ) -> SettlementResponse:
        """
        Settle a payment from a payment-rail confirmation.

        Args:
            confirmation: Payment or charge reference and the amount paid

        Returns:
            SettlementResponse for the settled payment

        Raises:
            InvalidRequestException: If the confirmation is malformed
            InvalidAmountException: If less than the installment was paid
            PaymentNotFoundException: If the payment cannot be found
            AlreadyPaidException: If the payment was already settled
        """
        errors = confirmation.validate()
        if errors:
            raise InvalidRequestException("; ".join(errors))

        if confirmation.payment_id is not None:
            async with self._uow_factory() as uow:
                payment = await uow.payments.get_by_id(confirmation.payment_id)
            if payment is None:
                record_settlement("not_found")
                raise PaymentNotFoundException(str(confirmation.payment_id))
        else:
            payment = await self._get_by_charge(confirmation.external_charge_id)

        if confirmation.paid_amount_cents < payment.amount_cents:
            logger.warning(
                "confirmation_underpaid",
                payment_id=str(payment.id),
                expected=payment.amount_cents,
                paid=confirmation.paid_amount_cents,
            )
            raise InvalidAmountException(
                f"Paid amount {confirmation.paid_amount_cents} is less than "
                f"installment amount {payment.amount_cents}"
            )

        return await self.settle(payment.id, paid_at=confirmation.paid_at)

    async def attach_charge(
        self,
        payment_id: UUID,
        external_charge_id: str,
    ) -> PaymentDTO:
        """
        Record the payment-rail charge reference on an open payment.

        Raises:
            InvalidRequestException: If the charge belongs to another payment
            PaymentNotFoundException: If payment not found
            AlreadyPaidException: If the payment was already settled
            IllegalTransitionException: If the payment expired
        """
        async with self._uow_factory() as uow:
            holder = await uow.payments.get_by_external_charge_id(external_charge_id)
            if holder is not None and holder.id != payment_id:
                raise InvalidRequestException(
                    f"Charge {external_charge_id} is attached to payment {holder.id}"
                )

            if not await uow.payments.attach_charge(payment_id, external_charge_id):
                await self._raise_settle_failure(uow, payment_id)

            payment = await uow.payments.get_by_id(payment_id)

        logger.info(
            "charge_attached",
            payment_id=str(payment_id),
            external_charge_id=external_charge_id,
        )

        return PaymentDTO.from_entity(payment)

    async def _get_by_charge(self, external_charge_id: str) -> InstallmentPayment:
        async with self._uow_factory() as uow:
            payment = await uow.payments.get_by_external_charge_id(external_charge_id)

        if payment is None:
            record_settlement("not_found")
            raise PaymentNotFoundException(external_charge_id)
        return payment

    async def _raise_settle_failure(self, uow: UnitOfWork, payment_id: UUID) -> None:
        """Explain why a guarded payment write matched no row."""
        payment = await uow.payments.get_by_id(payment_id)

        if payment is None:
            record_settlement("not_found")
            raise PaymentNotFoundException(str(payment_id))

        if payment.status == PaymentStatus.PAID:
            record_settlement("already_paid")
            logger.info("payment_already_paid", payment_id=str(payment_id))
            raise AlreadyPaidException(str(payment_id))

        record_settlement("illegal_transition")
        raise IllegalTransitionException(
            "payment",
            payment.status.value,
            PaymentStatus.PAID.value,
        )

    async def _dispatch(self, events: List[LedgerEvent]) -> None:
        if self._dispatcher is not None and events:
            await self._dispatcher.dispatch(events)
