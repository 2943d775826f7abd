"""Payment settlement API endpoints."""

from dataclasses import asdict
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query

from parcel_ledger.application.dto import PaymentConfirmation
from parcel_ledger.application.services import PaymentReconciler, PlanService
from parcel_ledger.application.services.plan_service import DEFAULT_UPCOMING_LIMIT
from parcel_ledger.core.dependencies import get_payment_reconciler, get_plan_service
from parcel_ledger.presentation.schemas import (
    AttachChargeRequestSchema,
    ErrorResponseSchema,
    PaymentConfirmationSchema,
    PaymentSchema,
    SettleRequestSchema,
    SettlementResponseSchema,
    UpcomingPaymentSchema,
)

payment_router = APIRouter(
    prefix="/payments",
    responses={
        404: {"model": ErrorResponseSchema, "description": "Payment not found"},
        409: {"model": ErrorResponseSchema, "description": "Payment already paid or expired"},
    },
)


@payment_router.post(
    "/confirmations",
    response_model=SettlementResponseSchema,
    summary="Payment Confirmation",
    description="""
    Settle an installment from a payment-rail confirmation addressed by
    payment_id or external_charge_id.
    """,
    responses={
        400: {"model": ErrorResponseSchema, "description": "Malformed or underpaid confirmation"},
    },
)
async def confirm_payment(
    request: PaymentConfirmationSchema,
    reconciler: Annotated[PaymentReconciler, Depends(get_payment_reconciler)],
) -> SettlementResponseSchema:
    dto = PaymentConfirmation(
        payment_id=request.payment_id,
        external_charge_id=request.external_charge_id,
        paid_amount_cents=request.paid_amount_cents,
        paid_at=request.paid_at,
    )
    response = await reconciler.handle_confirmation(dto)

    return SettlementResponseSchema(**asdict(response))


@payment_router.post(
    "/{payment_id}/settle",
    response_model=SettlementResponseSchema,
    summary="Settle Payment",
    description="Mark an installment paid, update its plan and release credit to the token.",
)
async def settle_payment(
    payment_id: Annotated[UUID, Path(description="UUID of the payment")],
    reconciler: Annotated[PaymentReconciler, Depends(get_payment_reconciler)],
    request: Annotated[SettleRequestSchema | None, Body()] = None,
) -> SettlementResponseSchema:
    paid_at = request.paid_at if request is not None else None
    response = await reconciler.settle(payment_id, paid_at=paid_at)

    return SettlementResponseSchema(**asdict(response))


@payment_router.post(
    "/{payment_id}/charge",
    response_model=PaymentSchema,
    summary="Attach Charge",
    description="Record the payment-rail charge reference for an open installment.",
)
async def attach_charge(
    payment_id: Annotated[UUID, Path(description="UUID of the payment")],
    request: AttachChargeRequestSchema,
    reconciler: Annotated[PaymentReconciler, Depends(get_payment_reconciler)],
) -> PaymentSchema:
    response = await reconciler.attach_charge(payment_id, request.external_charge_id)
    return PaymentSchema(**asdict(response))


@payment_router.get(
    "/upcoming",
    response_model=list[UpcomingPaymentSchema],
    summary="Upcoming Installments",
    description="The owner's next open installments across all plans, earliest due first.",
)
async def list_upcoming_payments(
    owner_id: Annotated[
        str,
        Query(min_length=1, max_length=255, description="Owner to look up"),
    ],
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
    limit: Annotated[
        int,
        Query(ge=1, le=50, description="Maximum number of installments"),
    ] = DEFAULT_UPCOMING_LIMIT,
) -> list[UpcomingPaymentSchema]:
    payments = await plan_service.get_upcoming_payments(owner_id, limit=limit)
    return [UpcomingPaymentSchema(**asdict(payment)) for payment in payments]
