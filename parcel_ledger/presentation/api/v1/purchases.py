"""Purchase API endpoints."""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends

from parcel_ledger.application.dto import PurchaseRequest
from parcel_ledger.application.services import (
    InstallmentPlanGenerator,
    PurchaseService,
)
from parcel_ledger.core.dependencies import get_plan_generator, get_purchase_service
from parcel_ledger.presentation.schemas import (
    ErrorResponseSchema,
    PurchaseRequestSchema,
    PurchaseResponseSchema,
    QuoteRequestSchema,
    QuoteResponseSchema,
)

purchase_router = APIRouter(
    prefix="/purchases",
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid request"},
    },
)


@purchase_router.post(
    "",
    response_model=PurchaseResponseSchema,
    status_code=201,
    summary="Purchase With Token",
    description="""
    Reserve the purchase amount on the owner's token and split it into
    dated installments.

    If plan generation fails the reservation is released.
    """,
    responses={
        201: {"description": "Plan created"},
        403: {"model": ErrorResponseSchema, "description": "Token belongs to another owner"},
        404: {"model": ErrorResponseSchema, "description": "Token not found"},
        409: {"model": ErrorResponseSchema, "description": "Token inactive or credit insufficient"},
    },
)
async def create_purchase(
    request: PurchaseRequestSchema,
    purchase_service: Annotated[PurchaseService, Depends(get_purchase_service)],
) -> PurchaseResponseSchema:
    dto = PurchaseRequest(
        owner_id=request.owner_id,
        token_id=request.token_id,
        amount_cents=request.amount_cents,
        installments=request.installments,
        purchase_id=request.purchase_id,
    )
    response = await purchase_service.purchase(dto)

    return PurchaseResponseSchema(**asdict(response))


@purchase_router.post(
    "/quote",
    response_model=QuoteResponseSchema,
    summary="Quote Installments",
    description="Preview the installment schedule for an amount without reserving credit.",
)
async def quote_purchase(
    request: QuoteRequestSchema,
    plan_generator: Annotated[InstallmentPlanGenerator, Depends(get_plan_generator)],
) -> QuoteResponseSchema:
    response = plan_generator.quote(
        request.amount_cents,
        request.installments,
        request.interest_rate_bps,
    )

    return QuoteResponseSchema(**asdict(response))
