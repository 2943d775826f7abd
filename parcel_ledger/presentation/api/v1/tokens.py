"""Credit token API endpoints."""

from dataclasses import asdict
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from parcel_ledger.application.dto import IssueTokenRequest, TokenResponse
from parcel_ledger.application.services import CreditTokenService, PlanService
from parcel_ledger.core.dependencies import get_plan_service, get_token_service
from parcel_ledger.presentation.schemas import (
    ErrorResponseSchema,
    IssueTokenRequestSchema,
    PlanResponseSchema,
    TokenResponseSchema,
)

token_router = APIRouter(
    prefix="/tokens",
    responses={
        404: {"model": ErrorResponseSchema, "description": "Token not found"},
        409: {"model": ErrorResponseSchema, "description": "Token state conflict"},
    },
)


def _to_schema(response: TokenResponse) -> TokenResponseSchema:
    return TokenResponseSchema(**asdict(response))


@token_router.post(
    "",
    response_model=TokenResponseSchema,
    status_code=201,
    summary="Issue Credit Token",
    description="""
    Issue a revolving credit token with a limit approved by underwriting.

    An owner holds at most one active token.
    """,
    responses={
        201: {"description": "Token issued"},
        400: {"model": ErrorResponseSchema, "description": "Invalid request"},
    },
)
async def issue_token(
    request: IssueTokenRequestSchema,
    token_service: Annotated[CreditTokenService, Depends(get_token_service)],
) -> TokenResponseSchema:
    dto = IssueTokenRequest(
        owner_id=request.owner_id,
        approved_limit_cents=request.approved_limit_cents,
        max_installments=request.max_installments,
        interest_rate_bps=request.interest_rate_bps,
        validity_days=request.validity_days,
    )
    response = await token_service.issue(dto)

    return _to_schema(response)


@token_router.get(
    "/active",
    response_model=TokenResponseSchema,
    summary="Get Active Token",
    description="Retrieve the active token of an owner.",
)
async def get_active_token(
    owner_id: Annotated[
        str,
        Query(min_length=1, max_length=255, description="Owner to look up"),
    ],
    token_service: Annotated[CreditTokenService, Depends(get_token_service)],
) -> TokenResponseSchema:
    token = await token_service.get_active_token(owner_id)
    return _to_schema(TokenResponse.from_entity(token))


@token_router.get(
    "/{token_id}",
    response_model=TokenResponseSchema,
    summary="Get Credit Token",
    description="Retrieve a token with its current balance.",
)
async def get_token(
    token_id: Annotated[UUID, Path(description="UUID of the token")],
    token_service: Annotated[CreditTokenService, Depends(get_token_service)],
) -> TokenResponseSchema:
    token = await token_service.get_token(token_id)
    return _to_schema(TokenResponse.from_entity(token))


@token_router.post(
    "/{token_id}/freeze",
    response_model=TokenResponseSchema,
    summary="Freeze Token",
    description="Stop an active token from accepting new reservations. Payments are still accepted.",
)
async def freeze_token(
    token_id: Annotated[UUID, Path(description="UUID of the token")],
    token_service: Annotated[CreditTokenService, Depends(get_token_service)],
) -> TokenResponseSchema:
    token = await token_service.freeze(token_id)
    return _to_schema(TokenResponse.from_entity(token))


@token_router.post(
    "/{token_id}/unfreeze",
    response_model=TokenResponseSchema,
    summary="Unfreeze Token",
    description="Reactivate a frozen token that has not expired.",
)
async def unfreeze_token(
    token_id: Annotated[UUID, Path(description="UUID of the token")],
    token_service: Annotated[CreditTokenService, Depends(get_token_service)],
) -> TokenResponseSchema:
    token = await token_service.unfreeze(token_id)
    return _to_schema(TokenResponse.from_entity(token))


@token_router.get(
    "/{token_id}/plans",
    response_model=list[PlanResponseSchema],
    summary="Token Purchase History",
    description="Every plan purchased against the token, newest first.",
)
async def list_token_plans(
    token_id: Annotated[UUID, Path(description="UUID of the token")],
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
) -> list[PlanResponseSchema]:
    plans = await plan_service.get_plans_by_token(token_id)
    return [PlanResponseSchema(**asdict(plan)) for plan in plans]
