"""API endpoints for installment plans."""

from dataclasses import asdict
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from parcel_ledger.application.services import PlanService, RescheduleService
from parcel_ledger.core.dependencies import get_plan_service, get_reschedule_service
from parcel_ledger.domain.entities import PlanStatus
from parcel_ledger.presentation.schemas import (
    ErrorResponseSchema,
    PlanResponseSchema,
    RescheduleRequestSchema,
)

plan_router = APIRouter(prefix="/plans")


@plan_router.get(
    "",
    response_model=list[PlanResponseSchema],
    summary="List Owner Plans",
    description="Retrieve the plans of an owner, newest first, optionally filtered by status.",
)
async def list_plans(
    owner_id: Annotated[
        str,
        Query(min_length=1, max_length=255, description="Owner to list plans for"),
    ],
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
    status: Annotated[
        PlanStatus | None,
        Query(description="Only plans in this status"),
    ] = None,
) -> list[PlanResponseSchema]:
    plans = await plan_service.get_plans_by_owner(owner_id, status=status)
    return [PlanResponseSchema(**asdict(plan)) for plan in plans]


@plan_router.get(
    "/{plan_id}",
    response_model=PlanResponseSchema,
    summary="Get Installment Plan",
    description="""
    Retrieve an installment plan by its ID.

    Returns the plan aggregates and every installment payment with its
    due date, amount and current status.
    """,
    responses={
        200: {"description": "Plan retrieved successfully"},
        404: {"model": ErrorResponseSchema, "description": "Plan not found"},
    },
)
async def get_plan(
    plan_id: Annotated[
        UUID,
        Path(description="UUID of the plan to retrieve"),
    ],
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
) -> PlanResponseSchema:
    response = await plan_service.get_plan(plan_id)
    return PlanResponseSchema(**asdict(response))


@plan_router.post(
    "/{plan_id}/reschedule",
    response_model=PlanResponseSchema,
    summary="Reschedule Plan",
    description="Assign new due dates, positionally, to the plan's pending payments.",
    responses={
        400: {"model": ErrorResponseSchema, "description": "Date count or order invalid"},
        404: {"model": ErrorResponseSchema, "description": "Plan not found"},
        409: {"model": ErrorResponseSchema, "description": "Nothing left to reschedule"},
    },
)
async def reschedule_plan(
    plan_id: Annotated[UUID, Path(description="UUID of the plan")],
    request: RescheduleRequestSchema,
    reschedule_service: Annotated[RescheduleService, Depends(get_reschedule_service)],
) -> PlanResponseSchema:
    response = await reschedule_service.reschedule(plan_id, request.new_due_dates)
    return PlanResponseSchema(**asdict(response))
