"""Plan service - handles plan and installment retrieval use cases."""

from typing import Optional
from uuid import UUID

import structlog

from parcel_ledger.application.dto import PlanResponse, UpcomingPaymentDTO
from parcel_ledger.domain.entities import PlanStatus
from parcel_ledger.domain.exceptions import (
    InvalidRequestException,
    PlanNotFoundException,
    TokenNotFoundException,
)
from parcel_ledger.domain.interfaces import UnitOfWorkFactory

logger = structlog.get_logger(__name__)

DEFAULT_UPCOMING_LIMIT = 3


class PlanService:
    """
    Application service for installment plan queries.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory

    async def get_plan(self, plan_id: UUID) -> PlanResponse:
        """
        Retrieve an installment plan by ID.

        Args:
            plan_id: The plan's unique identifier

        Returns:
            PlanResponse with plan details and payments

        Raises:
            PlanNotFoundException: If plan not found
        """
        async with self._uow_factory() as uow:
            plan = await uow.plans.get_by_id(plan_id)

        if plan is None:
            logger.warning("plan_not_found", plan_id=str(plan_id))
            raise PlanNotFoundException(str(plan_id))

        logger.info(
            "plan_retrieved",
            plan_id=str(plan_id),
            owner_id=plan.owner_id,
            num_installments=len(plan.payments),
        )

        return PlanResponse.from_entity(plan)

    async def get_plans_by_owner(
        self,
        owner_id: str,
        status: Optional[PlanStatus] = None,
    ) -> list[PlanResponse]:
        """
        Retrieve the plans of an owner.

        Args:
            owner_id: The owner's identifier
            status: Only return plans in this status (default: all)

        Returns:
            List of PlanResponse objects, newest first
        """
        async with self._uow_factory() as uow:
            plans = await uow.plans.get_by_owner(owner_id, status=status)

        logger.info(
            "owner_plans_retrieved",
            owner_id=owner_id,
            status=status.value if status else None,
            count=len(plans),
        )

        return [PlanResponse.from_entity(plan) for plan in plans]

    async def get_plans_by_token(self, token_id: UUID) -> list[PlanResponse]:
        """
        Retrieve every plan purchased against a token, newest first.

        Raises:
            TokenNotFoundException: If token not found
        """
        async with self._uow_factory() as uow:
            token = await uow.tokens.get_by_id(token_id)
            if token is None:
                raise TokenNotFoundException(str(token_id))

            plans = await uow.plans.get_by_token(token_id)

        logger.info("token_plans_retrieved", token_id=str(token_id), count=len(plans))

        return [PlanResponse.from_entity(plan) for plan in plans]

    async def get_upcoming_payments(
        self,
        owner_id: str,
        limit: int = DEFAULT_UPCOMING_LIMIT,
    ) -> list[UpcomingPaymentDTO]:
        """
        Retrieve an owner's next open installments across all plans.

        Overdue payments sort ahead of pending ones since their due dates
        are earlier.

        Raises:
            InvalidRequestException: If limit is not positive
        """
        if limit < 1:
            raise InvalidRequestException(f"limit must be positive, got {limit}")

        async with self._uow_factory() as uow:
            payments = await uow.payments.get_upcoming_by_owner(owner_id, limit)

        return [UpcomingPaymentDTO.from_entity(payment) for payment in payments]
