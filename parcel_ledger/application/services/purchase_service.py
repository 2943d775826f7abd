"""Purchase service - the reuse-token purchase flow."""

from datetime import datetime
from typing import Callable
from uuid import uuid4

import structlog

from parcel_ledger.application.dto import (
    PlanResponse,
    PurchaseRequest,
    PurchaseResponse,
)
from parcel_ledger.core.metrics import record_compensation
from parcel_ledger.domain.entities import TokenStatus
from parcel_ledger.domain.exceptions import (
    InsufficientCreditException,
    InvalidAmountException,
    InvalidRequestException,
    NotOwnerException,
    TokenExpiredException,
    TokenNotActiveException,
    TooManyInstallmentsException,
)
from parcel_ledger.utils.date_utils import utcnow
from .credit_token_service import CreditTokenService
from .plan_generator import InstallmentPlanGenerator

logger = structlog.get_logger(__name__)


class PurchaseService:
    """
    Application service for purchases against an owner's existing token.

    Reserving credit and generating the plan are two transactions treated
    as one unit: if generation fails after the reservation committed, the
    reservation is released before the error propagates.
    """

    def __init__(
        self,
        token_service: CreditTokenService,
        plan_generator: InstallmentPlanGenerator,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._token_service = token_service
        self._plan_generator = plan_generator
        self._clock = clock

    async def purchase(self, request: PurchaseRequest) -> PurchaseResponse:
        """
        Reserve credit and create an installment plan for a purchase.

        The token checks below give early, specific errors; the reservation
        itself is still the guarded write, so a concurrent purchase that
        drains the token between check and reserve fails cleanly.

        Args:
            request: Owner, token, amount and installment count

        Returns:
            PurchaseResponse with the plan and the token's new available balance

        Raises:
            InvalidAmountException: If amount or installments is not positive
            InvalidRequestException: If request validation fails
            TokenNotFoundException: If token not found
            NotOwnerException: If the token belongs to someone else
            TokenExpiredException: If the token's validity window has passed
            TokenNotActiveException: If the token is frozen or expired
            InsufficientCreditException: If amount exceeds available credit
            TooManyInstallmentsException: If installments exceed the token maximum
        """
        if request.amount_cents <= 0:
            raise InvalidAmountException(
                f"Purchase amount must be positive, got {request.amount_cents}"
            )
        if request.installments < 1:
            raise InvalidAmountException(
                f"Installment count must be at least 1, got {request.installments}"
            )

        errors = request.validate()
        if errors:
            raise InvalidRequestException("; ".join(errors))

        token_id = str(request.token_id)
        purchase_id = request.purchase_id or str(uuid4())
        log = logger.bind(
            owner_id=request.owner_id,
            token_id=token_id,
            purchase_id=purchase_id,
            amount=request.amount_cents,
        )
        log.info("purchase_requested", installments=request.installments)

        token = await self._token_service.get_token(request.token_id)

        if token.owner_id != request.owner_id:
            log.warning("purchase_not_owner")
            raise NotOwnerException(token_id, request.owner_id)

        if token.status == TokenStatus.EXPIRED or token.is_expired(self._clock()):
            raise TokenExpiredException(token_id)

        if token.status != TokenStatus.ACTIVE:
            raise TokenNotActiveException(token_id, token.status.value)

        if request.amount_cents > token.available_cents:
            raise InsufficientCreditException(
                token_id,
                request.amount_cents,
                token.available_cents,
            )

        if request.installments > token.max_installments:
            raise TooManyInstallmentsException(
                request.installments,
                token.max_installments,
            )

        available = await self._token_service.reserve(
            request.token_id, request.amount_cents
        )

        try:
            plan = await self._plan_generator.generate(
                purchase_id=purchase_id,
                token_id=request.token_id,
                owner_id=request.owner_id,
                total_amount_cents=request.amount_cents,
                num_installments=request.installments,
                interest_rate_bps=token.interest_rate_bps,
            )
        except Exception as exc:
            log.exception("plan_generation_failed", error=str(exc))
            available = await self._token_service.release(
                request.token_id, request.amount_cents
            )
            record_compensation()
            log.info("reservation_compensated", available=available)
            raise

        log.info(
            "purchase_completed",
            plan_id=str(plan.id),
            available=available,
        )

        return PurchaseResponse(
            plan=PlanResponse.from_entity(plan),
            available_cents=available,
        )
