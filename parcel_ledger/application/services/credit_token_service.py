"""Credit token service - token issuance, reservation and lifecycle."""

from datetime import datetime, timedelta
from typing import Callable, List, Optional
from uuid import UUID

import structlog

from parcel_ledger.application.dto import IssueTokenRequest, TokenResponse
from parcel_ledger.core.metrics import (
    record_release,
    record_reservation,
    record_token_frozen,
    record_token_issued,
    track_operation_latency,
)
from parcel_ledger.domain.entities import (
    CreditToken,
    LedgerEvent,
    LedgerEventType,
    TokenStatus,
)
from parcel_ledger.domain.exceptions import (
    DuplicateActiveTokenException,
    IllegalTransitionException,
    InsufficientCreditException,
    InvalidAmountException,
    InvalidRequestException,
    TokenExpiredException,
    TokenNotActiveException,
    TokenNotFoundException,
    TooManyInstallmentsException,
)
from parcel_ledger.domain.interfaces import UnitOfWork, UnitOfWorkFactory
from parcel_ledger.service.installments import LedgerSettings, ledger_settings
from parcel_ledger.utils.date_utils import utcnow
from .event_dispatcher import EventDispatcher

logger = structlog.get_logger(__name__)


class CreditTokenService:
    """
    Application service for the revolving credit token.

    The shared balance is only ever changed through guarded single-statement
    writes in the token repository; this service classifies failures and
    records the matching events.
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

    async def issue(self, request: IssueTokenRequest) -> TokenResponse:
        """
        Issue a token with an externally approved credit limit.

        Args:
            request: Owner, approved limit and optional token policy

        Returns:
            TokenResponse for the new active token

        Raises:
            InvalidRequestException: If request validation fails
            TooManyInstallmentsException: If max_installments exceeds the cap
            DuplicateActiveTokenException: If the owner already has an active token
        """
        errors = request.validate()
        if errors:
            raise InvalidRequestException("; ".join(errors))

        max_installments = (
            request.max_installments or self._settings.default_max_installments
        )
        if max_installments > self._settings.max_installments_cap:
            raise TooManyInstallmentsException(
                max_installments,
                self._settings.max_installments_cap,
            )

        interest_rate_bps = request.interest_rate_bps
        if interest_rate_bps is None:
            interest_rate_bps = self._settings.default_interest_rate_bps

        now = self._clock()
        validity_days = request.validity_days or self._settings.token_validity_days

        log = logger.bind(owner_id=request.owner_id)

        token = CreditToken(
            owner_id=request.owner_id,
            credit_limit_cents=request.approved_limit_cents,
            expires_at=now + timedelta(days=validity_days),
            max_installments=max_installments,
            interest_rate_bps=interest_rate_bps,
            issued_at=now,
        )
        event = LedgerEvent(
            event_type=LedgerEventType.TOKEN_ISSUED,
            owner_id=token.owner_id,
            entity_id=str(token.id),
            amount_cents=token.credit_limit_cents,
        )

        async with self._uow_factory() as uow:
            current = await uow.tokens.get_active_by_owner(request.owner_id)

            # A lapsed token the sweep has not reached yet no longer blocks issuance
            if current is not None and current.is_expired(now):
                await uow.tokens.set_status(
                    current.id, [TokenStatus.ACTIVE], TokenStatus.EXPIRED
                )
                log.info("lapsed_token_expired", token_id=str(current.id))
                current = await uow.tokens.get_active_by_owner(request.owner_id)

            if current is not None:
                log.warning("duplicate_active_token")
                raise DuplicateActiveTokenException(request.owner_id)

            await uow.tokens.add(token)
            await uow.events.add(event)

        record_token_issued()
        log.info(
            "token_issued",
            token_id=str(token.id),
            credit_limit=token.credit_limit_cents,
            max_installments=token.max_installments,
            expires_at=token.expires_at.isoformat(),
        )

        await self._dispatch([event])

        return TokenResponse.from_entity(token)

    async def get_token(self, token_id: UUID) -> CreditToken:
        """
        Get a token by ID.

        Raises:
            TokenNotFoundException: If token not found
        """
        async with self._uow_factory() as uow:
            token = await uow.tokens.get_by_id(token_id)

        if token is None:
            raise TokenNotFoundException(str(token_id))
        return token

    async def get_active_token(self, owner_id: str) -> CreditToken:
        """
        Get the owner's active token.

        Raises:
            TokenNotFoundException: If the owner has no active token
        """
        async with self._uow_factory() as uow:
            token = await uow.tokens.get_active_by_owner(owner_id)

        if token is None:
            raise TokenNotFoundException(f"active token of {owner_id}")
        return token

    async def reserve(self, token_id: UUID, amount_cents: int) -> int:
        """
        Reserve credit against a token.

        The reservation is one guarded UPDATE; when it matches no row the
        token is re-read only to explain why.

        Args:
            token_id: Token to reserve against
            amount_cents: Amount to reserve

        Returns:
            The token's available balance after the reservation

        Raises:
            InvalidAmountException: If amount_cents is not positive
            TokenNotFoundException: If token not found
            TokenExpiredException: If the token's validity window has passed
            TokenNotActiveException: If the token is frozen or expired
            InsufficientCreditException: If the amount exceeds available credit
        """
        if amount_cents <= 0:
            raise InvalidAmountException(
                f"Reservation amount must be positive, got {amount_cents}"
            )

        now = self._clock()
        log = logger.bind(token_id=str(token_id), amount=amount_cents)

        with track_operation_latency("reserve"):
            async with self._uow_factory() as uow:
                if not await uow.tokens.try_reserve(token_id, amount_cents, now):
                    await self._raise_reserve_failure(uow, token_id, amount_cents, now)

                token = await uow.tokens.get_by_id(token_id)

        record_reservation("reserved", amount_cents)
        log.info("credit_reserved", available=token.available_cents)

        return token.available_cents

    async def release(self, token_id: UUID, amount_cents: int) -> int:
        """
        Return credit to a token, clamping used amount at zero.

        Accepted on any token status.

        Returns:
            The token's available balance after the release

        Raises:
            InvalidAmountException: If amount_cents is not positive
            TokenNotFoundException: If token not found
        """
        if amount_cents <= 0:
            raise InvalidAmountException(
                f"Release amount must be positive, got {amount_cents}"
            )

        async with self._uow_factory() as uow:
            if not await uow.tokens.release(token_id, amount_cents):
                raise TokenNotFoundException(str(token_id))
            token = await uow.tokens.get_by_id(token_id)

        record_release(amount_cents)
        logger.info(
            "credit_released",
            token_id=str(token_id),
            amount=amount_cents,
            available=token.available_cents,
        )

        return token.available_cents

    async def freeze(self, token_id: UUID, reason: str = "admin") -> CreditToken:
        """
        Freeze an active token so it stops accepting reservations.

        Raises:
            TokenNotFoundException: If token not found
            IllegalTransitionException: If the token is not active
        """
        async with self._uow_factory() as uow:
            token = await self._transition(
                uow, token_id, [TokenStatus.ACTIVE], TokenStatus.FROZEN
            )
            event = LedgerEvent(
                event_type=LedgerEventType.TOKEN_FROZEN,
                owner_id=token.owner_id,
                entity_id=str(token.id),
            )
            await uow.events.add(event)

        record_token_frozen(reason)
        logger.info("token_frozen", token_id=str(token_id), reason=reason)

        await self._dispatch([event])

        return token

    async def unfreeze(self, token_id: UUID) -> CreditToken:
        """
        Reactivate a frozen token.

        Raises:
            TokenNotFoundException: If token not found
            TokenExpiredException: If the token's validity window has passed
            DuplicateActiveTokenException: If the owner has another active token
            IllegalTransitionException: If the token is not frozen
        """
        async with self._uow_factory() as uow:
            current = await uow.tokens.get_by_id(token_id)
            if current is None:
                raise TokenNotFoundException(str(token_id))

            if current.is_expired(self._clock()):
                raise TokenExpiredException(str(token_id))

            other = await uow.tokens.get_active_by_owner(current.owner_id)
            if other is not None and other.id != current.id:
                raise DuplicateActiveTokenException(current.owner_id)

            token = await self._transition(
                uow, token_id, [TokenStatus.FROZEN], TokenStatus.ACTIVE
            )

        logger.info("token_unfrozen", token_id=str(token_id))

        return token

    async def freeze_overdue_tokens(self, threshold: int | None = None) -> List[UUID]:
        """
        Freeze active tokens carrying `threshold` or more overdue payments.

        Args:
            threshold: Overdue count that triggers a freeze
                (default: configured freeze_overdue_threshold)

        Returns:
            IDs of the tokens frozen by this call
        """
        threshold = threshold or self._settings.freeze_overdue_threshold
        frozen: List[UUID] = []
        events: List[LedgerEvent] = []

        async with self._uow_factory() as uow:
            counts = await uow.payments.overdue_counts_by_token(threshold)

            for token_id, overdue_count in counts.items():
                changed = await uow.tokens.set_status(
                    token_id, [TokenStatus.ACTIVE], TokenStatus.FROZEN
                )
                if not changed:
                    continue

                token = await uow.tokens.get_by_id(token_id)
                event = LedgerEvent(
                    event_type=LedgerEventType.TOKEN_FROZEN,
                    owner_id=token.owner_id,
                    entity_id=str(token_id),
                )
                await uow.events.add(event)
                events.append(event)
                frozen.append(token_id)

                logger.info(
                    "token_frozen",
                    token_id=str(token_id),
                    reason="overdue",
                    overdue_count=overdue_count,
                )

        for _ in frozen:
            record_token_frozen("overdue")

        await self._dispatch(events)

        return frozen

    async def expire_stale_tokens(self, now: datetime | None = None) -> List[CreditToken]:
        """
        Expire tokens whose validity window has passed.

        Returns:
            Tokens expired by this call
        """
        now = now or self._clock()

        async with self._uow_factory() as uow:
            expired = await uow.tokens.expire_stale(now)

        if expired:
            logger.info("tokens_expired", count=len(expired))

        return expired

    async def _transition(
        self,
        uow: UnitOfWork,
        token_id: UUID,
        expected: List[TokenStatus],
        target: TokenStatus,
    ) -> CreditToken:
        """Apply a guarded status change or raise the reason it was refused."""
        changed = await uow.tokens.set_status(token_id, expected, target)
        token = await uow.tokens.get_by_id(token_id)

        if token is None:
            raise TokenNotFoundException(str(token_id))

        if not changed:
            # Raises IllegalTransitionException for a disallowed move
            token.transition_to(target)
            raise IllegalTransitionException("token", token.status.value, target.value)

        return token

    async def _raise_reserve_failure(
        self,
        uow: UnitOfWork,
        token_id: UUID,
        amount_cents: int,
        now: datetime,
    ) -> None:
        token = await uow.tokens.get_by_id(token_id)

        if token is None:
            record_reservation("not_found")
            raise TokenNotFoundException(str(token_id))

        if token.status == TokenStatus.EXPIRED or token.is_expired(now):
            record_reservation("expired")
            raise TokenExpiredException(str(token_id))

        if token.status != TokenStatus.ACTIVE:
            record_reservation("not_active")
            raise TokenNotActiveException(str(token_id), token.status.value)

        record_reservation("insufficient_credit")
        raise InsufficientCreditException(
            str(token_id),
            amount_cents,
            token.available_cents,
        )

    async def _dispatch(self, events: List[LedgerEvent]) -> None:
        if self._dispatcher is not None and events:
            await self._dispatcher.dispatch(events)
