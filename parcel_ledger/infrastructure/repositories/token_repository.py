"""SQL repository implementation for credit tokens."""

from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_ledger.domain.entities import CreditToken, TokenStatus
from parcel_ledger.domain.exceptions import DuplicateActiveTokenException
from parcel_ledger.domain.interfaces import TokenRepository
from parcel_ledger.infrastructure.database.models import CreditTokenModel


class SqlTokenRepository(TokenRepository):
    """
    SQLAlchemy-backed token repository.

    Balance changes are single UPDATE statements whose WHERE clause carries
    the business condition, so concurrent callers can never both pass the
    available-credit check against the same stale balance.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, token: CreditToken) -> CreditToken:
        model = CreditTokenModel(
            id=str(token.id),
            owner_id=token.owner_id,
            credit_limit_cents=token.credit_limit_cents,
            used_amount_cents=token.used_amount_cents,
            max_installments=token.max_installments,
            interest_rate_bps=token.interest_rate_bps,
            status=token.status.value,
            expires_at=token.expires_at,
            issued_at=token.issued_at,
            version=token.version,
        )

        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            # Partial unique index on (owner_id) WHERE status = 'active'
            raise DuplicateActiveTokenException(token.owner_id) from exc

        return token

    async def get_by_id(self, token_id: UUID) -> Optional[CreditToken]:
        stmt = (
            select(CreditTokenModel)
            .where(CreditTokenModel.id == str(token_id))
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def get_active_by_owner(self, owner_id: str) -> Optional[CreditToken]:
        stmt = (
            select(CreditTokenModel)
            .where(
                CreditTokenModel.owner_id == owner_id,
                CreditTokenModel.status == TokenStatus.ACTIVE.value,
            )
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def try_reserve(
        self,
        token_id: UUID,
        amount_cents: int,
        now: datetime,
    ) -> bool:
        stmt = (
            update(CreditTokenModel)
            .where(
                CreditTokenModel.id == str(token_id),
                CreditTokenModel.status == TokenStatus.ACTIVE.value,
                CreditTokenModel.expires_at > now,
                CreditTokenModel.used_amount_cents + amount_cents
                <= CreditTokenModel.credit_limit_cents,
            )
            .values(
                used_amount_cents=CreditTokenModel.used_amount_cents + amount_cents,
                version=CreditTokenModel.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        return result.rowcount == 1

    async def release(self, token_id: UUID, amount_cents: int) -> bool:
        remaining = CreditTokenModel.used_amount_cents - amount_cents
        stmt = (
            update(CreditTokenModel)
            .where(CreditTokenModel.id == str(token_id))
            .values(
                used_amount_cents=case((remaining < 0, 0), else_=remaining),
                version=CreditTokenModel.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        return result.rowcount == 1

    async def set_status(
        self,
        token_id: UUID,
        expected: Iterable[TokenStatus],
        target: TokenStatus,
    ) -> bool:
        stmt = (
            update(CreditTokenModel)
            .where(
                CreditTokenModel.id == str(token_id),
                CreditTokenModel.status.in_([status.value for status in expected]),
            )
            .values(
                status=target.value,
                version=CreditTokenModel.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self._session.execute(stmt)
        except IntegrityError as exc:
            # Reactivating while the owner holds another active token
            raise DuplicateActiveTokenException(str(token_id)) from exc

        return result.rowcount == 1

    async def expire_stale(self, now: datetime) -> List[CreditToken]:
        live = [TokenStatus.ACTIVE, TokenStatus.FROZEN]
        stmt = (
            select(CreditTokenModel)
            .where(
                CreditTokenModel.status.in_([status.value for status in live]),
                CreditTokenModel.expires_at <= now,
            )
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        candidates = [self._to_entity(model) for model in result.scalars().all()]

        expired = []
        for token in candidates:
            if await self.set_status(token.id, live, TokenStatus.EXPIRED):
                token.status = TokenStatus.EXPIRED
                expired.append(token)

        return expired

    def _to_entity(self, model: CreditTokenModel) -> CreditToken:
        return CreditToken(
            id=UUID(model.id),
            owner_id=model.owner_id,
            credit_limit_cents=model.credit_limit_cents,
            used_amount_cents=model.used_amount_cents,
            max_installments=model.max_installments,
            interest_rate_bps=model.interest_rate_bps,
            status=TokenStatus(model.status),
            expires_at=model.expires_at,
            issued_at=model.issued_at,
            version=model.version,
        )
