"""SQL repository implementation for installment payments."""

from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_ledger.domain.entities import (
    InstallmentPayment,
    OPEN_STATUSES,
    PaymentStatus,
    SETTLEABLE_STATUSES,
)
from parcel_ledger.domain.exceptions import InvalidRequestException
from parcel_ledger.domain.interfaces import PaymentRepository
from parcel_ledger.infrastructure.database.models import (
    InstallmentPaymentModel,
    InstallmentPlanModel,
)


def payment_to_entity(model: InstallmentPaymentModel) -> InstallmentPayment:
    """Convert database model to domain entity."""
    return InstallmentPayment(
        id=UUID(model.id),
        plan_id=UUID(model.plan_id),
        installment_number=model.installment_number,
        amount_cents=model.amount_cents,
        principal_cents=model.principal_cents,
        due_date=model.due_date,
        status=PaymentStatus(model.status),
        paid_at=model.paid_at,
        external_charge_id=model.external_charge_id,
    )


def _values(statuses) -> list[str]:
    return sorted(status.value for status in statuses)


class SqlPaymentRepository(PaymentRepository):
    """SQLAlchemy-backed payment repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, payment_id: UUID) -> Optional[InstallmentPayment]:
        return await self._get_one(InstallmentPaymentModel.id == str(payment_id))

    async def get_by_external_charge_id(
        self,
        external_charge_id: str,
    ) -> Optional[InstallmentPayment]:
        return await self._get_one(
            InstallmentPaymentModel.external_charge_id == external_charge_id
        )

    async def get_pending_by_plan(self, plan_id: UUID) -> List[InstallmentPayment]:
        stmt = (
            select(InstallmentPaymentModel)
            .where(
                InstallmentPaymentModel.plan_id == str(plan_id),
                InstallmentPaymentModel.status == PaymentStatus.PENDING.value,
            )
            .order_by(InstallmentPaymentModel.installment_number.asc())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)

        return [payment_to_entity(model) for model in result.scalars().all()]

    async def get_upcoming_by_owner(
        self,
        owner_id: str,
        limit: int,
    ) -> List[InstallmentPayment]:
        stmt = (
            select(InstallmentPaymentModel)
            .join(
                InstallmentPlanModel,
                InstallmentPaymentModel.plan_id == InstallmentPlanModel.id,
            )
            .where(
                InstallmentPlanModel.owner_id == owner_id,
                InstallmentPaymentModel.status.in_(_values(OPEN_STATUSES)),
            )
            .order_by(
                InstallmentPaymentModel.due_date.asc(),
                InstallmentPaymentModel.installment_number.asc(),
            )
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)

        return [payment_to_entity(model) for model in result.scalars().all()]

    async def mark_paid(self, payment_id: UUID, paid_at: datetime) -> bool:
        stmt = (
            update(InstallmentPaymentModel)
            .where(
                InstallmentPaymentModel.id == str(payment_id),
                InstallmentPaymentModel.status.in_(_values(SETTLEABLE_STATUSES)),
            )
            .values(status=PaymentStatus.PAID.value, paid_at=paid_at)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        return result.rowcount == 1

    async def mark_overdue(self, payment_id: UUID, as_of: date) -> bool:
        stmt = (
            update(InstallmentPaymentModel)
            .where(
                InstallmentPaymentModel.id == str(payment_id),
                InstallmentPaymentModel.status == PaymentStatus.PENDING.value,
                InstallmentPaymentModel.due_date < as_of,
            )
            .values(status=PaymentStatus.OVERDUE.value)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        return result.rowcount == 1

    async def find_overdue_candidates(
        self,
        as_of: date,
        limit: int,
    ) -> List[InstallmentPayment]:
        stmt = (
            select(InstallmentPaymentModel)
            .where(
                InstallmentPaymentModel.status == PaymentStatus.PENDING.value,
                InstallmentPaymentModel.due_date < as_of,
            )
            .order_by(InstallmentPaymentModel.due_date.asc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)

        return [payment_to_entity(model) for model in result.scalars().all()]

    async def update_due_date(self, payment_id: UUID, due_date: date) -> bool:
        stmt = (
            update(InstallmentPaymentModel)
            .where(
                InstallmentPaymentModel.id == str(payment_id),
                InstallmentPaymentModel.status == PaymentStatus.PENDING.value,
            )
            .values(due_date=due_date)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        return result.rowcount == 1

    async def attach_charge(self, payment_id: UUID, external_charge_id: str) -> bool:
        stmt = (
            update(InstallmentPaymentModel)
            .where(
                InstallmentPaymentModel.id == str(payment_id),
                InstallmentPaymentModel.status.in_(_values(OPEN_STATUSES)),
            )
            .values(external_charge_id=external_charge_id)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self._session.execute(stmt)
        except IntegrityError as exc:
            # Unique index on external_charge_id
            raise InvalidRequestException(
                f"Charge {external_charge_id} is attached to another payment"
            ) from exc

        return result.rowcount == 1

    async def overdue_counts_by_token(self, min_count: int) -> Dict[UUID, int]:
        overdue = func.count(InstallmentPaymentModel.id)
        stmt = (
            select(InstallmentPlanModel.token_id, overdue)
            .join(
                InstallmentPaymentModel,
                InstallmentPaymentModel.plan_id == InstallmentPlanModel.id,
            )
            .where(InstallmentPaymentModel.status == PaymentStatus.OVERDUE.value)
            .group_by(InstallmentPlanModel.token_id)
            .having(overdue >= min_count)
        )
        result = await self._session.execute(stmt)

        return {UUID(token_id): count for token_id, count in result.all()}

    async def _get_one(self, criterion) -> Optional[InstallmentPayment]:
        stmt = (
            select(InstallmentPaymentModel)
            .where(criterion)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return payment_to_entity(model)
