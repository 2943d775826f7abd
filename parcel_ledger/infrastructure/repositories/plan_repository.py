"""SQL repository implementation for installment plans."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from parcel_ledger.domain.entities import (
    InstallmentPlan,
    OPEN_STATUSES,
    PlanStatus,
)
from parcel_ledger.domain.exceptions import DuplicatePurchaseException
from parcel_ledger.domain.interfaces import PlanRepository
from parcel_ledger.infrastructure.database.models import (
    InstallmentPaymentModel,
    InstallmentPlanModel,
)
from .payment_repository import payment_to_entity


class SqlPlanRepository(PlanRepository):
    """SQLAlchemy-backed plan repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, plan: InstallmentPlan) -> InstallmentPlan:
        model = InstallmentPlanModel(
            id=str(plan.id),
            purchase_id=plan.purchase_id,
            token_id=str(plan.token_id),
            owner_id=plan.owner_id,
            total_installments=plan.total_installments,
            installment_amount_cents=plan.installment_amount_cents,
            principal_cents=plan.principal_cents,
            total_cents=plan.total_cents,
            interest_rate_bps=plan.interest_rate_bps,
            paid_cents=plan.paid_cents,
            paid_installments=plan.paid_installments,
            status=plan.status.value,
            next_due_date=plan.next_due_date,
            created_at=plan.created_at,
        )

        for payment in plan.payments:
            payment_model = InstallmentPaymentModel(
                id=str(payment.id),
                plan_id=str(plan.id),
                installment_number=payment.installment_number,
                amount_cents=payment.amount_cents,
                principal_cents=payment.principal_cents,
                due_date=payment.due_date,
                status=payment.status.value,
                paid_at=payment.paid_at,
                external_charge_id=payment.external_charge_id,
            )
            model.payments.append(payment_model)

        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise DuplicatePurchaseException(plan.purchase_id) from exc

        return plan

    async def get_by_id(self, plan_id: UUID) -> Optional[InstallmentPlan]:
        stmt = (
            select(InstallmentPlanModel)
            .options(selectinload(InstallmentPlanModel.payments))
            .where(InstallmentPlanModel.id == str(plan_id))
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def get_by_owner(
        self,
        owner_id: str,
        status: Optional[PlanStatus] = None,
    ) -> List[InstallmentPlan]:
        criteria = [InstallmentPlanModel.owner_id == owner_id]
        if status is not None:
            criteria.append(InstallmentPlanModel.status == status.value)

        return await self._get_many(*criteria)

    async def get_by_token(self, token_id: UUID) -> List[InstallmentPlan]:
        return await self._get_many(InstallmentPlanModel.token_id == str(token_id))

    async def record_payment(self, plan_id: UUID, amount_cents: int) -> bool:
        paid_after = InstallmentPlanModel.paid_installments + 1
        stmt = (
            update(InstallmentPlanModel)
            .where(
                InstallmentPlanModel.id == str(plan_id),
                InstallmentPlanModel.paid_installments
                < InstallmentPlanModel.total_installments,
                InstallmentPlanModel.paid_cents + amount_cents
                <= InstallmentPlanModel.total_cents,
            )
            .values(
                paid_cents=InstallmentPlanModel.paid_cents + amount_cents,
                paid_installments=paid_after,
                status=case(
                    (
                        paid_after >= InstallmentPlanModel.total_installments,
                        PlanStatus.COMPLETED.value,
                    ),
                    else_=InstallmentPlanModel.status,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        return result.rowcount == 1

    async def refresh_next_due_date(self, plan_id: UUID) -> None:
        next_due = (
            select(func.min(InstallmentPaymentModel.due_date))
            .where(
                InstallmentPaymentModel.plan_id == str(plan_id),
                InstallmentPaymentModel.status.in_(
                    sorted(status.value for status in OPEN_STATUSES)
                ),
            )
            .scalar_subquery()
        )
        stmt = (
            update(InstallmentPlanModel)
            .where(InstallmentPlanModel.id == str(plan_id))
            .values(next_due_date=next_due)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)

    async def _get_many(self, *criteria) -> List[InstallmentPlan]:
        stmt = (
            select(InstallmentPlanModel)
            .options(selectinload(InstallmentPlanModel.payments))
            .where(*criteria)
            .order_by(InstallmentPlanModel.created_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    def _to_entity(self, model: InstallmentPlanModel) -> InstallmentPlan:
        return InstallmentPlan(
            id=UUID(model.id),
            purchase_id=model.purchase_id,
            token_id=UUID(model.token_id),
            owner_id=model.owner_id,
            total_installments=model.total_installments,
            installment_amount_cents=model.installment_amount_cents,
            principal_cents=model.principal_cents,
            total_cents=model.total_cents,
            interest_rate_bps=model.interest_rate_bps,
            paid_cents=model.paid_cents,
            paid_installments=model.paid_installments,
            status=PlanStatus(model.status),
            next_due_date=model.next_due_date,
            payments=[payment_to_entity(payment) for payment in model.payments],
            created_at=model.created_at,
        )
