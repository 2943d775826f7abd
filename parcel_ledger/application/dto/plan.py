"""Data transfer objects for installment plan operations."""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class PaymentDTO:
    """Single installment payment within a plan response."""
    payment_id: str
    installment_number: int
    due_date: str
    amount_cents: int
    status: str
    paid_at: Optional[str]

    @classmethod
    def from_entity(cls, payment) -> "PaymentDTO":
        return cls(
            payment_id=str(payment.id),
            installment_number=payment.installment_number,
            due_date=payment.due_date.isoformat(),
            amount_cents=payment.amount_cents,
            status=payment.status.value,
            paid_at=payment.paid_at.isoformat() + "Z" if payment.paid_at else None,
        )


@dataclass(frozen=True)
class UpcomingPaymentDTO:
    """Open installment of an owner, with the plan it belongs to."""
    plan_id: str
    payment_id: str
    installment_number: int
    due_date: str
    amount_cents: int
    status: str

    @classmethod
    def from_entity(cls, payment) -> "UpcomingPaymentDTO":
        return cls(
            plan_id=str(payment.plan_id),
            payment_id=str(payment.id),
            installment_number=payment.installment_number,
            due_date=payment.due_date.isoformat(),
            amount_cents=payment.amount_cents,
            status=payment.status.value,
        )


@dataclass(frozen=True)
class PlanResponse:
    """Response data for an installment plan with its payments."""

    plan_id: str
    purchase_id: str
    token_id: str
    owner_id: str
    status: str
    total_installments: int
    paid_installments: int
    installment_amount_cents: int
    principal_cents: int
    total_cents: int
    paid_cents: int
    next_due_date: Optional[str]
    payments: List[PaymentDTO]

    @classmethod
    def from_entity(cls, plan) -> "PlanResponse":
        return cls(
            plan_id=str(plan.id),
            purchase_id=plan.purchase_id,
            token_id=str(plan.token_id),
            owner_id=plan.owner_id,
            status=plan.status.value,
            total_installments=plan.total_installments,
            paid_installments=plan.paid_installments,
            installment_amount_cents=plan.installment_amount_cents,
            principal_cents=plan.principal_cents,
            total_cents=plan.total_cents,
            paid_cents=plan.paid_cents,
            next_due_date=plan.next_due_date.isoformat() if plan.next_due_date else None,
            payments=[PaymentDTO.from_entity(payment) for payment in plan.payments],
        )


@dataclass(frozen=True)
class QuoteLineDTO:
    installment_number: int
    due_date: str
    amount_cents: int


@dataclass(frozen=True)
class QuoteResponse:
    """Schedule preview for a prospective purchase."""

    principal_cents: int
    total_cents: int
    interest_cents: int
    installment_amount_cents: int
    installments: List[QuoteLineDTO]

    @classmethod
    def from_schedule(cls, schedule) -> "QuoteResponse":
        return cls(
            principal_cents=schedule.principal_cents,
            total_cents=schedule.total_cents,
            interest_cents=schedule.interest_cents,
            installment_amount_cents=schedule.installment_amount_cents,
            installments=[
                QuoteLineDTO(
                    installment_number=line.installment_number,
                    due_date=line.due_date.isoformat(),
                    amount_cents=line.amount_cents,
                )
                for line in schedule.lines
            ],
        )
