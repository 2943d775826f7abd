"""Installment plan and payment domain entities."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List
from uuid import UUID, uuid4

from parcel_ledger.utils.date_utils import utcnow
from .transitions import ensure_transition, sources_of


class PlanStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    EXPIRED = "expired"


PLAN_TRANSITIONS = {
    PlanStatus.ACTIVE: frozenset({PlanStatus.COMPLETED, PlanStatus.DEFAULTED}),
    PlanStatus.DEFAULTED: frozenset({PlanStatus.COMPLETED}),
    PlanStatus.COMPLETED: frozenset(),
}

PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: frozenset(
        {PaymentStatus.PAID, PaymentStatus.OVERDUE, PaymentStatus.EXPIRED}
    ),
    PaymentStatus.OVERDUE: frozenset({PaymentStatus.PAID}),
    PaymentStatus.PAID: frozenset(),
    PaymentStatus.EXPIRED: frozenset(),
}

# Statuses a payment may be settled from
SETTLEABLE_STATUSES = sources_of(PAYMENT_TRANSITIONS, PaymentStatus.PAID)

# Payments that still count towards next_due_date
OPEN_STATUSES = frozenset({PaymentStatus.PENDING, PaymentStatus.OVERDUE})


@dataclass
class InstallmentPayment:
    """A single dated installment within a plan."""

    plan_id: UUID
    installment_number: int
    amount_cents: int
    principal_cents: int
    due_date: date
    id: UUID = field(default_factory=uuid4)
    status: PaymentStatus = PaymentStatus.PENDING
    paid_at: datetime | None = None
    external_charge_id: str | None = None

    def transition_to(self, target: PaymentStatus) -> None:
        self.status = ensure_transition(
            PAYMENT_TRANSITIONS, "payment", self.status, target
        )

    def to_dict(self) -> dict:
        return {
            "payment_id": str(self.id),
            "installment_number": self.installment_number,
            "due_date": self.due_date.isoformat(),
            "amount_cents": self.amount_cents,
            "status": self.status.value,
            "paid_at": self.paid_at.isoformat() + "Z" if self.paid_at else None,
        }


@dataclass
class InstallmentPlan:
    """
    The installments generated for one purchase against a token.

    Invariants:
    - paid_cents <= total_cents
    - paid_installments <= total_installments
    - status is COMPLETED iff paid_installments == total_installments
    - sum of payment amounts == total_cents
    """

    purchase_id: str
    token_id: UUID
    owner_id: str
    total_installments: int
    installment_amount_cents: int
    principal_cents: int
    total_cents: int
    interest_rate_bps: int = 0
    paid_cents: int = 0
    paid_installments: int = 0
    status: PlanStatus = PlanStatus.ACTIVE
    next_due_date: date | None = None
    payments: List[InstallmentPayment] = field(default_factory=list)
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def remaining_cents(self) -> int:
        return self.total_cents - self.paid_cents

    @property
    def is_completed(self) -> bool:
        return self.status == PlanStatus.COMPLETED

    def transition_to(self, target: PlanStatus) -> None:
        self.status = ensure_transition(PLAN_TRANSITIONS, "plan", self.status, target)

    def to_dict(self) -> dict:
        return {
            "plan_id": str(self.id),
            "purchase_id": self.purchase_id,
            "token_id": str(self.token_id),
            "owner_id": self.owner_id,
            "total_installments": self.total_installments,
            "installment_amount_cents": self.installment_amount_cents,
            "principal_cents": self.principal_cents,
            "total_cents": self.total_cents,
            "paid_cents": self.paid_cents,
            "paid_installments": self.paid_installments,
            "status": self.status.value,
            "next_due_date": (
                self.next_due_date.isoformat() if self.next_due_date else None
            ),
            "payments": [payment.to_dict() for payment in self.payments],
            "created_at": self.created_at.isoformat() + "Z",
        }
