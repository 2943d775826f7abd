"""Data transfer objects for settlement and batch operations."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from .plan import PaymentDTO


@dataclass(frozen=True)
class PaymentConfirmation:
    """
    Payment-confirmed event from the payment rail.

    Exactly one of payment_id or external_charge_id addresses the installment.
    """
    paid_amount_cents: int
    payment_id: Optional[UUID] = None
    external_charge_id: Optional[str] = None
    paid_at: Optional[datetime] = None

    def validate(self) -> List[str]:
        errors = []

        if (self.payment_id is None) == (self.external_charge_id is None):
            errors.append("exactly one of payment_id or external_charge_id is required")

        if self.paid_amount_cents <= 0:
            errors.append("paid_amount_cents must be positive")

        return errors


@dataclass(frozen=True)
class SettlementResponse:
    """State of payment, plan and token after a settlement commits."""

    payment: PaymentDTO
    plan_id: str
    plan_status: str
    paid_installments: int
    paid_cents: int
    token_id: str
    used_amount_cents: int
    available_cents: int

    @classmethod
    def from_entities(cls, payment, plan, token) -> "SettlementResponse":
        return cls(
            payment=PaymentDTO.from_entity(payment),
            plan_id=str(plan.id),
            plan_status=plan.status.value,
            paid_installments=plan.paid_installments,
            paid_cents=plan.paid_cents,
            token_id=str(token.id),
            used_amount_cents=token.used_amount_cents,
            available_cents=token.available_cents,
        )


@dataclass(frozen=True)
class OverdueScanResult:
    """Counts produced by one overdue sweep."""

    as_of: str
    scanned: int
    marked_overdue: int
    tokens_frozen: int
    tokens_expired: int
