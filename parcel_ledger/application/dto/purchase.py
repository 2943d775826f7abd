"""Data transfer objects for purchases against an existing token."""

from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from .plan import PlanResponse


@dataclass(frozen=True)
class PurchaseRequest:
    """Input data for a purchase reusing an owner's token."""
    owner_id: str
    token_id: UUID
    amount_cents: int
    installments: int
    purchase_id: Optional[str] = None

    def validate(self) -> List[str]:
        errors = []

        if not self.owner_id or not self.owner_id.strip():
            errors.append("owner_id is required")

        if self.amount_cents <= 0:
            errors.append("amount_cents must be positive")

        if self.installments < 1:
            errors.append("installments must be at least 1")

        return errors


@dataclass(frozen=True)
class PurchaseResponse:
    """Result of a purchase: the generated plan and the token's new balance."""

    plan: PlanResponse
    available_cents: int
