"""Data transfer objects for credit token operations."""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class IssueTokenRequest:
    """Input data for issuing a token with an externally approved limit."""
    owner_id: str
    approved_limit_cents: int
    max_installments: Optional[int] = None
    interest_rate_bps: Optional[int] = None
    validity_days: Optional[int] = None

    def validate(self) -> List[str]:
        errors = []

        if not self.owner_id or not self.owner_id.strip():
            errors.append("owner_id is required")

        if self.approved_limit_cents <= 0:
            errors.append("approved_limit_cents must be positive")

        if self.max_installments is not None and self.max_installments < 1:
            errors.append("max_installments must be at least 1")

        if self.interest_rate_bps is not None and self.interest_rate_bps < 0:
            errors.append("interest_rate_bps cannot be negative")

        if self.validity_days is not None and self.validity_days < 1:
            errors.append("validity_days must be at least 1")

        return errors


@dataclass(frozen=True)
class TokenResponse:
    """Response data for a credit token."""

    token_id: str
    owner_id: str
    status: str
    credit_limit_cents: int
    used_amount_cents: int
    available_cents: int
    max_installments: int
    interest_rate_bps: int
    expires_at: str
    issued_at: str

    @classmethod
    def from_entity(cls, token) -> "TokenResponse":
        return cls(
            token_id=str(token.id),
            owner_id=token.owner_id,
            status=token.status.value,
            credit_limit_cents=token.credit_limit_cents,
            used_amount_cents=token.used_amount_cents,
            available_cents=token.available_cents,
            max_installments=token.max_installments,
            interest_rate_bps=token.interest_rate_bps,
            expires_at=token.expires_at.isoformat() + "Z",
            issued_at=token.issued_at.isoformat() + "Z",
        )
