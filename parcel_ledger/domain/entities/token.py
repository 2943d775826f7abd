"""Revolving credit token domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from parcel_ledger.utils.date_utils import utcnow
from .transitions import ensure_transition


class TokenStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    FROZEN = "frozen"


TOKEN_TRANSITIONS = {
    TokenStatus.ACTIVE: frozenset({TokenStatus.EXPIRED, TokenStatus.FROZEN}),
    TokenStatus.FROZEN: frozenset({TokenStatus.ACTIVE, TokenStatus.EXPIRED}),
    TokenStatus.EXPIRED: frozenset(),
}


@dataclass
class CreditToken:
    """
    A reusable line of credit issued to one owner.

    used_amount_cents grows with purchases and shrinks with installment
    payments; it always stays within [0, credit_limit_cents].
    """

    owner_id: str
    credit_limit_cents: int
    expires_at: datetime
    used_amount_cents: int = 0
    max_installments: int = 4
    interest_rate_bps: int = 0
    status: TokenStatus = TokenStatus.ACTIVE
    id: UUID = field(default_factory=uuid4)
    issued_at: datetime = field(default_factory=utcnow)
    version: int = 0

    @property
    def available_cents(self) -> int:
        return self.credit_limit_cents - self.used_amount_cents

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or utcnow())

    def can_reserve(self, amount_cents: int, now: datetime | None = None) -> bool:
        return (
            self.status == TokenStatus.ACTIVE
            and not self.is_expired(now)
            and 0 < amount_cents <= self.available_cents
        )

    def transition_to(self, target: TokenStatus) -> None:
        self.status = ensure_transition(TOKEN_TRANSITIONS, "token", self.status, target)

    def to_dict(self) -> dict:
        return {
            "token_id": str(self.id),
            "owner_id": self.owner_id,
            "credit_limit_cents": self.credit_limit_cents,
            "used_amount_cents": self.used_amount_cents,
            "available_cents": self.available_cents,
            "max_installments": self.max_installments,
            "interest_rate_bps": self.interest_rate_bps,
            "status": self.status.value,
            "expires_at": self.expires_at.isoformat() + "Z",
            "issued_at": self.issued_at.isoformat() + "Z",
        }
