"""LedgerEvent entity for the notification outbox."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from parcel_ledger.utils.date_utils import utcnow


class LedgerEventStatus(str, Enum):
    """Delivery status of a ledger event."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class LedgerEventType(str, Enum):
    """Types of ledger events consumed by the notification subsystem."""

    TOKEN_ISSUED = "token_issued"
    TOKEN_FROZEN = "token_frozen"
    PLAN_CREATED = "plan_created"
    PLAN_COMPLETED = "plan_completed"
    PAYMENT_SETTLED = "payment_settled"
    PAYMENT_OVERDUE = "payment_overdue"


@dataclass
class LedgerEvent:
    """
    A domain event recorded in the same transaction as the state change.

    Events are persisted before delivery so a crash between commit and
    notification leaves them pending for the next dispatch run.
    """

    event_type: LedgerEventType
    owner_id: str
    entity_id: str
    amount_cents: int | None = None
    due_date: date | None = None
    id: UUID = field(default_factory=uuid4)
    status: LedgerEventStatus = LedgerEventStatus.PENDING
    attempts: int = 0
    last_attempt_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)

    def mark_sent(self, attempts: int = 1) -> None:
        """Mark the event as delivered after `attempts` tries."""
        self.status = LedgerEventStatus.SENT
        self.attempts += attempts
        self.last_attempt_at = utcnow()

    def mark_failed(self, attempts: int = 1) -> None:
        """Mark the event as undeliverable after `attempts` tries."""
        self.status = LedgerEventStatus.FAILED
        self.attempts += attempts
        self.last_attempt_at = utcnow()

    def to_payload(self) -> dict[str, Any]:
        """Notification payload: {type, owner_id, entity_id, amount?, due_date?}."""
        payload: dict[str, Any] = {
            "event_id": str(self.id),
            "type": self.event_type.value,
            "owner_id": self.owner_id,
            "entity_id": self.entity_id,
        }
        if self.amount_cents is not None:
            payload["amount_cents"] = self.amount_cents
        if self.due_date is not None:
            payload["due_date"] = self.due_date.isoformat()
        return payload
