"""Repository interfaces for ledger persistence.

Every mutating method is a single guarded write: it states the condition
under which the change is allowed and reports whether a row matched, so
callers never decide on a value they read earlier in a separate statement.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from parcel_ledger.domain.entities import (
    CreditToken,
    InstallmentPayment,
    InstallmentPlan,
    LedgerEvent,
    PlanStatus,
    TokenStatus,
)


class TokenRepository(ABC):
    """
    Abstract repository for CreditToken persistence.

    Implementations may use PostgreSQL, SQLite, etc.
    """

    @abstractmethod
    async def add(self, token: CreditToken) -> CreditToken:
        """
        Persist a newly issued token.

        Raises:
            DuplicateActiveTokenException: If the owner already has an active token
        """
        ...

    @abstractmethod
    async def get_by_id(self, token_id: UUID) -> Optional[CreditToken]:
        """Retrieve a token by ID, or None."""
        ...

    @abstractmethod
    async def get_active_by_owner(self, owner_id: str) -> Optional[CreditToken]:
        """Retrieve the owner's active token, or None."""
        ...

    @abstractmethod
    async def try_reserve(
        self,
        token_id: UUID,
        amount_cents: int,
        now: datetime,
    ) -> bool:
        """
        Increase used_amount by amount_cents if and only if the token is
        active, unexpired at `now`, and the result stays within the limit.

        Returns:
            True if the reservation was applied
        """
        ...

    @abstractmethod
    async def release(self, token_id: UUID, amount_cents: int) -> bool:
        """
        Decrease used_amount by amount_cents, clamped at zero.

        Returns:
            True if the token exists
        """
        ...

    @abstractmethod
    async def set_status(
        self,
        token_id: UUID,
        expected: Iterable[TokenStatus],
        target: TokenStatus,
    ) -> bool:
        """
        Move a token to `target` if its current status is one of `expected`.

        Returns:
            True if the status changed
        """
        ...

    @abstractmethod
    async def expire_stale(self, now: datetime) -> List[CreditToken]:
        """
        Expire every non-expired token whose expires_at is at or before `now`.

        Returns:
            The tokens that were expired by this call
        """
        ...


class PlanRepository(ABC):
    """Abstract repository for InstallmentPlan persistence."""

    @abstractmethod
    async def add(self, plan: InstallmentPlan) -> InstallmentPlan:
        """
        Persist a plan together with all of its payments.

        Raises:
            DuplicatePurchaseException: If a plan exists for the purchase
        """
        ...

    @abstractmethod
    async def get_by_id(self, plan_id: UUID) -> Optional[InstallmentPlan]:
        """Retrieve a plan with its payments ordered by installment number."""
        ...

    @abstractmethod
    async def get_by_owner(
        self,
        owner_id: str,
        status: Optional[PlanStatus] = None,
    ) -> List[InstallmentPlan]:
        """Retrieve an owner's plans, newest first, optionally by status."""
        ...

    @abstractmethod
    async def get_by_token(self, token_id: UUID) -> List[InstallmentPlan]:
        """Retrieve every plan reserved against a token, newest first."""
        ...

    @abstractmethod
    async def record_payment(self, plan_id: UUID, amount_cents: int) -> bool:
        """
        Add one settled installment to the plan aggregates.

        paid_cents and paid_installments are incremented in place, and the
        status becomes completed when the last installment is counted.

        Returns:
            True if the plan accepted the payment
        """
        ...

    @abstractmethod
    async def refresh_next_due_date(self, plan_id: UUID) -> None:
        """Recompute next_due_date from the plan's open payments."""
        ...


class PaymentRepository(ABC):
    """Abstract repository for InstallmentPayment persistence."""

    @abstractmethod
    async def get_by_id(self, payment_id: UUID) -> Optional[InstallmentPayment]:
        ...

    @abstractmethod
    async def get_by_external_charge_id(
        self,
        external_charge_id: str,
    ) -> Optional[InstallmentPayment]:
        ...

    @abstractmethod
    async def get_pending_by_plan(self, plan_id: UUID) -> List[InstallmentPayment]:
        """Pending payments of a plan ordered by installment number."""
        ...

    @abstractmethod
    async def get_upcoming_by_owner(
        self,
        owner_id: str,
        limit: int,
    ) -> List[InstallmentPayment]:
        """An owner's open payments across all plans, earliest due first."""
        ...

    @abstractmethod
    async def mark_paid(self, payment_id: UUID, paid_at: datetime) -> bool:
        """
        Transition a pending or overdue payment to paid.

        Returns:
            True only for the call that performed the transition
        """
        ...

    @abstractmethod
    async def mark_overdue(self, payment_id: UUID, as_of: date) -> bool:
        """Transition a payment to overdue if it is still pending and past due."""
        ...

    @abstractmethod
    async def find_overdue_candidates(
        self,
        as_of: date,
        limit: int,
    ) -> List[InstallmentPayment]:
        """Pending payments whose due date is before `as_of`."""
        ...

    @abstractmethod
    async def update_due_date(self, payment_id: UUID, due_date: date) -> bool:
        """Change the due date of a payment that is still pending."""
        ...

    @abstractmethod
    async def attach_charge(self, payment_id: UUID, external_charge_id: str) -> bool:
        """
        Record the payment-rail charge reference on an open payment.

        Raises:
            InvalidRequestException: If another payment holds the charge
        """
        ...

    @abstractmethod
    async def overdue_counts_by_token(self, min_count: int) -> Dict[UUID, int]:
        """Tokens with at least `min_count` overdue payments across their plans."""
        ...


class EventRepository(ABC):
    """
    Abstract repository for the LedgerEvent outbox.

    Events are persisted to enable:
    - Atomic recording with the ledger change they describe
    - Re-delivery of events left pending by a crash
    - Monitoring of notification health
    """

    @abstractmethod
    async def add(self, event: LedgerEvent) -> LedgerEvent:
        ...

    @abstractmethod
    async def update(self, event: LedgerEvent) -> LedgerEvent:
        ...

    @abstractmethod
    async def get_pending(self, limit: int = 100) -> List[LedgerEvent]:
        """Pending events, oldest first."""
        ...
