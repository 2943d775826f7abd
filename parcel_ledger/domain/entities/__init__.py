"""Domain Entities - Core business objects."""

from .token import CreditToken, TokenStatus, TOKEN_TRANSITIONS
from .plan import (
    InstallmentPayment,
    InstallmentPlan,
    OPEN_STATUSES,
    PAYMENT_TRANSITIONS,
    PLAN_TRANSITIONS,
    PaymentStatus,
    PlanStatus,
    SETTLEABLE_STATUSES,
)
from .event import LedgerEvent, LedgerEventStatus, LedgerEventType

__all__ = [
    "CreditToken",
    "TokenStatus",
    "TOKEN_TRANSITIONS",
    "InstallmentPayment",
    "InstallmentPlan",
    "OPEN_STATUSES",
    "PAYMENT_TRANSITIONS",
    "PLAN_TRANSITIONS",
    "PaymentStatus",
    "PlanStatus",
    "SETTLEABLE_STATUSES",
    "LedgerEvent",
    "LedgerEventStatus",
    "LedgerEventType",
]
