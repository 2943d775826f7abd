"""Repository implementations."""

from .token_repository import SqlTokenRepository
from .plan_repository import SqlPlanRepository
from .payment_repository import SqlPaymentRepository
from .event_repository import SqlEventRepository

__all__ = [
    "SqlTokenRepository",
    "SqlPlanRepository",
    "SqlPaymentRepository",
    "SqlEventRepository",
]
