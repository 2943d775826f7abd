"""Domain Exceptions - Business rule violations and domain errors."""

from .base import (
    DomainException,
    InvalidRequestException,
    NotFoundException,
    StateConflictException,
    ValidationException,
)
from .money import InvalidAmountException
from .token import (
    DuplicateActiveTokenException,
    InsufficientCreditException,
    NotOwnerException,
    TokenExpiredException,
    TokenNotActiveException,
    TokenNotFoundException,
)
from .plan import (
    CountMismatchException,
    DuplicatePurchaseException,
    InvalidDueDatesException,
    NothingToRescheduleException,
    PlanNotFoundException,
    TooManyInstallmentsException,
)
from .payment import (
    AlreadyPaidException,
    IllegalTransitionException,
    PaymentNotFoundException,
)

__all__ = [
    "DomainException",
    "InvalidRequestException",
    "NotFoundException",
    "StateConflictException",
    "ValidationException",
    "InvalidAmountException",
    "DuplicateActiveTokenException",
    "InsufficientCreditException",
    "NotOwnerException",
    "TokenExpiredException",
    "TokenNotActiveException",
    "TokenNotFoundException",
    "CountMismatchException",
    "DuplicatePurchaseException",
    "InvalidDueDatesException",
    "NothingToRescheduleException",
    "PlanNotFoundException",
    "TooManyInstallmentsException",
    "AlreadyPaidException",
    "IllegalTransitionException",
    "PaymentNotFoundException",
]
