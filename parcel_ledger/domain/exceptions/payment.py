"""Installment payment domain exceptions."""

from .base import NotFoundException, StateConflictException


class PaymentNotFoundException(NotFoundException):
    """Raised when an installment payment cannot be found."""

    def __init__(self, payment_id: str):
        super().__init__(
            message=f"Payment not found: {payment_id}",
            code="PAYMENT_NOT_FOUND",
        )
        self.payment_id = payment_id


class AlreadyPaidException(StateConflictException):
    """Raised when settling a payment that is already paid."""

    def __init__(self, payment_id: str):
        super().__init__(
            message=f"Payment {payment_id} is already paid",
            code="ALREADY_PAID",
        )
        self.payment_id = payment_id


class IllegalTransitionException(StateConflictException):
    """Raised when a status change is not in the entity's transition table."""

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(
            message=f"Illegal {entity} transition: {current} -> {target}",
            code="ILLEGAL_TRANSITION",
        )
        self.entity = entity
        self.current = current
        self.target = target
