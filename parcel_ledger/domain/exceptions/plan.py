"""Plan-related domain exceptions."""

from .base import NotFoundException, StateConflictException, ValidationException


class PlanNotFoundException(NotFoundException):
    """Raised when a plan cannot be found."""

    def __init__(self, plan_id: str):
        super().__init__(
            message=f"Plan not found: {plan_id}",
            code="PLAN_NOT_FOUND",
        )
        self.plan_id = plan_id


class TooManyInstallmentsException(ValidationException):
    """Raised when a purchase asks for more installments than the token allows."""

    def __init__(self, requested: int, maximum: int):
        super().__init__(
            message=f"Requested {requested} installments, maximum is {maximum}",
            code="TOO_MANY_INSTALLMENTS",
        )
        self.requested = requested
        self.maximum = maximum


class CountMismatchException(ValidationException):
    """Raised when the number of new due dates differs from pending payments."""

    def __init__(self, expected: int, received: int):
        super().__init__(
            message=f"Expected {expected} due dates, received {received}",
            code="COUNT_MISMATCH",
        )
        self.expected = expected
        self.received = received


class InvalidDueDatesException(ValidationException):
    """Raised when rescheduled due dates are not strictly increasing."""

    def __init__(self, message: str = "Due dates must be strictly increasing"):
        super().__init__(
            message=message,
            code="INVALID_DUE_DATES",
        )


class NothingToRescheduleException(StateConflictException):
    """Raised when a plan has no pending payments left to move."""

    def __init__(self, plan_id: str):
        super().__init__(
            message=f"Plan {plan_id} has no pending payments",
            code="NOTHING_TO_RESCHEDULE",
        )
        self.plan_id = plan_id


class DuplicatePurchaseException(StateConflictException):
    """Raised when a plan already exists for the purchase."""

    def __init__(self, purchase_id: str):
        super().__init__(
            message=f"A plan already exists for purchase {purchase_id}",
            code="DUPLICATE_PURCHASE",
        )
        self.purchase_id = purchase_id
