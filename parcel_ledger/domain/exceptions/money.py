"""Money-related domain exceptions."""

from .base import ValidationException


class InvalidAmountException(ValidationException):
    """Raised when an amount or installment count is not positive."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_AMOUNT",
        )
