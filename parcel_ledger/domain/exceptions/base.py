"""Base domain exceptions."""


class DomainException(Exception):
    """
    Base exception for all domain-level errors.

    Domain exceptions represent business rule violations or
    domain-specific error conditions.
    """

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ValidationException(DomainException):
    """Caller-supplied input violates a precondition."""


class StateConflictException(DomainException):
    """The request is well-formed but the current entity state forbids it."""


class NotFoundException(DomainException):
    """An addressed entity does not exist or is not visible to the caller."""


class InvalidRequestException(ValidationException):
    """Raised when a request DTO fails validation."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_REQUEST",
        )
