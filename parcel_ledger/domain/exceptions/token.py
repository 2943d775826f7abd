"""Credit token domain exceptions."""

from .base import NotFoundException, StateConflictException


class TokenNotFoundException(NotFoundException):
    """Raised when a credit token cannot be found."""

    def __init__(self, token_id: str):
        super().__init__(
            message=f"Token not found: {token_id}",
            code="TOKEN_NOT_FOUND",
        )
        self.token_id = token_id


class NotOwnerException(NotFoundException):
    """Raised when a token is addressed by someone other than its owner."""

    def __init__(self, token_id: str, owner_id: str):
        super().__init__(
            message=f"Token {token_id} does not belong to {owner_id}",
            code="NOT_OWNER",
        )
        self.token_id = token_id
        self.owner_id = owner_id


class TokenNotActiveException(StateConflictException):
    """Raised when a token's status does not allow the operation."""

    def __init__(self, token_id: str, status: str):
        super().__init__(
            message=f"Token {token_id} is not active (status: {status})",
            code="TOKEN_NOT_ACTIVE",
        )
        self.token_id = token_id
        self.status = status


class TokenExpiredException(TokenNotActiveException):
    """Raised when a token's validity window has passed."""

    def __init__(self, token_id: str):
        StateConflictException.__init__(
            self,
            message=f"Token {token_id} has expired",
            code="TOKEN_EXPIRED",
        )
        self.token_id = token_id
        self.status = "expired"


class InsufficientCreditException(StateConflictException):
    """Raised when a reservation would exceed the token's credit limit."""

    def __init__(self, token_id: str, requested_cents: int, available_cents: int):
        super().__init__(
            message=(
                f"Insufficient credit on token {token_id}: "
                f"requested {requested_cents}, available {available_cents}"
            ),
            code="INSUFFICIENT_CREDIT",
        )
        self.token_id = token_id
        self.requested_cents = requested_cents
        self.available_cents = available_cents


class DuplicateActiveTokenException(StateConflictException):
    """Raised when an owner already holds an active token."""

    def __init__(self, owner_id: str):
        super().__init__(
            message=f"Owner {owner_id} already has an active token",
            code="DUPLICATE_ACTIVE_TOKEN",
        )
        self.owner_id = owner_id
