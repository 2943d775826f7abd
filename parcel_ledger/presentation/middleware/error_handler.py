"""Error handling middleware and exception handlers."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from parcel_ledger.domain.exceptions import (
    DomainException,
    NotFoundException,
    NotOwnerException,
    StateConflictException,
    ValidationException,
)
from .request_context import get_request_id

logger = structlog.get_logger(__name__)


def _error_response(status_code: int, exc: DomainException) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.code,
            "message": exc.message,
            "request_id": get_request_id(),
        },
    )


def error_handler_middleware(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI app.

    Domain exceptions map to HTTP status by kind: validation 400, not found
    404, state conflict 409. Handlers are looked up along the exception's
    MRO, so NotOwnerException gets its 403 ahead of the not-found mapping.
    """

    @app.exception_handler(NotOwnerException)
    async def not_owner_handler(
        request: Request,
        exc: NotOwnerException,
    ) -> JSONResponse:
        """Handle access to another owner's token."""
        logger.warning("not_owner", token_id=exc.token_id, owner_id=exc.owner_id)
        return _error_response(403, exc)

    @app.exception_handler(NotFoundException)
    async def not_found_handler(
        request: Request,
        exc: NotFoundException,
    ) -> JSONResponse:
        """Handle missing tokens, plans and payments."""
        return _error_response(404, exc)

    @app.exception_handler(ValidationException)
    async def validation_handler(
        request: Request,
        exc: ValidationException,
    ) -> JSONResponse:
        """Handle invalid amounts, counts and dates."""
        return _error_response(400, exc)

    @app.exception_handler(StateConflictException)
    async def state_conflict_handler(
        request: Request,
        exc: StateConflictException,
    ) -> JSONResponse:
        """Handle requests the current ledger state forbids."""
        logger.info("state_conflict", code=exc.code, message=exc.message)
        return _error_response(409, exc)

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle generic domain exceptions."""
        logger.warning(
            "domain_exception",
            code=exc.code,
            message=exc.message,
        )
        return _error_response(400, exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred.",
                "request_id": get_request_id(),
            },
        )
