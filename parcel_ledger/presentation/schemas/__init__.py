"""Pydantic schemas for API request/response validation."""

from .admin import (
    DispatchResponseSchema,
    OverdueScanRequestSchema,
    OverdueScanResponseSchema,
)
from .error import ErrorResponseSchema
from .payment import (
    AttachChargeRequestSchema,
    PaymentConfirmationSchema,
    SettleRequestSchema,
    SettlementResponseSchema,
    UpcomingPaymentSchema,
)
from .plan import PaymentSchema, PlanResponseSchema, RescheduleRequestSchema
from .purchase import (
    PurchaseRequestSchema,
    PurchaseResponseSchema,
    QuoteLineSchema,
    QuoteRequestSchema,
    QuoteResponseSchema,
)
from .token import IssueTokenRequestSchema, TokenResponseSchema

__all__ = [
    "DispatchResponseSchema",
    "OverdueScanRequestSchema",
    "OverdueScanResponseSchema",
    "ErrorResponseSchema",
    "AttachChargeRequestSchema",
    "PaymentConfirmationSchema",
    "SettleRequestSchema",
    "SettlementResponseSchema",
    "UpcomingPaymentSchema",
    "PaymentSchema",
    "PlanResponseSchema",
    "RescheduleRequestSchema",
    "PurchaseRequestSchema",
    "PurchaseResponseSchema",
    "QuoteLineSchema",
    "QuoteRequestSchema",
    "QuoteResponseSchema",
    "IssueTokenRequestSchema",
    "TokenResponseSchema",
]
