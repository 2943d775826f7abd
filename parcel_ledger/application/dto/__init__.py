"""Data Transfer Objects for application layer."""

from .token import IssueTokenRequest, TokenResponse
from .plan import (
    PaymentDTO,
    PlanResponse,
    QuoteLineDTO,
    QuoteResponse,
    UpcomingPaymentDTO,
)
from .purchase import PurchaseRequest, PurchaseResponse
from .payment import OverdueScanResult, PaymentConfirmation, SettlementResponse

__all__ = [
    "IssueTokenRequest",
    "TokenResponse",
    "PaymentDTO",
    "PlanResponse",
    "QuoteLineDTO",
    "QuoteResponse",
    "UpcomingPaymentDTO",
    "PurchaseRequest",
    "PurchaseResponse",
    "OverdueScanResult",
    "PaymentConfirmation",
    "SettlementResponse",
]
