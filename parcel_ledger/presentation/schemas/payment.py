"""Payment settlement Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .plan import PaymentSchema


class SettleRequestSchema(BaseModel):
    """Optional body for POST /v1/payments/{payment_id}/settle."""

    paid_at: datetime | None = Field(
        None,
        description="When the payment rail confirmed the payment (default: now)",
    )


class PaymentConfirmationSchema(BaseModel):
    """Schema for POST /v1/payments/confirmations request."""

    payment_id: UUID | None = Field(
        None,
        description="Payment being confirmed",
    )
    external_charge_id: str | None = Field(
        None,
        min_length=1,
        max_length=255,
        description="Payment-rail charge reference, instead of payment_id",
    )
    paid_amount_cents: int = Field(
        ...,
        gt=0,
        description="Amount received in cents",
        examples=[3334],
    )
    paid_at: datetime | None = Field(
        None,
        description="When the payment was received",
    )


class AttachChargeRequestSchema(BaseModel):
    """Schema for POST /v1/payments/{payment_id}/charge request."""

    external_charge_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Payment-rail charge reference",
        examples=["pix_8f14e45f"],
    )


class SettlementResponseSchema(BaseModel):
    """Schema for a committed settlement."""

    payment: PaymentSchema
    plan_id: str
    plan_status: str = Field(..., examples=["active"])
    paid_installments: int = Field(..., ge=0)
    paid_cents: int = Field(..., ge=0)
    token_id: str
    used_amount_cents: int = Field(..., ge=0)
    available_cents: int = Field(..., ge=0)


class UpcomingPaymentSchema(BaseModel):
    """Schema for an entry of GET /v1/payments/upcoming."""

    plan_id: str = Field(..., description="Plan the installment belongs to")
    payment_id: str = Field(..., description="UUID of the payment")
    installment_number: int = Field(..., ge=1, examples=[2])
    due_date: str = Field(
        ...,
        description="Due date in ISO 8601 format (YYYY-MM-DD)",
        examples=["2026-12-18"],
    )
    amount_cents: int = Field(..., ge=0, examples=[3334])
    status: str = Field(..., description="pending or overdue", examples=["pending"])
