"""Purchase and quote Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, Field

from .plan import PlanResponseSchema


class PurchaseRequestSchema(BaseModel):
    """Schema for POST /v1/purchases request."""

    owner_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Owner making the purchase",
        examples=["owner_123"],
    )
    token_id: UUID = Field(
        ...,
        description="Token to reserve credit against",
    )
    amount_cents: int = Field(
        ...,
        gt=0,
        description="Purchase amount in cents",
        examples=[10000],
    )
    installments: int = Field(
        ...,
        ge=1,
        description="Number of installments",
        examples=[3],
    )
    purchase_id: str | None = Field(
        None,
        max_length=255,
        description="Caller's purchase reference (generated when omitted)",
    )


class PurchaseResponseSchema(BaseModel):
    """Schema for POST /v1/purchases response."""

    plan: PlanResponseSchema
    available_cents: int = Field(
        ...,
        ge=0,
        description="Token credit still available after the purchase",
        examples=[90000],
    )


class QuoteRequestSchema(BaseModel):
    """Schema for POST /v1/purchases/quote request."""

    amount_cents: int = Field(..., gt=0, examples=[10000])
    installments: int = Field(..., ge=1, examples=[3])
    interest_rate_bps: int = Field(0, ge=0, le=10_000, examples=[0])


class QuoteLineSchema(BaseModel):
    installment_number: int
    due_date: str
    amount_cents: int


class QuoteResponseSchema(BaseModel):
    """Schema for a schedule preview."""

    principal_cents: int = Field(..., examples=[10000])
    total_cents: int = Field(..., examples=[10000])
    interest_cents: int = Field(..., examples=[0])
    installment_amount_cents: int = Field(..., examples=[3334])
    installments: list[QuoteLineSchema]
