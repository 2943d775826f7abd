"""Plan-related Pydantic schemas."""

from datetime import date

from pydantic import BaseModel, Field


class PaymentSchema(BaseModel):
    """Schema for an installment payment in the plan response."""

    payment_id: str = Field(
        ...,
        description="UUID of the payment",
    )
    installment_number: int = Field(
        ...,
        ge=1,
        description="Position of the installment in the plan",
        examples=[1],
    )
    due_date: str = Field(
        ...,
        description="Due date in ISO 8601 format (YYYY-MM-DD)",
        examples=["2026-11-18"],
    )
    amount_cents: int = Field(
        ...,
        ge=0,
        description="Installment amount in cents",
        examples=[25000],
    )
    status: str = Field(
        ...,
        description="pending, paid, overdue or expired",
        examples=["pending"],
    )
    paid_at: str | None = Field(
        None,
        description="Settlement timestamp in ISO 8601 (UTC)",
    )


class PlanResponseSchema(BaseModel):
    """Schema for GET /v1/plans/{plan_id} response."""

    plan_id: str = Field(..., description="UUID of the plan")
    purchase_id: str = Field(..., description="Purchase the plan was created for")
    token_id: str = Field(..., description="Token the purchase was reserved against")
    owner_id: str = Field(..., description="Owner of the plan")
    status: str = Field(..., description="active, completed or defaulted", examples=["active"])
    total_installments: int = Field(..., ge=1, examples=[4])
    paid_installments: int = Field(..., ge=0, examples=[0])
    installment_amount_cents: int = Field(
        ...,
        ge=0,
        description="Nominal installment amount before interest",
        examples=[25000],
    )
    principal_cents: int = Field(..., gt=0, description="Reserved purchase amount", examples=[100000])
    total_cents: int = Field(..., gt=0, description="Total amount to be repaid", examples=[100000])
    paid_cents: int = Field(..., ge=0, examples=[0])
    next_due_date: str | None = Field(None, description="Earliest open due date")
    payments: list[PaymentSchema] = Field(
        ...,
        description="Installment payments ordered by installment number",
    )


class RescheduleRequestSchema(BaseModel):
    """Schema for POST /v1/plans/{plan_id}/reschedule request."""

    new_due_dates: list[date] = Field(
        ...,
        min_length=1,
        description="One date per pending payment, strictly increasing",
        examples=[["2026-12-01", "2027-01-01"]],
    )
