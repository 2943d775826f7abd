"""Credit token Pydantic schemas."""

from pydantic import BaseModel, Field


class IssueTokenRequestSchema(BaseModel):
    """Schema for POST /v1/tokens request."""

    owner_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Identifier of the token owner",
        examples=["owner_123"],
    )
    approved_limit_cents: int = Field(
        ...,
        gt=0,
        description="Credit limit approved by underwriting, in cents",
        examples=[100000],
    )
    max_installments: int | None = Field(
        None,
        ge=1,
        description="Max installments per purchase (default from ledger settings)",
        examples=[4],
    )
    interest_rate_bps: int | None = Field(
        None,
        ge=0,
        le=10_000,
        description="Periodic interest rate in basis points (default from ledger settings)",
        examples=[0],
    )
    validity_days: int | None = Field(
        None,
        ge=1,
        description="Days the token stays valid (default from ledger settings)",
        examples=[180],
    )


class TokenResponseSchema(BaseModel):
    """Schema for a credit token."""

    token_id: str = Field(..., description="UUID of the token")
    owner_id: str = Field(..., description="Owner of the token")
    status: str = Field(..., description="active, frozen or expired", examples=["active"])
    credit_limit_cents: int = Field(..., ge=0, examples=[100000])
    used_amount_cents: int = Field(..., ge=0, examples=[25000])
    available_cents: int = Field(..., ge=0, examples=[75000])
    max_installments: int = Field(..., ge=1, examples=[4])
    interest_rate_bps: int = Field(..., ge=0, examples=[0])
    expires_at: str = Field(..., description="Expiry timestamp in ISO 8601 (UTC)")
    issued_at: str = Field(..., description="Issue timestamp in ISO 8601 (UTC)")
