"""Schemas for scheduler-facing admin endpoints."""

from datetime import date

from pydantic import BaseModel, Field


class OverdueScanRequestSchema(BaseModel):
    as_of: date | None = Field(
        None,
        description="Payments due before this date become overdue (default: today)",
    )


class OverdueScanResponseSchema(BaseModel):
    """Schema for POST /v1/admin/overdue-scan response."""

    as_of: str
    scanned: int = Field(..., ge=0)
    marked_overdue: int = Field(..., ge=0)
    tokens_frozen: int = Field(..., ge=0)
    tokens_expired: int = Field(..., ge=0)


class DispatchResponseSchema(BaseModel):
    delivered: int = Field(..., ge=0, description="Pending events delivered by this run")
