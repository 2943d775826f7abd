"""
Ledger Policy Settings for the Parcel revolving-credit ledger.

This module contains the configurable parameters for installment scheduling
and token lifecycle policy. They can be adjusted via environment variables
without touching the ledger logic.

Environment variables use the LEDGER_ prefix:
    LEDGER_INSTALLMENT_PERIOD_DAYS=30
    LEDGER_FREEZE_OVERDUE_THRESHOLD=3
    LEDGER_TOKEN_VALIDITY_DAYS=180

Usage:
    from parcel_ledger.service.installments.settings import ledger_settings

    # Use default settings (loaded from env)
    period = ledger_settings.installment_period_days

    # Or create custom settings for testing
    custom = LedgerSettings(freeze_overdue_threshold=2)
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """
    Configurable parameters for the installment engine.

    All monetary values are in cents.
    All rates are in basis points (1 bps = 0.01%).
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Scheduling ===
    installment_period_days: int = Field(
        default=30,
        ge=1,
        description="Days between consecutive installment due dates",
    )
    default_max_installments: int = Field(
        default=4,
        ge=1,
        description="Max installments granted to a newly issued token",
    )
    max_installments_cap: int = Field(
        default=24,
        ge=1,
        description="Hard upper bound on installments for any purchase",
    )

    # === Token Lifecycle ===
    token_validity_days: int = Field(
        default=180,
        ge=1,
        description="Days a newly issued token stays valid",
    )
    default_interest_rate_bps: int = Field(
        default=0,
        ge=0,
        le=10_000,
        description="Periodic interest rate applied to new tokens (0 = interest free)",
    )
    freeze_overdue_threshold: int = Field(
        default=3,
        ge=1,
        description="Overdue payments on a token at or above this count freeze it",
    )

    # === Batch Jobs ===
    overdue_scan_batch_size: int = Field(
        default=500,
        ge=1,
        description="Payments selected per batch of an overdue sweep",
    )

    @model_validator(mode="after")
    def validate_installment_bounds(self) -> "LedgerSettings":
        """Default max installments cannot exceed the hard cap."""
        if self.default_max_installments > self.max_installments_cap:
            raise ValueError(
                f"default_max_installments ({self.default_max_installments}) "
                f"> max_installments_cap ({self.max_installments_cap})"
            )
        return self


@lru_cache
def get_ledger_settings() -> LedgerSettings:
    """Get cached ledger settings instance."""
    return LedgerSettings()


ledger_settings = get_ledger_settings()
