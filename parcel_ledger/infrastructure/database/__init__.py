"""Database infrastructure."""

from .connection import DatabaseSessionManager, create_sessionmaker, db_manager
from .models import (
    Base,
    CreditTokenModel,
    InstallmentPaymentModel,
    InstallmentPlanModel,
    LedgerEventModel,
)

__all__ = [
    "DatabaseSessionManager",
    "create_sessionmaker",
    "db_manager",
    "Base",
    "CreditTokenModel",
    "InstallmentPaymentModel",
    "InstallmentPlanModel",
    "LedgerEventModel",
]
