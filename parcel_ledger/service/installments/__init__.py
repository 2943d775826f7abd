"""
Installment Engine for the Parcel revolving-credit ledger
"""

from .settings import LedgerSettings, ledger_settings
from .money import (
    bps_to_rate,
    ceil_div,
    compound_installment,
    compound_split,
    simple_interest,
    split_evenly,
)
from .schedule import InstallmentSchedule, ScheduleLine, build_schedule, due_dates

__all__ = [
    # Settings
    "LedgerSettings",
    "ledger_settings",
    # Money
    "bps_to_rate",
    "ceil_div",
    "compound_installment",
    "compound_split",
    "simple_interest",
    "split_evenly",
    # Schedule
    "InstallmentSchedule",
    "ScheduleLine",
    "build_schedule",
    "due_dates",
]
