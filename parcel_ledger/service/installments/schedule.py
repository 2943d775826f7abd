"""Installment schedule building (pure, no persistence)."""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List

from .money import bps_to_rate, ceil_div, compound_split, split_evenly
from .settings import LedgerSettings, ledger_settings


@dataclass(frozen=True)
class ScheduleLine:
    """One dated installment in a schedule."""

    installment_number: int
    amount_cents: int
    principal_cents: int
    due_date: date


@dataclass(frozen=True)
class InstallmentSchedule:
    """A complete repayment schedule for one purchase."""

    principal_cents: int
    interest_rate_bps: int
    installment_amount_cents: int
    lines: List[ScheduleLine]

    @property
    def total_cents(self) -> int:
        return sum(line.amount_cents for line in self.lines)

    @property
    def interest_cents(self) -> int:
        return self.total_cents - self.principal_cents

    @property
    def first_due_date(self) -> date:
        return self.lines[0].due_date


def due_dates(
    start: date,
    count: int,
    period_days: int,
) -> List[date]:
    """Due dates spaced period_days apart, the first one period after start."""
    return [start + timedelta(days=period_days * i) for i in range(1, count + 1)]


def build_schedule(
    principal_cents: int,
    num_installments: int,
    interest_rate_bps: int = 0,
    issued_on: date | None = None,
    settings: LedgerSettings = ledger_settings,
) -> InstallmentSchedule:
    """
    Build the installment schedule for a purchase.

    Amounts use the plain split when interest_rate_bps is 0 and the annuity
    split otherwise. The principal share of each line always comes from the
    plain split, so releasing every line's principal restores exactly the
    reserved amount.

    Args:
        principal_cents: Purchase amount reserved on the token
        num_installments: Number of installments (N)
        interest_rate_bps: Periodic interest rate in basis points
        issued_on: Schedule start date (default: today)
        settings: Ledger settings (uses defaults if not provided)

    Returns:
        InstallmentSchedule with N lines

    Raises:
        InvalidAmountException: If principal or installment count is not positive
    """
    if issued_on is None:
        issued_on = date.today()

    principal_shares = split_evenly(principal_cents, num_installments)

    if interest_rate_bps > 0:
        amounts = compound_split(
            principal_cents,
            num_installments,
            bps_to_rate(interest_rate_bps),
        )
    else:
        amounts = principal_shares

    dates = due_dates(issued_on, num_installments, settings.installment_period_days)

    lines = [
        ScheduleLine(
            installment_number=number,
            amount_cents=amount,
            principal_cents=principal,
            due_date=due,
        )
        for number, (amount, principal, due) in enumerate(
            zip(amounts, principal_shares, dates),
            start=1,
        )
    ]

    return InstallmentSchedule(
        principal_cents=principal_cents,
        interest_rate_bps=interest_rate_bps,
        installment_amount_cents=ceil_div(principal_cents, num_installments),
        lines=lines,
    )
