"""
Unit tests for schedule building and ledger settings.

These tests verify:
1. Due dates are one period apart, starting one period after issue
2. Principal shares always sum to the reserved amount
3. Interest is added only when a rate is configured
4. LedgerSettings bounds
"""

from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from parcel_ledger.service.installments import (
    LedgerSettings,
    build_schedule,
    due_dates,
)
from parcel_ledger.utils.date_utils import is_strictly_increasing


ISSUED_ON = date(2026, 1, 1)


class TestDueDates:
    """Tests for due date generation."""

    def test_due_dates_are_one_period_apart(self):
        dates = due_dates(ISSUED_ON, 3, 30)

        assert dates == [
            date(2026, 1, 31),
            date(2026, 3, 2),
            date(2026, 4, 1),
        ]

    def test_due_dates_strictly_increase(self):
        assert is_strictly_increasing(due_dates(ISSUED_ON, 24, 30))

    def test_custom_period(self):
        dates = due_dates(ISSUED_ON, 2, 14)

        assert dates == [ISSUED_ON + timedelta(days=14), ISSUED_ON + timedelta(days=28)]


class TestBuildSchedule:
    """Tests for complete schedules."""

    def test_interest_free_schedule(self):
        schedule = build_schedule(10000, 3, issued_on=ISSUED_ON)

        assert [line.amount_cents for line in schedule.lines] == [3334, 3334, 3332]
        assert [line.principal_cents for line in schedule.lines] == [3334, 3334, 3332]
        assert [line.installment_number for line in schedule.lines] == [1, 2, 3]
        assert schedule.total_cents == 10000
        assert schedule.interest_cents == 0
        assert schedule.installment_amount_cents == 3334
        assert schedule.first_due_date == date(2026, 1, 31)

    def test_schedule_with_interest(self):
        schedule = build_schedule(10000, 3, interest_rate_bps=200, issued_on=ISSUED_ON)

        assert [line.amount_cents for line in schedule.lines] == [3468, 3468, 3467]
        assert schedule.total_cents == 10403
        assert schedule.interest_cents == 403
        # Principal shares still come from the plain split
        assert sum(line.principal_cents for line in schedule.lines) == 10000
        # Nominal installment amount is pre-interest
        assert schedule.installment_amount_cents == 3334

    @pytest.mark.parametrize("n", range(1, 25))
    def test_principal_shares_sum_to_principal(self, n: int):
        schedule = build_schedule(99999, n, interest_rate_bps=150, issued_on=ISSUED_ON)

        assert len(schedule.lines) == n
        assert sum(line.principal_cents for line in schedule.lines) == 99999

    def test_uses_configured_period(self):
        settings = LedgerSettings(installment_period_days=14)

        schedule = build_schedule(4000, 2, issued_on=ISSUED_ON, settings=settings)

        assert [line.due_date for line in schedule.lines] == [
            date(2026, 1, 15),
            date(2026, 1, 29),
        ]


class TestLedgerSettings:
    def test_defaults(self):
        settings = LedgerSettings()

        assert settings.installment_period_days == 30
        assert settings.default_max_installments == 4
        assert settings.freeze_overdue_threshold == 3

    def test_default_max_cannot_exceed_cap(self):
        with pytest.raises(ValidationError):
            LedgerSettings(default_max_installments=30, max_installments_cap=24)

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("LEDGER_FREEZE_OVERDUE_THRESHOLD", "5")

        assert LedgerSettings().freeze_overdue_threshold == 5
