"""
Integer-cents arithmetic for installment sizing.

All amounts are integer minor-currency units (cents). Rates are periodic
fractions expressed as Decimal (0.02 = 2% per period). Fractional cents are
never stored: every helper returns ints whose sum is exactly the amount
being split.
"""

from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import List

from parcel_ledger.domain.exceptions import InvalidAmountException

BPS_PER_UNIT = Decimal(10_000)
_CENT = Decimal(1)


def _validate(total: int, n: int) -> None:
    if total <= 0:
        raise InvalidAmountException(f"Amount must be positive, got {total}")
    if n <= 0:
        raise InvalidAmountException(f"Installment count must be positive, got {n}")


def ceil_div(numerator: int, denominator: int) -> int:
    """Integer division rounding towards positive infinity."""
    return -(-numerator // denominator)


def bps_to_rate(bps: int) -> Decimal:
    """
    Convert basis points to a periodic rate.

    Example:
        250 bps -> Decimal("0.025")
    """
    return Decimal(bps) / BPS_PER_UNIT


def split_evenly(total: int, n: int) -> List[int]:
    """
    Split an amount into n installments that sum exactly to the total.

    The first n-1 installments are ceil(total / n) and the last one absorbs
    the remainder. When the ceiling split would leave the last installment
    negative (n large relative to total), the amounts fall back to a floor
    split with the remainder on the last installment.

    Args:
        total: Amount to split in cents
        n: Number of installments

    Returns:
        List of n non-negative amounts in cents

    Raises:
        InvalidAmountException: If total or n is not positive

    Example:
        split_evenly(10000, 3) -> [3334, 3334, 3332]
    """
    _validate(total, n)

    per_installment = ceil_div(total, n)
    last = total - per_installment * (n - 1)

    if last < 0:
        base, remainder = divmod(total, n)
        return [base] * (n - 1) + [base + remainder]

    return [per_installment] * (n - 1) + [last]


def _annuity(total: int, n: int, rate: Decimal) -> Decimal:
    factor = (1 + rate) ** n
    return Decimal(total) * rate * factor / (factor - 1)


def compound_installment(total: int, n: int, rate: Decimal) -> int:
    """
    Fixed installment for an amortized purchase (standard annuity formula).

        total * rate * (1 + rate)^n / ((1 + rate)^n - 1)

    Rounded up to the nearest cent. A zero rate degenerates to the plain
    ceiling split.
    """
    _validate(total, n)

    if rate <= 0:
        return ceil_div(total, n)

    return int(_annuity(total, n, rate).to_integral_value(rounding=ROUND_CEILING))


def compound_split(total: int, n: int, rate: Decimal) -> List[int]:
    """
    Split an amortized purchase into n installments.

    The schedule total is the exact annuity times n, rounded half-up to the
    cent. The first n-1 installments equal compound_installment() and the
    last absorbs the rounding residue, as in split_evenly().

    Returns:
        List of n non-negative amounts in cents, including interest
    """
    _validate(total, n)

    if rate <= 0:
        return split_evenly(total, n)

    exact = _annuity(total, n, rate)
    installment = int(exact.to_integral_value(rounding=ROUND_CEILING))
    total_due = int((exact * n).quantize(_CENT, rounding=ROUND_HALF_UP))

    last = total_due - installment * (n - 1)
    if last < 0:
        return split_evenly(total_due, n)

    return [installment] * (n - 1) + [last]


def simple_interest(principal: int, rate: Decimal, periods: int) -> int:
    """Simple (non-compounding) interest in cents, rounded half-up."""
    if principal < 0:
        raise InvalidAmountException(f"Principal cannot be negative, got {principal}")
    if periods < 0:
        raise InvalidAmountException(f"Periods cannot be negative, got {periods}")

    interest = Decimal(principal) * rate * periods
    return int(interest.quantize(_CENT, rounding=ROUND_HALF_UP))
