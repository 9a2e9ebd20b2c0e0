"""Currency tolerance and rounding helpers"""

from decimal import Decimal, ROUND_HALF_UP

# One cent: residuals at or below this are floating-point noise, not debt
BALANCE_TOLERANCE = 0.01

# Float error on sums of cent amounts; far below a cent, so 0.011 still counts
FLOAT_EPSILON = 1e-9

CENT = Decimal("0.01")


def is_negligible(amount: float, tolerance: float = BALANCE_TOLERANCE) -> bool:
    """True when an amount is too small to report as a balance (a net of exactly one cent included)"""
    return abs(amount) <= tolerance + FLOAT_EPSILON


def round_currency(amount: float) -> float:
    """
    Round to cents for output, halves away from zero; never used during accumulation.

    Goes through the shortest decimal repr so 10.125 becomes 10.13, not the
    banker's 10.12 of round().
    """
    return float(Decimal(repr(amount)).quantize(CENT, rounding=ROUND_HALF_UP))
