"""
Recurrence normalization.

Reduces any recurring amount to its monthly equivalent so incomes and
expenses with different periods can be summed. No rounding happens here;
only display code rounds, so aggregation never compounds rounding error.
"""

from decimal import ROUND_HALF_UP, Decimal

from voice_budget.models.ledger import RecurrencePeriod


MONTHS_PER_YEAR = Decimal(12)

CENT = Decimal("0.01")


def monthly_equivalent(amount: Decimal, period: RecurrencePeriod) -> Decimal:
    """
    Convert ``amount`` recurring every ``period`` to a per-month amount.

    MONTHLY and STATIC amounts are already monthly; YEARLY is divided by 12.
    """
    if period == RecurrencePeriod.YEARLY:
        return amount / MONTHS_PER_YEAR
    return amount


def to_display_amount(amount: Decimal) -> Decimal:
    """Round to cents for display."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)
