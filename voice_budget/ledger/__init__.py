"""Ledger package: recurrence normalization and the ledger store."""

from voice_budget.ledger.recurrence import monthly_equivalent, to_display_amount
from voice_budget.ledger.store import InputValidationError, LedgerStore

__all__ = [
    "InputValidationError",
    "LedgerStore",
    "monthly_equivalent",
    "to_display_amount",
]
