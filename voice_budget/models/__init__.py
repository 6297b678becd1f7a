"""
Data Models Package

This package contains all Pydantic models used in Voice Budget.
All data flowing through the system must conform to these schemas.
"""

from voice_budget.models.ledger import (
    ExpenseCategory,
    ExpenseDraft,
    ExpenseRecord,
    IncomeDraft,
    IncomeRecord,
    LedgerSnapshot,
    Provenance,
    RecurrencePeriod,
)
from voice_budget.models.extraction import (
    AudioRecording,
    EntryStatus,
    ExtractionResult,
    ExtractionState,
    VoiceEntryOutcome,
)

__all__ = [
    # Ledger models
    "ExpenseCategory",
    "ExpenseDraft",
    "ExpenseRecord",
    "IncomeDraft",
    "IncomeRecord",
    "LedgerSnapshot",
    "Provenance",
    "RecurrencePeriod",
    # Extraction models
    "AudioRecording",
    "EntryStatus",
    "ExtractionResult",
    "ExtractionState",
    "VoiceEntryOutcome",
]
