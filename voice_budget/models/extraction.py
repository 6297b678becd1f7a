"""
Voice Extraction Models

Models for what flows through the voice entry pipeline:
recording -> transcript -> ExtractionResult -> committed records.

An ExtractionResult is produced fresh per utterance and never mutated.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from voice_budget.models.ledger import (
    ExpenseDraft,
    ExpenseRecord,
    IncomeDraft,
    IncomeRecord,
    utc_now,
)


class ExtractionResult(BaseModel):
    """
    Draft records extracted from one utterance.

    Drafts carry no identity; ids, provenance and timestamps are
    assigned by the ledger store at commit time.
    """
    model_config = ConfigDict(frozen=True)

    incomes: tuple[IncomeDraft, ...] = Field(default_factory=tuple)
    expenses: tuple[ExpenseDraft, ...] = Field(default_factory=tuple)
    message: Optional[str] = Field(
        default=None,
        description="Human-readable summary of what was extracted"
    )

    @property
    def is_empty(self) -> bool:
        return not self.incomes and not self.expenses

    @classmethod
    def empty(cls, message: Optional[str] = None) -> "ExtractionResult":
        return cls(message=message)


class AudioRecording(BaseModel):
    """A finished audio capture handed over by a recording session."""
    model_config = ConfigDict(frozen=True)

    data: bytes = Field(
        ...,
        description="Raw audio payload"
    )
    mime_type: str = Field(
        default="audio/wav",
        description="Audio format tag, e.g. audio/m4a"
    )
    duration_ms: int = Field(
        default=0,
        ge=0,
        description="Recording length in milliseconds"
    )
    recorded_at: datetime = Field(
        default_factory=utc_now
    )

    @field_validator('mime_type')
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Only allow audio types."""
        v = v.strip().lower()
        if not v.startswith("audio/"):
            raise ValueError(f"Unsupported recording type: {v}")
        return v

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class ExtractionState(str, Enum):
    """
    States of one voice entry invocation.

    IDLE -> TRANSCRIBING -> EXTRACTING -> VALIDATING -> COMMITTED | FALLEN_BACK -> IDLE
    """
    IDLE = "idle"
    TRANSCRIBING = "transcribing"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    COMMITTED = "committed"
    FALLEN_BACK = "fallen_back"

    @property
    def is_busy(self) -> bool:
        return self in (
            ExtractionState.TRANSCRIBING,
            ExtractionState.EXTRACTING,
            ExtractionState.VALIDATING,
        )


class EntryStatus(str, Enum):
    """How a voice entry invocation ended."""
    COMMITTED = "committed"      # remote extraction accepted
    FALLEN_BACK = "fallen_back"  # heuristic (or empty) result committed
    CANCELLED = "cancelled"      # user cancelled, late result discarded
    BUSY = "busy"                # another invocation was in flight


class VoiceEntryOutcome(BaseModel):
    """What the UI gets back from one voice entry invocation."""

    status: EntryStatus
    message: str
    transcript: Optional[str] = None
    result: ExtractionResult = Field(default_factory=ExtractionResult)
    incomes_added: list[IncomeRecord] = Field(default_factory=list)
    expenses_added: list[ExpenseRecord] = Field(default_factory=list)

    @property
    def records_added(self) -> int:
        return len(self.incomes_added) + len(self.expenses_added)
