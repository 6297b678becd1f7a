"""
Tests for Voice Budget models

Test strategy:
1. Unit tests for individual components (models, normalizer, store, extractors)
2. Flow tests with fake remote services
3. No real API calls in tests
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from voice_budget.models import (
    AudioRecording,
    ExpenseDraft,
    ExpenseRecord,
    ExtractionResult,
    ExtractionState,
    IncomeDraft,
    IncomeRecord,
    LedgerSnapshot,
    Provenance,
    RecurrencePeriod,
)


class TestRecordModels:
    """Tests for committed record models."""

    def test_income_record_defaults(self):
        """Test IncomeRecord gets an id, manual provenance and a timestamp."""
        income = IncomeRecord(name="Salary", amount=Decimal("2000"))
        assert income.id is not None
        assert income.source == Provenance.MANUAL
        assert income.period == RecurrencePeriod.MONTHLY
        assert income.created_at.tzinfo is not None

    def test_income_record_strips_whitespace(self):
        """Test that whitespace is stripped from names."""
        income = IncomeRecord(name="  Salary  ", amount=Decimal("1"))
        assert income.name == "Salary"

    def test_income_record_rejects_non_positive_amount(self):
        """Test amount > 0 invariant."""
        with pytest.raises(ValidationError):
            IncomeRecord(name="Salary", amount=Decimal("0"))
        with pytest.raises(ValidationError):
            IncomeRecord(name="Salary", amount=Decimal("-10"))

    def test_income_record_rejects_blank_name(self):
        """Test that a name of only spaces is rejected."""
        with pytest.raises(ValidationError):
            IncomeRecord(name="   ", amount=Decimal("10"))

    def test_income_record_rejects_static_period(self):
        """Test incomes are monthly or yearly only."""
        with pytest.raises(ValidationError, match="monthly or yearly"):
            IncomeRecord(name="Salary", amount=Decimal("10"), period=RecurrencePeriod.STATIC)

    def test_record_rejects_boolean_amount(self):
        """Test True is not accepted as an amount of 1."""
        with pytest.raises(ValidationError):
            ExpenseRecord(name="Coffee", amount=True)

    def test_expense_record_accepts_static(self):
        """Test expenses accept all three periods."""
        expense = ExpenseRecord(
            name="Rent",
            amount=Decimal("900"),
            period=RecurrencePeriod.STATIC,
            category="housing",
        )
        assert expense.period == RecurrencePeriod.STATIC
        assert expense.category == "housing"

    def test_expense_category_is_optional(self):
        """Test category is advisory and may be missing."""
        expense = ExpenseRecord(name="Misc", amount=Decimal("5"))
        assert expense.category is None


class TestDraftModels:
    """Tests for draft models."""

    def test_drafts_do_not_enforce_positivity(self):
        """Drafts may carry a bad amount; the ledger decides at commit time."""
        draft = ExpenseDraft(name="Refund?", amount=Decimal("-5"))
        assert draft.amount == Decimal("-5")

    def test_income_draft_rejects_static(self):
        """Test income drafts share the income period rule."""
        with pytest.raises(ValidationError):
            IncomeDraft(name="Salary", amount=Decimal("1"), period="static")

    def test_drafts_are_frozen(self):
        """Test drafts cannot be mutated."""
        draft = IncomeDraft(name="Salary", amount=Decimal("1"))
        with pytest.raises(ValidationError):
            draft.amount = Decimal("2")


class TestExtractionModels:
    """Tests for extraction models."""

    def test_extraction_result_is_immutable(self):
        """Test ExtractionResult is never mutated."""
        result = ExtractionResult(message="hi")
        with pytest.raises(ValidationError):
            result.message = "changed"

    def test_extraction_result_coerces_lists(self):
        """Test lists of drafts are stored as tuples."""
        result = ExtractionResult(incomes=[IncomeDraft(name="A", amount=Decimal("1"))])
        assert isinstance(result.incomes, tuple)
        assert not result.is_empty

    def test_empty_result(self):
        """Test the empty constructor."""
        result = ExtractionResult.empty("nothing")
        assert result.is_empty
        assert result.message == "nothing"

    def test_audio_recording_mime_type(self):
        """Test mime type is normalized and must be audio."""
        recording = AudioRecording(data=b"abc", mime_type=" Audio/M4A ")
        assert recording.mime_type == "audio/m4a"
        assert recording.size_bytes == 3
        with pytest.raises(ValidationError):
            AudioRecording(data=b"abc", mime_type="image/png")

    def test_busy_states(self):
        """Test which states block a new invocation."""
        assert ExtractionState.TRANSCRIBING.is_busy
        assert ExtractionState.EXTRACTING.is_busy
        assert ExtractionState.VALIDATING.is_busy
        assert not ExtractionState.IDLE.is_busy
        assert not ExtractionState.COMMITTED.is_busy
        assert not ExtractionState.FALLEN_BACK.is_busy


class TestLedgerSnapshot:
    """Tests for the persistence snapshot model."""

    def test_json_round_trip_preserves_records_and_order(self):
        """Test a snapshot written and read back is identical."""
        first_id, second_id = uuid4(), uuid4()
        snapshot = LedgerSnapshot(
            incomes=[
                IncomeRecord(id=first_id, name="Salary", amount=Decimal("2000.00")),
                IncomeRecord(
                    id=second_id,
                    name="Bonus",
                    amount=Decimal("1200"),
                    period=RecurrencePeriod.YEARLY,
                    source=Provenance.VOICE,
                ),
            ],
            expenses=[
                ExpenseRecord(name="Rent", amount=Decimal("900"), period="static", category="housing"),
            ],
        )

        restored = LedgerSnapshot.from_json(snapshot.to_json())

        assert restored == snapshot
        assert [i.id for i in restored.incomes] == [first_id, second_id]
        assert restored.incomes[0].amount == Decimal("2000.00")

    def test_snapshot_json_shape(self):
        """Test the snapshot serializes to {incomes, expenses}."""
        data = LedgerSnapshot().model_dump(mode="json")
        assert data == {"incomes": [], "expenses": []}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
