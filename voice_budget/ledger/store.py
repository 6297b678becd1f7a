"""
Ledger Store

The single owner of the in-memory ledger for the lifetime of the process.
It is constructed once at startup and passed to every consumer; there is
no module-level instance.

RULES:
1. Every mutation is synchronous and visible to the next query
2. Aggregates are recomputed on every call (no caching)
3. Every mutation hands a snapshot to the persistence writer
4. A failed snapshot write is logged; it never rolls back or blocks
   the in-memory mutation
5. Mutations are serialized by one lock, so aggregates never observe
   half of a batch
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from decimal import Decimal
from typing import Any, Iterable, Optional, Union
from uuid import UUID

from pydantic import ValidationError

from voice_budget.ledger.recurrence import monthly_equivalent
from voice_budget.log import get_logger
from voice_budget.models.extraction import ExtractionResult
from voice_budget.models.ledger import (
    ExpenseDraft,
    ExpenseRecord,
    IncomeDraft,
    IncomeRecord,
    LedgerSnapshot,
    Provenance,
)
from voice_budget.services.storage import SnapshotStoreInterface


logger = get_logger(__name__)

ZERO = Decimal(0)


class InputValidationError(ValueError):
    """
    A manually entered record was rejected.

    Carries the individual field problems so the UI can show them.
    """

    def __init__(self, message: str, errors: Optional[list[dict]] = None):
        self.errors = errors or []
        super().__init__(message)

    @classmethod
    def from_validation_error(cls, kind: str, error: ValidationError) -> "InputValidationError":
        errors = [
            {
                "field": ".".join(str(part) for part in item["loc"]) or kind,
                "message": item["msg"],
            }
            for item in error.errors()
        ]
        summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        return cls(f"Invalid {kind}: {summary}", errors)


class LedgerStore:
    """
    In-memory collection of income and expense records.

    Manual adds raise InputValidationError on bad input. Voice adds drop
    bad drafts (non-positive amount, empty name) and commit the rest.
    Update and delete on an unknown id are no-ops.
    """

    def __init__(
        self,
        snapshot_store: Optional[SnapshotStoreInterface] = None,
        background_writes: bool = True,
    ):
        """
        Args:
            snapshot_store: Where snapshots are written. None keeps the
                ledger purely in memory.
            background_writes: Write snapshots on a dedicated thread so a
                slow backend never blocks a mutation. Writes stay ordered.
        """
        self._lock = threading.RLock()
        self._incomes: list[IncomeRecord] = []
        self._expenses: list[ExpenseRecord] = []
        self._snapshot_store = snapshot_store
        self._writer: Optional[ThreadPoolExecutor] = None
        if snapshot_store is not None and background_writes:
            self._writer = ThreadPoolExecutor(
                max_workers=1,
                thread_name_prefix="ledger-snapshot",
            )
        self._pending: list[Future] = []
        self.persistence_failures = 0

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def load(self) -> int:
        """
        Rehydrate from the snapshot store. Call once at startup.

        A read failure is logged and the ledger starts empty.

        Returns:
            Number of records loaded
        """
        if self._snapshot_store is None:
            return 0

        try:
            snapshot = self._snapshot_store.load()
        except Exception as e:
            logger.error("ledger_load_failed", error=str(e))
            return 0

        if snapshot is None:
            logger.info("ledger_load_empty")
            return 0

        with self._lock:
            self._incomes = list(snapshot.incomes)
            self._expenses = list(snapshot.expenses)
            count = len(self._incomes) + len(self._expenses)

        logger.info(
            "ledger_loaded",
            incomes=len(snapshot.incomes),
            expenses=len(snapshot.expenses),
        )
        return count

    def flush(self, timeout: Optional[float] = None) -> None:
        """Wait for snapshot writes that are still queued."""
        with self._lock:
            pending = list(self._pending)
            self._pending.clear()
        if pending:
            wait(pending, timeout=timeout)

    def close(self) -> None:
        """Flush pending writes and stop the writer thread."""
        self.flush()
        if self._writer is not None:
            self._writer.shutdown(wait=True)
            self._writer = None

    def __enter__(self) -> "LedgerStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _snapshot_unlocked(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            incomes=list(self._incomes),
            expenses=list(self._expenses),
        )

    def _write_snapshot(self, snapshot: LedgerSnapshot) -> None:
        try:
            self._snapshot_store.save(snapshot)
        except Exception as e:
            self.persistence_failures += 1
            logger.error(
                "persistence_failed",
                error=str(e),
                error_type=type(e).__name__,
                incomes=len(snapshot.incomes),
                expenses=len(snapshot.expenses),
            )

    def _persist(self) -> None:
        # Called with the lock held, right after a mutation
        if self._snapshot_store is None:
            return
        snapshot = self._snapshot_unlocked()
        if self._writer is None:
            self._write_snapshot(snapshot)
            return
        self._pending = [f for f in self._pending if not f.done()]
        self._pending.append(self._writer.submit(self._write_snapshot, snapshot))

    # -------------------------------------------------------------------------
    # Record construction
    # -------------------------------------------------------------------------

    @staticmethod
    def _coerce_income_draft(draft: Union[IncomeDraft, dict]) -> IncomeDraft:
        if isinstance(draft, IncomeDraft):
            return draft
        try:
            return IncomeDraft.model_validate(draft)
        except ValidationError as e:
            raise InputValidationError.from_validation_error("income", e) from e

    @staticmethod
    def _coerce_expense_draft(draft: Union[ExpenseDraft, dict]) -> ExpenseDraft:
        if isinstance(draft, ExpenseDraft):
            return draft
        try:
            return ExpenseDraft.model_validate(draft)
        except ValidationError as e:
            raise InputValidationError.from_validation_error("expense", e) from e

    @staticmethod
    def _build_income(draft: IncomeDraft, source: Provenance) -> IncomeRecord:
        try:
            return IncomeRecord(
                name=draft.name,
                amount=draft.amount,
                period=draft.period,
                source=source,
            )
        except ValidationError as e:
            raise InputValidationError.from_validation_error("income", e) from e

    @staticmethod
    def _build_expense(draft: ExpenseDraft, source: Provenance) -> ExpenseRecord:
        try:
            return ExpenseRecord(
                name=draft.name,
                amount=draft.amount,
                period=draft.period,
                category=draft.category,
                source=source,
            )
        except ValidationError as e:
            raise InputValidationError.from_validation_error("expense", e) from e

    def _build_voice_batch(self, drafts: Iterable, build, kind: str) -> list:
        records = []
        for index, draft in enumerate(drafts):
            try:
                records.append(build(draft, Provenance.VOICE))
            except InputValidationError as e:
                logger.warning(
                    "voice_draft_dropped",
                    kind=kind,
                    index=index,
                    name=draft.name,
                    amount=str(draft.amount),
                    reason=str(e),
                )
        return records

    # -------------------------------------------------------------------------
    # Income mutations
    # -------------------------------------------------------------------------

    def add_income(
        self,
        draft: Union[IncomeDraft, dict],
        source: Provenance = Provenance.MANUAL,
    ) -> IncomeRecord:
        """
        Add one income.

        Raises:
            InputValidationError: Empty name, non-positive or unparseable
                amount, or invalid period. Nothing is committed.
        """
        record = self._build_income(self._coerce_income_draft(draft), source)
        with self._lock:
            self._incomes.append(record)
            self._persist()
        logger.info(
            "ledger_income_added",
            income_id=str(record.id),
            amount=str(record.amount),
            period=record.period.value,
            source=record.source.value,
        )
        return record

    def add_voice_incomes(self, drafts: Iterable[IncomeDraft]) -> list[IncomeRecord]:
        """Add extracted incomes with provenance voice, dropping invalid drafts."""
        records = self._build_voice_batch(drafts, self._build_income, "income")
        if records:
            with self._lock:
                self._incomes.extend(records)
                self._persist()
        logger.info("ledger_voice_incomes_added", count=len(records))
        return records

    def update_income(self, income_id: UUID, changes: dict[str, Any]) -> Optional[IncomeRecord]:
        """
        Replace fields of an income. The id is always preserved.

        Returns:
            The updated record, or None if the id is unknown

        Raises:
            InputValidationError: The changes would make the record invalid
        """
        with self._lock:
            for index, current in enumerate(self._incomes):
                if current.id == income_id:
                    updated = self._apply_changes(IncomeRecord, current, changes, "income")
                    self._incomes[index] = updated
                    self._persist()
                    break
            else:
                logger.info("ledger_update_unknown_id", kind="income", record_id=str(income_id))
                return None

        logger.info("ledger_income_updated", income_id=str(income_id), fields=sorted(changes))
        return updated

    def delete_income(self, income_id: UUID) -> bool:
        """Delete an income. Returns False (and does nothing) if the id is unknown."""
        with self._lock:
            remaining = [income for income in self._incomes if income.id != income_id]
            if len(remaining) == len(self._incomes):
                logger.info("ledger_delete_unknown_id", kind="income", record_id=str(income_id))
                return False
            self._incomes = remaining
            self._persist()
        logger.info("ledger_income_deleted", income_id=str(income_id))
        return True

    # -------------------------------------------------------------------------
    # Expense mutations
    # -------------------------------------------------------------------------

    def add_expense(
        self,
        draft: Union[ExpenseDraft, dict],
        source: Provenance = Provenance.MANUAL,
    ) -> ExpenseRecord:
        """
        Add one expense.

        Raises:
            InputValidationError: Empty name, non-positive or unparseable
                amount, or invalid period. Nothing is committed.
        """
        record = self._build_expense(self._coerce_expense_draft(draft), source)
        with self._lock:
            self._expenses.append(record)
            self._persist()
        logger.info(
            "ledger_expense_added",
            expense_id=str(record.id),
            amount=str(record.amount),
            period=record.period.value,
            category=record.category,
            source=record.source.value,
        )
        return record

    def add_voice_expenses(self, drafts: Iterable[ExpenseDraft]) -> list[ExpenseRecord]:
        """Add extracted expenses with provenance voice, dropping invalid drafts."""
        records = self._build_voice_batch(drafts, self._build_expense, "expense")
        if records:
            with self._lock:
                self._expenses.extend(records)
                self._persist()
        logger.info("ledger_voice_expenses_added", count=len(records))
        return records

    def update_expense(self, expense_id: UUID, changes: dict[str, Any]) -> Optional[ExpenseRecord]:
        """
        Replace fields of an expense. The id is always preserved.

        Returns:
            The updated record, or None if the id is unknown

        Raises:
            InputValidationError: The changes would make the record invalid
        """
        with self._lock:
            for index, current in enumerate(self._expenses):
                if current.id == expense_id:
                    updated = self._apply_changes(ExpenseRecord, current, changes, "expense")
                    self._expenses[index] = updated
                    self._persist()
                    break
            else:
                logger.info("ledger_update_unknown_id", kind="expense", record_id=str(expense_id))
                return None

        logger.info("ledger_expense_updated", expense_id=str(expense_id), fields=sorted(changes))
        return updated

    def delete_expense(self, expense_id: UUID) -> bool:
        """Delete an expense. Returns False (and does nothing) if the id is unknown."""
        with self._lock:
            remaining = [expense for expense in self._expenses if expense.id != expense_id]
            if len(remaining) == len(self._expenses):
                logger.info("ledger_delete_unknown_id", kind="expense", record_id=str(expense_id))
                return False
            self._expenses = remaining
            self._persist()
        logger.info("ledger_expense_deleted", expense_id=str(expense_id))
        return True

    @staticmethod
    def _apply_changes(model, current, changes: dict[str, Any], kind: str):
        data = current.model_dump()
        data.update({key: value for key, value in changes.items() if key != "id"})
        data["id"] = current.id
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise InputValidationError.from_validation_error(kind, e) from e

    # -------------------------------------------------------------------------
    # Batch commit
    # -------------------------------------------------------------------------

    def commit_extraction(
        self,
        result: ExtractionResult,
    ) -> tuple[list[IncomeRecord], list[ExpenseRecord]]:
        """
        Commit every draft of one extraction as a single mutation.

        Invalid drafts are dropped; the rest land together under one lock
        acquisition and one snapshot.
        """
        incomes = self._build_voice_batch(result.incomes, self._build_income, "income")
        expenses = self._build_voice_batch(result.expenses, self._build_expense, "expense")
        if incomes or expenses:
            with self._lock:
                self._incomes.extend(incomes)
                self._expenses.extend(expenses)
                self._persist()
        logger.info(
            "ledger_extraction_committed",
            incomes=len(incomes),
            expenses=len(expenses),
            dropped=len(result.incomes) + len(result.expenses) - len(incomes) - len(expenses),
        )
        return incomes, expenses

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def incomes(self) -> tuple[IncomeRecord, ...]:
        with self._lock:
            return tuple(self._incomes)

    @property
    def expenses(self) -> tuple[ExpenseRecord, ...]:
        with self._lock:
            return tuple(self._expenses)

    def get_income(self, income_id: UUID) -> Optional[IncomeRecord]:
        with self._lock:
            return next((i for i in self._incomes if i.id == income_id), None)

    def get_expense(self, expense_id: UUID) -> Optional[ExpenseRecord]:
        with self._lock:
            return next((e for e in self._expenses if e.id == expense_id), None)

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return self._snapshot_unlocked()

    def get_total_monthly_income(self) -> Decimal:
        with self._lock:
            return sum(
                (monthly_equivalent(i.amount, i.period) for i in self._incomes),
                ZERO,
            )

    def get_total_monthly_expenses(self) -> Decimal:
        with self._lock:
            return sum(
                (monthly_equivalent(e.amount, e.period) for e in self._expenses),
                ZERO,
            )

    def get_monthly_available(self) -> Decimal:
        """Income minus expenses per month. May be negative."""
        with self._lock:
            return self.get_total_monthly_income() - self.get_total_monthly_expenses()

    def expenses_by_category(self) -> dict[str, Decimal]:
        """Monthly-equivalent expense totals per category, largest first."""
        totals: dict[str, Decimal] = {}
        with self._lock:
            for expense in self._expenses:
                key = expense.category or "other"
                totals[key] = totals.get(key, ZERO) + monthly_equivalent(expense.amount, expense.period)
        return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))
