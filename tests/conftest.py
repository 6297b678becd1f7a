"""Shared fixtures. No test talks to a real network service."""

from decimal import Decimal
from typing import Optional

import pytest

from voice_budget.ledger import LedgerStore
from voice_budget.models import (
    AudioRecording,
    ExpenseDraft,
    IncomeDraft,
    LedgerSnapshot,
    RecurrencePeriod,
)
from voice_budget.services.storage import (
    InMemorySnapshotStore,
    PersistenceError,
    SnapshotStoreInterface,
)


class FailingSnapshotStore(SnapshotStoreInterface):
    """Every read and write fails."""

    def __init__(self):
        self.save_attempts = 0

    def load(self) -> Optional[LedgerSnapshot]:
        raise PersistenceError("disk on fire")

    def save(self, snapshot: LedgerSnapshot) -> None:
        self.save_attempts += 1
        raise PersistenceError("disk on fire")


@pytest.fixture
def memory_store() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()


@pytest.fixture
def ledger(memory_store) -> LedgerStore:
    store = LedgerStore(memory_store, background_writes=False)
    yield store
    store.close()


@pytest.fixture
def salary_draft() -> IncomeDraft:
    return IncomeDraft(name="Salary", amount=Decimal("2000"), period=RecurrencePeriod.MONTHLY)


@pytest.fixture
def rent_draft() -> ExpenseDraft:
    return ExpenseDraft(
        name="Rent",
        amount=Decimal("900"),
        period=RecurrencePeriod.STATIC,
        category="housing",
    )


@pytest.fixture
def recording() -> AudioRecording:
    return AudioRecording(data=b"RIFF....WAVEfmt ", mime_type="audio/wav", duration_ms=1500)


@pytest.fixture
def failing_store() -> FailingSnapshotStore:
    return FailingSnapshotStore()
