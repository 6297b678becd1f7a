"""Tests for snapshot stores. Google Sheets is exercised through a fake client."""

from decimal import Decimal

import pytest

from voice_budget.models import (
    ExpenseRecord,
    IncomeRecord,
    LedgerSnapshot,
    Provenance,
    RecurrencePeriod,
)
from voice_budget.services.storage import (
    GoogleSheetsSnapshotStore,
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
    PersistenceError,
)
from voice_budget.services.storage.google_sheets import (
    EXPENSE_COLUMNS,
    INCOME_COLUMNS,
    expense_to_row,
    income_to_row,
    row_to_expense,
    row_to_income,
)


@pytest.fixture
def snapshot() -> LedgerSnapshot:
    return LedgerSnapshot(
        incomes=[
            IncomeRecord(name="Salary", amount=Decimal("2000.00")),
            IncomeRecord(name="Bonus", amount=Decimal("1200"), period="yearly", source=Provenance.VOICE),
        ],
        expenses=[
            ExpenseRecord(name="Rent", amount=Decimal("900"), period="static", category="housing"),
            ExpenseRecord(name="Snacks", amount=Decimal("12.50")),
        ],
    )


class FakeWorksheet:
    def __init__(self, rows=None):
        self.rows = rows or []

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def clear(self):
        self.rows = []

    def update(self, values=None, range_name=None, value_input_option=None):
        self.rows = [list(row) for row in values]


class FakeSheetsClient:
    def __init__(self):
        self.incomes = FakeWorksheet([INCOME_COLUMNS])
        self.expenses = FakeWorksheet([EXPENSE_COLUMNS])

    def get_incomes_sheet(self):
        return self.incomes

    def get_expenses_sheet(self):
        return self.expenses


class BrokenSheetsClient:
    def get_incomes_sheet(self):
        raise RuntimeError("quota exceeded")

    def get_expenses_sheet(self):
        raise RuntimeError("quota exceeded")


class TestJsonFileSnapshotStore:
    """Tests for the default on-disk store."""

    def test_round_trip(self, tmp_path, snapshot):
        """A snapshot written and read back is identical, order and ids included."""
        store = JsonFileSnapshotStore(tmp_path / "finance_data.json")
        store.save(snapshot)
        assert store.load() == snapshot

    def test_missing_file_loads_none(self, tmp_path):
        assert JsonFileSnapshotStore(tmp_path / "absent.json").load() is None

    def test_empty_file_loads_none(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("  \n", encoding="utf-8")
        assert JsonFileSnapshotStore(path).load() is None

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "corrupt.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError, match="corrupt"):
            JsonFileSnapshotStore(path).load()

    def test_save_creates_parent_directories(self, tmp_path, snapshot):
        store = JsonFileSnapshotStore(tmp_path / "nested" / "dir" / "data.json")
        store.save(snapshot)
        assert store.path.exists()

    def test_save_replaces_previous_snapshot(self, tmp_path, snapshot):
        store = JsonFileSnapshotStore(tmp_path / "data.json")
        store.save(snapshot)
        store.save(LedgerSnapshot())
        assert store.load() == LedgerSnapshot()
        assert [p.name for p in tmp_path.iterdir()] == ["data.json"]

    def test_failed_write_raises_and_cleans_up(self, tmp_path, snapshot):
        """Writing over a directory fails without leaving temp files."""
        target = tmp_path / "occupied"
        target.mkdir()
        with pytest.raises(PersistenceError):
            JsonFileSnapshotStore(target).save(snapshot)
        assert [p.name for p in tmp_path.iterdir()] == ["occupied"]


class TestInMemorySnapshotStore:
    """Tests for the in-memory store."""

    def test_starts_empty(self):
        assert InMemorySnapshotStore().load() is None

    def test_initial_snapshot(self, snapshot):
        assert InMemorySnapshotStore(initial=snapshot).load() == snapshot

    def test_saved_data_is_detached(self, snapshot):
        store = InMemorySnapshotStore()
        store.save(snapshot)
        snapshot.incomes.clear()
        assert len(store.load().incomes) == 2
        assert store.save_count == 1


class TestGoogleSheetsRows:
    """Tests for row conversion."""

    def test_income_row_round_trip(self, snapshot):
        income = snapshot.incomes[1]
        assert row_to_income(income_to_row(income)) == income

    def test_expense_row_round_trip(self, snapshot):
        expense = snapshot.expenses[0]
        assert row_to_expense(expense_to_row(expense)) == expense

    def test_blank_category_becomes_none(self, snapshot):
        row = expense_to_row(snapshot.expenses[1])
        assert row[4] == ""
        assert row_to_expense(row).category is None


class TestGoogleSheetsSnapshotStore:
    """Tests for the Sheets-backed store."""

    def test_save_then_load(self, snapshot):
        client = FakeSheetsClient()
        store = GoogleSheetsSnapshotStore(client=client)

        store.save(snapshot)

        assert client.incomes.rows[0] == INCOME_COLUMNS
        assert len(client.expenses.rows) == 3
        assert store.load() == snapshot

    def test_malformed_rows_are_skipped(self, snapshot):
        client = FakeSheetsClient()
        store = GoogleSheetsSnapshotStore(client=client)
        store.save(snapshot)
        client.incomes.rows.append(["not-a-uuid", "Broken", "abc", "monthly", "manual", ""])
        client.incomes.rows.append(["", "", "", "", "", ""])

        loaded = store.load()

        assert [i.name for i in loaded.incomes] == ["Salary", "Bonus"]
        assert loaded.incomes[0].period == RecurrencePeriod.MONTHLY

    def test_read_failure_raises_persistence_error(self):
        store = GoogleSheetsSnapshotStore(client=BrokenSheetsClient())
        with pytest.raises(PersistenceError, match="quota exceeded"):
            store.load()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
