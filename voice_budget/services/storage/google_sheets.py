"""
Google Sheets Snapshot Storage

Mirrors the ledger into a spreadsheet so the user can see their incomes
and expenses directly in Sheets. The snapshot is still written wholesale:
each save clears both worksheets and rewrites every row.

TRADEOFFS:
- A full rewrite per mutation is fine for a personal ledger (tens of rows)
- No transactions; incomes are written before expenses
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from voice_budget.config import GoogleSheetsSettings, get_settings
from voice_budget.log import get_logger
from voice_budget.models.ledger import (
    ExpenseRecord,
    IncomeRecord,
    LedgerSnapshot,
    Provenance,
    RecurrencePeriod,
)
from voice_budget.services.storage.interface import (
    ConnectionError,
    PersistenceError,
    SnapshotStoreInterface,
)


logger = get_logger(__name__)


INCOME_COLUMNS = [
    "id",
    "name",
    "amount",
    "period",
    "source",
    "created_at",
]

EXPENSE_COLUMNS = [
    "id",
    "name",
    "amount",
    "period",
    "category",
    "source",
    "created_at",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet with a header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=500,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_incomes_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.incomes_sheet_name, INCOME_COLUMNS)

    def get_expenses_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.expenses_sheet_name, EXPENSE_COLUMNS)


def income_to_row(income: IncomeRecord) -> list[str]:
    """Convert an IncomeRecord to a spreadsheet row."""
    return [
        str(income.id),
        income.name,
        str(income.amount),
        income.period.value,
        income.source.value,
        income.created_at.isoformat(),
    ]


def expense_to_row(expense: ExpenseRecord) -> list[str]:
    """Convert an ExpenseRecord to a spreadsheet row."""
    return [
        str(expense.id),
        expense.name,
        str(expense.amount),
        expense.period.value,
        expense.category or "",
        expense.source.value,
        expense.created_at.isoformat(),
    ]


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def row_to_income(row: list) -> IncomeRecord:
    """Convert a spreadsheet row to an IncomeRecord."""
    return IncomeRecord(
        id=UUID(_safe_get(row, 0)),
        name=_safe_get(row, 1),
        amount=Decimal(_safe_get(row, 2)),
        period=RecurrencePeriod(_safe_get(row, 3, "monthly")),
        source=Provenance(_safe_get(row, 4, "manual")),
        created_at=datetime.fromisoformat(_safe_get(row, 5)),
    )


def row_to_expense(row: list) -> ExpenseRecord:
    """Convert a spreadsheet row to an ExpenseRecord."""
    return ExpenseRecord(
        id=UUID(_safe_get(row, 0)),
        name=_safe_get(row, 1),
        amount=Decimal(_safe_get(row, 2)),
        period=RecurrencePeriod(_safe_get(row, 3, "monthly")),
        category=_safe_get(row, 4) or None,
        source=Provenance(_safe_get(row, 5, "manual")),
        created_at=datetime.fromisoformat(_safe_get(row, 6)),
    )


class GoogleSheetsSnapshotStore(SnapshotStoreInterface):
    """
    Google Sheets implementation of snapshot storage.

    One worksheet per record kind, one record per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _read_rows(self, sheet: gspread.Worksheet, convert, kind: str) -> list:
        records = []
        for row in sheet.get_all_values()[1:]:  # Skip header
            if not row or not row[0]:
                continue
            try:
                records.append(convert(row))
            except Exception as e:
                logger.warning("sheets_row_skipped", kind=kind, row_id=row[0], error=str(e))
        return records

    def load(self) -> Optional[LedgerSnapshot]:
        try:
            incomes = self._read_rows(self._client.get_incomes_sheet(), row_to_income, "income")
            expenses = self._read_rows(self._client.get_expenses_sheet(), row_to_expense, "expense")
        except Exception as e:
            raise PersistenceError(f"Failed to read ledger from Google Sheets: {e}") from e
        return LedgerSnapshot(incomes=incomes, expenses=expenses)

    def _rewrite(self, sheet: gspread.Worksheet, header: list[str], rows: list[list[str]]) -> None:
        sheet.clear()
        sheet.update(values=[header] + rows, range_name="A1", value_input_option="RAW")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def save(self, snapshot: LedgerSnapshot) -> None:
        try:
            self._rewrite(
                self._client.get_incomes_sheet(),
                INCOME_COLUMNS,
                [income_to_row(income) for income in snapshot.incomes],
            )
            self._rewrite(
                self._client.get_expenses_sheet(),
                EXPENSE_COLUMNS,
                [expense_to_row(expense) for expense in snapshot.expenses],
            )
        except Exception as e:
            raise PersistenceError(f"Failed to write ledger to Google Sheets: {e}") from e
