"""
Heuristic Extractor

Deterministic, offline fallback for turning text into draft records.

How it works:
1. Find every currency amount ("$2,000.00", "50", "1,200") left to right
2. Look at a window of characters on each side of the amount
3. Income if the window has an income keyword and no expense keyword;
   otherwise expense (expense is the default when unsure)

We use plain keyword matching rather than anything smarter because the
user reviews the records anyway and the behaviour must be predictable
without a network.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from voice_budget.log import get_logger
from voice_budget.models.extraction import ExtractionResult
from voice_budget.models.ledger import (
    ExpenseCategory,
    ExpenseDraft,
    IncomeDraft,
    RecurrencePeriod,
)


logger = get_logger(__name__)

AMOUNT_PATTERN = re.compile(r"\$?(\d+(?:,\d{3})*(?:\.\d{2})?)")

DEFAULT_CONTEXT_WINDOW = 50

INCOME_KEYWORDS = (
    "salary",
    "wage",
    "income",
    "earned",
    "paid",
    "bonus",
    "received",
)

EXPENSE_KEYWORDS = (
    "spent",
    "cost",
    "paid for",
    "bought",
    "expense",
    "bill",
)


def summary_message(income_count: int, expense_count: int) -> str:
    return (
        f"Processed {income_count} income(s) and {expense_count} expense(s) "
        "from voice input"
    )


def placeholder_income_name(ordinal: int) -> str:
    return f"Voice Income {ordinal}"


def placeholder_expense_name(ordinal: int) -> str:
    return f"Voice Expense {ordinal}"


class HeuristicExtractor:
    """
    Keyword-based extractor.

    extract() is total: any string (or None) gives a valid result,
    in the worst case with empty lists.
    """

    def __init__(
        self,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
        income_keywords: Iterable[str] = INCOME_KEYWORDS,
        expense_keywords: Iterable[str] = EXPENSE_KEYWORDS,
    ):
        if context_window < 0:
            raise ValueError("context_window must be >= 0")
        self._window = context_window
        self._income_keywords = tuple(k.lower() for k in income_keywords)
        self._expense_keywords = tuple(k.lower() for k in expense_keywords)

    def _context(self, text: str, start: int, end: int) -> str:
        before = text[max(0, start - self._window):start]
        after = text[end:end + self._window]
        return f"{before} {after}".lower()

    def is_income_context(self, context: str) -> bool:
        has_income = any(keyword in context for keyword in self._income_keywords)
        has_expense = any(keyword in context for keyword in self._expense_keywords)
        return has_income and not has_expense

    @staticmethod
    def _parse_amount(token: str) -> Optional[Decimal]:
        try:
            return Decimal(token.replace(",", ""))
        except InvalidOperation:
            return None

    def extract(self, text: Optional[str]) -> ExtractionResult:
        """Scan ``text`` for amounts and classify each one."""
        if not text:
            return ExtractionResult(incomes=(), expenses=(), message=summary_message(0, 0))

        incomes: list[IncomeDraft] = []
        expenses: list[ExpenseDraft] = []

        for match in AMOUNT_PATTERN.finditer(text):
            amount = self._parse_amount(match.group(1))
            if amount is None:
                continue

            context = self._context(text, match.start(), match.end())

            if self.is_income_context(context):
                incomes.append(IncomeDraft(
                    name=placeholder_income_name(len(incomes) + 1),
                    amount=amount,
                    period=RecurrencePeriod.MONTHLY,
                ))
            else:
                expenses.append(ExpenseDraft(
                    name=placeholder_expense_name(len(expenses) + 1),
                    amount=amount,
                    period=RecurrencePeriod.MONTHLY,
                    category=ExpenseCategory.OTHER.value,
                ))

        logger.info(
            "heuristic_extraction_completed",
            text_length=len(text),
            incomes=len(incomes),
            expenses=len(expenses),
        )

        return ExtractionResult(
            incomes=tuple(incomes),
            expenses=tuple(expenses),
            message=summary_message(len(incomes), len(expenses)),
        )
