"""
Structured extraction payload parser.

The language model is asked for:

    {"incomes": [{"name", "amount", "period"}],
     "expenses": [{"name", "amount", "period", "category"}],
     "message": "..."}

Nothing it returns is trusted. The raw text is parsed into typed drafts or
rejected as a whole with MalformedResponseError; there is no partial trust.

Repairs (cosmetic only, they never change an amount):
- prose or markdown fences around the JSON object are ignored
- missing / null top-level arrays become empty
- "type" is accepted as a synonym for "period"
- an income period of "static" becomes "monthly" (same monthly value)
- unknown or missing expense categories become "other"
- blank names get the same placeholder names the heuristic uses
- a missing message gets the standard count summary

Rejected (MalformedResponseError):
- no JSON object, invalid JSON, top level not an object
- incomes / expenses not a list, or an element not an object
- an element without a name or amount
- a non-numeric amount, an unknown period
"""

import json
from decimal import Decimal
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from voice_budget.extraction.heuristic import (
    placeholder_expense_name,
    placeholder_income_name,
    summary_message,
)
from voice_budget.models.extraction import ExtractionResult
from voice_budget.models.ledger import (
    ExpenseCategory,
    ExpenseDraft,
    IncomeDraft,
    RecurrencePeriod,
)
from voice_budget.services.gemini.errors import MalformedResponseError


CATEGORY_VOCABULARY = frozenset(category.value for category in ExpenseCategory)


def _normalize_period(value: Any) -> Any:
    if value is None:
        return RecurrencePeriod.MONTHLY.value
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("Amount must be a number, not a boolean")
    return value


class IncomePayloadItem(BaseModel):
    """One element of the "incomes" array as sent by the model."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str
    amount: Decimal
    period: RecurrencePeriod = Field(
        default=RecurrencePeriod.MONTHLY,
        validation_alias=AliasChoices("period", "type"),
    )

    @field_validator('amount', mode='before')
    @classmethod
    def amount_is_numeric(cls, v: Any) -> Any:
        return _reject_bool(v)

    @field_validator('period', mode='before')
    @classmethod
    def normalize_period(cls, v: Any) -> Any:
        return _normalize_period(v)

    @field_validator('period')
    @classmethod
    def static_income_is_monthly(cls, v: RecurrencePeriod) -> RecurrencePeriod:
        if v == RecurrencePeriod.STATIC:
            return RecurrencePeriod.MONTHLY
        return v


class ExpensePayloadItem(BaseModel):
    """One element of the "expenses" array as sent by the model."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str
    amount: Decimal
    period: RecurrencePeriod = Field(
        default=RecurrencePeriod.MONTHLY,
        validation_alias=AliasChoices("period", "type"),
    )
    category: str = ExpenseCategory.OTHER.value

    @field_validator('amount', mode='before')
    @classmethod
    def amount_is_numeric(cls, v: Any) -> Any:
        return _reject_bool(v)

    @field_validator('period', mode='before')
    @classmethod
    def normalize_period(cls, v: Any) -> Any:
        return _normalize_period(v)

    @field_validator('category', mode='before')
    @classmethod
    def normalize_category(cls, v: Any) -> str:
        if not isinstance(v, str):
            return ExpenseCategory.OTHER.value
        v = v.strip().lower()
        return v if v in CATEGORY_VOCABULARY else ExpenseCategory.OTHER.value


class ExtractionPayload(BaseModel):
    """The whole object returned by the structured extraction call."""
    model_config = ConfigDict(extra="ignore")

    incomes: list[IncomePayloadItem] = Field(default_factory=list)
    expenses: list[ExpensePayloadItem] = Field(default_factory=list)
    message: Optional[str] = None

    @field_validator('incomes', 'expenses', mode='before')
    @classmethod
    def null_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator('message', mode='before')
    @classmethod
    def message_is_text(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return None


def _find_json_object(raw: str) -> str:
    start = raw.find("{")
    end = raw.rfind("}") + 1
    if start < 0 or end <= start:
        raise MalformedResponseError("Response contains no JSON object", raw=raw)
    return raw[start:end]


def parse_extraction_payload(raw: Optional[str]) -> ExtractionResult:
    """
    Turn the raw model response into an ExtractionResult.

    Raises:
        MalformedResponseError: The payload does not have the expected shape
    """
    if not isinstance(raw, str) or not raw.strip():
        raise MalformedResponseError("Empty extraction response", raw=raw)

    try:
        data = json.loads(_find_json_object(raw))
    except (ValueError, RecursionError) as e:
        # JSONDecodeError is a ValueError; oversized integers and deep
        # nesting raise plain ValueError and RecursionError
        raise MalformedResponseError(f"Invalid JSON: {e}", raw=raw) from e

    if not isinstance(data, dict):
        raise MalformedResponseError("Top-level JSON value is not an object", raw=raw)

    try:
        payload = ExtractionPayload.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(
            f"Payload failed validation: {e.error_count()} error(s)",
            raw=raw,
            errors=e.errors(include_url=False),
        ) from e

    incomes = []
    expenses = []
    try:
        for item in payload.incomes:
            incomes.append(IncomeDraft(
                name=item.name or placeholder_income_name(len(incomes) + 1),
                amount=item.amount,
                period=item.period,
            ))
        for item in payload.expenses:
            expenses.append(ExpenseDraft(
                name=item.name or placeholder_expense_name(len(expenses) + 1),
                amount=item.amount,
                period=item.period,
                category=item.category,
            ))
    except ValidationError as e:
        raise MalformedResponseError(
            f"Draft failed validation: {e.error_count()} error(s)",
            raw=raw,
            errors=e.errors(include_url=False),
        ) from e

    message = (payload.message or "").strip() or summary_message(len(incomes), len(expenses))

    return ExtractionResult(
        incomes=tuple(incomes),
        expenses=tuple(expenses),
        message=message,
    )
