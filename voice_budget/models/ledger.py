"""
Ledger Data Models for Voice Budget

These models define the schemas for everything stored in the ledger.
They are designed to:
1. Enforce the amount > 0 invariant on committed records
2. Provide clear validation error messages for manual entry
3. Be JSON-serializable for the persistence snapshot

Drafts are what extraction produces: the same fields as a record but
without identity, provenance or timestamp. Positivity is NOT enforced on
drafts; the ledger store decides what to do with a bad amount at commit time.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class RecurrencePeriod(str, Enum):
    """
    How often an amount recurs.

    STATIC is a fixed monthly obligation (rent, a subscription); MONTHLY is
    a variable recurring monthly cost. Both are already monthly amounts.
    """
    MONTHLY = "monthly"
    STATIC = "static"
    YEARLY = "yearly"


INCOME_PERIODS = frozenset({RecurrencePeriod.MONTHLY, RecurrencePeriod.YEARLY})


class Provenance(str, Enum):
    """Where a record came from."""
    MANUAL = "manual"
    VOICE = "voice"


class ExpenseCategory(str, Enum):
    """
    Category vocabulary offered to the language model.

    Stored categories are free-form strings; this list is advisory.
    """
    FOOD = "food"
    TRANSPORT = "transport"
    HOUSING = "housing"
    ENTERTAINMENT = "entertainment"
    UTILITIES = "utilities"
    OTHER = "other"


def _reject_bool(value: Any) -> Any:
    # bool is an int subclass and would otherwise pass as 0/1
    if isinstance(value, bool):
        raise ValueError("Amount must be a number, not a boolean")
    return value


# =============================================================================
# DRAFTS - extraction output, pending commit
# =============================================================================

class IncomeDraft(BaseModel):
    """An income candidate that has not been committed yet."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(
        ...,
        max_length=200,
        description="Display name"
    )
    amount: Decimal = Field(
        ...,
        description="Amount in the user's currency"
    )
    period: RecurrencePeriod = Field(
        default=RecurrencePeriod.MONTHLY,
        description="Recurrence period (monthly or yearly)"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def amount_is_numeric(cls, v: Any) -> Any:
        return _reject_bool(v)

    @field_validator('period')
    @classmethod
    def validate_income_period(cls, v: RecurrencePeriod) -> RecurrencePeriod:
        if v not in INCOME_PERIODS:
            raise ValueError("Income period must be monthly or yearly")
        return v


class ExpenseDraft(BaseModel):
    """An expense candidate that has not been committed yet."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(
        ...,
        max_length=200,
        description="Display name"
    )
    amount: Decimal = Field(
        ...,
        description="Amount in the user's currency"
    )
    period: RecurrencePeriod = Field(
        default=RecurrencePeriod.MONTHLY,
        description="Recurrence period"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Advisory category tag"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def amount_is_numeric(cls, v: Any) -> Any:
        return _reject_bool(v)


# =============================================================================
# COMMITTED RECORDS
# =============================================================================

class IncomeRecord(BaseModel):
    """
    A committed income source.

    CRITICAL: amount > 0. Only the ledger store creates these.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name (required)"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount (must be positive)"
    )
    period: RecurrencePeriod = Field(
        default=RecurrencePeriod.MONTHLY,
        description="Recurrence period (monthly or yearly)"
    )
    source: Provenance = Field(
        default=Provenance.MANUAL,
        description="Manual entry or voice extraction"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the record was committed"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def amount_is_numeric(cls, v: Any) -> Any:
        return _reject_bool(v)

    @field_validator('period')
    @classmethod
    def validate_income_period(cls, v: RecurrencePeriod) -> RecurrencePeriod:
        if v not in INCOME_PERIODS:
            raise ValueError("Income period must be monthly or yearly")
        return v


class ExpenseRecord(BaseModel):
    """
    A committed expense.

    CRITICAL: amount > 0. Only the ledger store creates these.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name (required)"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount (must be positive)"
    )
    period: RecurrencePeriod = Field(
        default=RecurrencePeriod.MONTHLY,
        description="Recurrence period"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Advisory category tag"
    )
    source: Provenance = Field(
        default=Provenance.MANUAL,
        description="Manual entry or voice extraction"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the record was committed"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def amount_is_numeric(cls, v: Any) -> Any:
        return _reject_bool(v)


class LedgerSnapshot(BaseModel):
    """
    The whole ledger as written to persistence.

    Written wholesale on every mutation, read once at startup.
    Order of both lists is insertion order.
    """

    incomes: list[IncomeRecord] = Field(default_factory=list)
    expenses: list[ExpenseRecord] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, raw: str) -> "LedgerSnapshot":
        return cls.model_validate_json(raw)
