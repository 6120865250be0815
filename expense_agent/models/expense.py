"""
Core Data Models for Expense Agent

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for the ledger file and for logging

DESIGN DECISION: Money is always a Decimal quantized to two places.
Binary floats would break equality between what the user typed and
what comes back from the ledger file.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


DEFAULT_CATEGORY = "Other"
DEFAULT_DESCRIPTION = "No description"

CENTS = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary amount to cents."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def utc_now() -> datetime:
    """Current instant in UTC, truncated to millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def new_record_id() -> str:
    return uuid4().hex


class ExpenseRecord(BaseModel):
    """
    A single line of the ledger.

    Records are immutable once written. The only sanctioned mutation is
    the category update that follows a user confirmation, which goes
    through `model_copy(update=...)` and a full ledger rewrite.
    """
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(
        ...,
        description="When the expense was committed"
    )
    value: Decimal = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Amount spent"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="What the money was spent on"
    )
    category: str = Field(
        default=DEFAULT_CATEGORY,
        min_length=1,
        description="Category label"
    )
    record_id: Optional[str] = Field(
        default=None,
        description="Stable identifier assigned at append time (absent on legacy lines)"
    )

    @field_validator('timestamp')
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        """Naive timestamps are taken to be UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator('value')
    @classmethod
    def round_to_cents(cls, v: Decimal) -> Decimal:
        v = quantize_money(v)
        # Sub-cent amounts would otherwise round down to zero
        if v <= 0:
            raise ValueError("Value must be at least 0.01")
        return v

    @property
    def is_uncategorized(self) -> bool:
        return self.category == DEFAULT_CATEGORY


class ParsedExpense(BaseModel):
    """
    Result of parsing an expense statement such as "gastei 25,50 no cinema".

    This is PROPOSED data. Nothing is written to the ledger until the
    user answers "sim".
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    value: Decimal = Field(..., gt=0, allow_inf_nan=False)
    description: str = Field(..., min_length=1)

    @field_validator('value')
    @classmethod
    def round_to_cents(cls, v: Decimal) -> Decimal:
        v = quantize_money(v)
        # Sub-cent amounts would otherwise round down to zero
        if v <= 0:
            raise ValueError("Value must be at least 0.01")
        return v


class PendingCommit(BaseModel):
    """
    Snapshot of a record that was just appended, held while the user
    decides whether to accept the suggested category.
    """
    model_config = ConfigDict(frozen=True)

    record_id: Optional[str] = None
    timestamp: datetime
    value: Decimal
    description: str
    suggested_category: str

    @classmethod
    def from_record(cls, record: ExpenseRecord, suggested_category: str) -> "PendingCommit":
        return cls(
            record_id=record.record_id,
            timestamp=record.timestamp,
            value=record.value,
            description=record.description,
            suggested_category=suggested_category,
        )

    def matches(self, record: ExpenseRecord) -> bool:
        """
        Does this commit refer to `record`?

        Records carrying an id are matched by id alone. Legacy records
        fall back to timestamp, value and description equality.
        """
        if self.record_id is not None and record.record_id is not None:
            return self.record_id == record.record_id
        return (
            record.timestamp == self.timestamp
            and record.value == self.value
            and record.description == self.description
        )
