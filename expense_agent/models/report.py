"""
Report Models

Reports are derived from a ledger snapshot on demand and never stored.
Grouping keys are real dates / (year, month) tuples so that ordering
never depends on how a label happens to be rendered.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from expense_agent.models.expense import ExpenseRecord


class DayGroup(BaseModel):
    """Expenses of one calendar day, in timestamp order."""

    day: date
    records: list[ExpenseRecord] = Field(default_factory=list)
    total: Decimal = Decimal("0.00")


class PeriodReport(BaseModel):
    """Expenses of a contiguous range of days (e.g. the last 7 days)."""

    start: date
    end: date
    days: list[DayGroup] = Field(default_factory=list)
    total: Decimal = Decimal("0.00")

    @property
    def is_empty(self) -> bool:
        return not self.days


class MonthGroup(BaseModel):
    """Expenses of one calendar month, grouped by day."""

    year: int
    month: int = Field(ge=1, le=12)
    days: list[DayGroup] = Field(default_factory=list)
    total: Decimal = Decimal("0.00")

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.year, self.month)


class CategoryTotal(BaseModel):
    category: str
    total: Decimal


class FullReport(BaseModel):
    """Month/day breakdown of the whole ledger plus the category ranking."""

    months: list[MonthGroup] = Field(default_factory=list)
    categories: list[CategoryTotal] = Field(default_factory=list)
    total: Decimal = Decimal("0.00")
