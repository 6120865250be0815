"""
Report Engine

DESIGN DECISION: Reports are DERIVED, never stored.
Every function here is pure: it takes a snapshot returned by
`read_all()` and computes a view of it. The ledger stays the single
source of truth, so a report is always consistent with the latest
committed state at read time.

Calendar days are taken in the given timezone (None = system local).
Months are keyed by (year, month) and never by a rendered label.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal
from typing import Iterable, Optional

from expense_agent.models.expense import ExpenseRecord
from expense_agent.models.report import (
    CategoryTotal,
    DayGroup,
    FullReport,
    MonthGroup,
    PeriodReport,
)


ZERO = Decimal("0.00")


def local_date(ts: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of an instant in `tz` (system local when None)."""
    return ts.astimezone(tz).date()


def total(records: Iterable[ExpenseRecord]) -> Decimal:
    """Sum of all values."""
    return sum((record.value for record in records), ZERO)


def today(
    records: Iterable[ExpenseRecord],
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> list[ExpenseRecord]:
    """Records whose local calendar date is the same as `now`'s, oldest first."""
    current = local_date(now, tz)
    selected = [r for r in records if local_date(r.timestamp, tz) == current]
    return sorted(selected, key=lambda r: r.timestamp)


def _group_by_day(
    records: Iterable[ExpenseRecord],
    tz: Optional[tzinfo],
) -> list[DayGroup]:
    buckets: dict[date, list[ExpenseRecord]] = defaultdict(list)
    for record in records:
        buckets[local_date(record.timestamp, tz)].append(record)

    groups = []
    for day in sorted(buckets):
        day_records = sorted(buckets[day], key=lambda r: r.timestamp)
        groups.append(DayGroup(day=day, records=day_records, total=total(day_records)))
    return groups


def last_n_days(
    records: Iterable[ExpenseRecord],
    now: datetime,
    n: int = 7,
    tz: Optional[tzinfo] = None,
) -> PeriodReport:
    """
    Records of the inclusive range [today - (n-1), today], grouped by day.

    Days are ascending, records within a day ascending by timestamp.
    """
    if n < 1:
        raise ValueError("n must be at least 1")

    end = local_date(now, tz)
    start = end - timedelta(days=n - 1)
    selected = [
        r for r in records
        if start <= local_date(r.timestamp, tz) <= end
    ]
    days = _group_by_day(selected, tz)
    return PeriodReport(
        start=start,
        end=end,
        days=days,
        total=sum((day.total for day in days), ZERO),
    )


def category_ranking(records: Iterable[ExpenseRecord]) -> list[CategoryTotal]:
    """
    Per-category totals, highest first.

    Ties keep the order in which the categories were first seen.
    """
    totals: dict[str, Decimal] = {}
    for record in records:
        totals[record.category] = totals.get(record.category, ZERO) + record.value

    # sorted() is stable, so equal totals stay in first-seen order
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [CategoryTotal(category=name, total=amount) for name, amount in ranked]


def full_report(
    records: Iterable[ExpenseRecord],
    tz: Optional[tzinfo] = None,
) -> FullReport:
    """
    Whole-ledger report: months (chronological) → days (chronological),
    per-month subtotals, and the category ranking.
    """
    records = list(records)

    by_month: dict[tuple[int, int], list[ExpenseRecord]] = defaultdict(list)
    for record in records:
        day = local_date(record.timestamp, tz)
        by_month[(day.year, day.month)].append(record)

    months = []
    for year, month in sorted(by_month):
        days = _group_by_day(by_month[(year, month)], tz)
        months.append(MonthGroup(
            year=year,
            month=month,
            days=days,
            total=sum((day.total for day in days), ZERO),
        ))

    return FullReport(
        months=months,
        categories=category_ranking(records),
        total=total(records),
    )
