"""
Report Rendering

Turns report models into chat-ready text. Amounts use a comma as the
decimal separator ("R$25,50"), days are rendered dd/mm/yyyy and months
as "October 2026".
"""

from datetime import date
from decimal import Decimal

from expense_agent.models.expense import ExpenseRecord
from expense_agent.models.report import FullReport, MonthGroup, PeriodReport


MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

SEPARATOR = "----------------------------"
MONTH_SEPARATOR = "============================"


def format_amount(value: Decimal) -> str:
    """Two decimals, comma separator: Decimal("25.5") -> "25,50"."""
    return f"{value:.2f}".replace(".", ",")


def format_money(value: Decimal, currency_symbol: str = "R$") -> str:
    return f"{currency_symbol}{format_amount(value)}"


def format_day(day: date) -> str:
    return day.strftime("%d/%m/%Y")


def month_label(month: MonthGroup) -> str:
    return f"{MONTH_NAMES[month.month - 1]} {month.year}"


def _expense_line(record: ExpenseRecord, currency_symbol: str, indent: str = "   ") -> str:
    return (
        f"{indent}📌 {format_money(record.value, currency_symbol)} on "
        f"{record.description} *(Category: {record.category})*"
    )


def render_total(amount: Decimal, currency_symbol: str = "R$") -> str:
    return f"📈 *Total expenses recorded:*\n\n💸 {format_money(amount, currency_symbol)}"


def render_today(
    records: list[ExpenseRecord],
    day: date,
    currency_symbol: str = "R$",
) -> str:
    lines = [f"🗓️ *Today's expenses - {format_day(day)}*", ""]
    running = Decimal("0.00")
    for record in records:
        lines.append(_expense_line(record, currency_symbol))
        running += record.value
    lines.append("")
    lines.append(SEPARATOR)
    lines.append(f"💸 *Today's total:* {format_money(running, currency_symbol)}")
    return "\n".join(lines)


def render_period(
    report: PeriodReport,
    currency_symbol: str = "R$",
) -> str:
    span = (report.end - report.start).days + 1
    lines = [f"🗓️ *Expenses of the last {span} days:*", ""]
    for group in report.days:
        lines.append(f"📅 *{format_day(group.day)}*")
        for record in group.records:
            lines.append(_expense_line(record, currency_symbol))
        lines.append(f"   _Day total: {format_money(group.total, currency_symbol)}_")
        lines.append("")
    lines.append(SEPARATOR)
    lines.append(f"💸 *Period total:* {format_money(report.total, currency_symbol)}")
    return "\n".join(lines)


def render_full_report(
    report: FullReport,
    currency_symbol: str = "R$",
) -> str:
    lines = ["📊 *Expense report:*", ""]
    for month in report.months:
        label = month_label(month)
        lines.append(f"🗓️ *{label}*")
        for group in month.days:
            lines.append("")
            lines.append(f"📅 *{format_day(group.day)}*")
            for record in group.records:
                lines.append(_expense_line(record, currency_symbol, indent="     "))
        lines.append("")
        lines.append(f"💰 *Total in {label}:* {format_money(month.total, currency_symbol)}")
        lines.append("")
        lines.append(MONTH_SEPARATOR)
        lines.append("")

    if report.categories:
        lines.append("🏆 *Category ranking:*")
        for position, entry in enumerate(report.categories, start=1):
            lines.append(
                f"{position}. {entry.category} – {format_money(entry.total, currency_symbol)}"
            )

    return "\n".join(lines).strip()
