"""Report engine and rendering."""

from expense_agent.reports.engine import (
    category_ranking,
    full_report,
    last_n_days,
    local_date,
    today,
    total,
)
from expense_agent.reports.formatting import (
    format_amount,
    format_day,
    format_money,
    month_label,
    render_full_report,
    render_period,
    render_today,
    render_total,
)

__all__ = [
    # Engine
    "category_ranking",
    "full_report",
    "last_n_days",
    "local_date",
    "today",
    "total",
    # Rendering
    "format_amount",
    "format_day",
    "format_money",
    "month_label",
    "render_full_report",
    "render_period",
    "render_today",
    "render_total",
]
