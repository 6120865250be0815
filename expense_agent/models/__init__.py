"""
Data Models Package

This package contains all Pydantic models used in the Expense Agent system.
All data flowing through the system must conform to these schemas.
"""

from expense_agent.models.expense import (
    DEFAULT_CATEGORY,
    DEFAULT_DESCRIPTION,
    ExpenseRecord,
    ParsedExpense,
    PendingCommit,
    new_record_id,
    quantize_money,
    utc_now,
)
from expense_agent.models.session import (
    AwaitingCategoryConfirmation,
    AwaitingClearConfirmation,
    AwaitingExpenseConfirmation,
    SessionState,
)
from expense_agent.models.report import (
    CategoryTotal,
    DayGroup,
    FullReport,
    MonthGroup,
    PeriodReport,
)
from expense_agent.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "DEFAULT_CATEGORY",
    "DEFAULT_DESCRIPTION",
    "ExpenseRecord",
    "ParsedExpense",
    "PendingCommit",
    "new_record_id",
    "quantize_money",
    "utc_now",
    # Session models
    "AwaitingCategoryConfirmation",
    "AwaitingClearConfirmation",
    "AwaitingExpenseConfirmation",
    "SessionState",
    # Report models
    "CategoryTotal",
    "DayGroup",
    "FullReport",
    "MonthGroup",
    "PeriodReport",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
