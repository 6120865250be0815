"""
Audit Models for Expense Agent

Every significant action in a conversation is logged for audit purposes.
This provides:
1. Traceability of every ledger mutation back to a conversation
2. Debugging information when things go wrong
3. Ability to reconstruct what the user confirmed and when

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

MAX_DESCRIPTION_LENGTH = 500


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every transition of the confirmation dialogue has its own event type.
    """
    # Expense entry
    EXPENSE_PROPOSED = "expense_proposed"
    EXPENSE_REJECTED_FORMAT = "expense_rejected_format"
    EXPENSE_CANCELLED = "expense_cancelled"
    EXPENSE_SAVED = "expense_saved"
    SAVE_FAILED = "save_failed"

    # Category confirmation
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_KEPT = "category_kept"
    CATEGORY_NOT_FOUND = "category_not_found"
    CATEGORY_UPDATE_FAILED = "category_update_failed"

    # Ledger management
    LEDGER_CLEARED = "ledger_cleared"
    CLEAR_CANCELLED = "clear_cancelled"

    # Reports
    REPORT_GENERATED = "report_generated"

    # Sessions
    SESSIONS_RESET = "sessions_reset"

    # System events
    STORAGE_ERROR = "storage_error"
    STATE_INCONSISTENCY = "state_inconsistency"
    NOTIFICATION_FAILED = "notification_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which conversation / record is this about?
    conversation_id: Optional[str] = Field(
        default=None,
        description="Conversation the event happened in"
    )
    record_id: Optional[str] = Field(
        default=None,
        description="Ledger record the event relates to"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=MAX_DESCRIPTION_LENGTH,
        description="Human-readable description of what happened"
    )

    # Additional data (event-specific)
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user reply?"
    )

    @field_validator('description', mode="before")
    @classmethod
    def clip_description(cls, v):
        # User-typed text ends up here; never fail an event over its length
        if isinstance(v, str) and len(v) > MAX_DESCRIPTION_LENGTH:
            return v[: MAX_DESCRIPTION_LENGTH - 3] + "..."
        return v

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "conversation_id": self.conversation_id,
            "record_id": self.record_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_saved(conversation_id, record_id, "25.50", "cinema")
        event = AuditEventBuilder.storage_error(conversation_id, "append", str(e))
    """

    @staticmethod
    def expense_proposed(
        conversation_id: str,
        value: str,
        description: str,
        suggested_category: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_PROPOSED,
            conversation_id=conversation_id,
            description=f"Expense proposed: {description} - {value}",
            details={
                "value": value,
                "description": description,
                "suggested_category": suggested_category,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_rejected_format(
        conversation_id: str,
        reason: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REJECTED_FORMAT,
            severity=AuditSeverity.WARNING,
            conversation_id=conversation_id,
            description="Expense statement could not be parsed",
            details={"reason": reason},
            is_user_action=True,
        )

    @staticmethod
    def expense_cancelled(conversation_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CANCELLED,
            conversation_id=conversation_id,
            description="User cancelled the proposed expense",
            is_user_action=True,
        )

    @staticmethod
    def expense_saved(
        conversation_id: str,
        record_id: Optional[str],
        value: str,
        description: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SAVED,
            conversation_id=conversation_id,
            record_id=record_id,
            description=f"Expense saved: {description} - {value}",
            details={
                "value": value,
                "description": description,
            },
            is_user_action=True,
        )

    @staticmethod
    def category_updated(
        conversation_id: str,
        record_id: Optional[str],
        category: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_UPDATED,
            conversation_id=conversation_id,
            record_id=record_id,
            description=f"Category set to {category}",
            details={"category": category},
            is_user_action=True,
        )

    @staticmethod
    def category_kept(
        conversation_id: str,
        record_id: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_KEPT,
            conversation_id=conversation_id,
            record_id=record_id,
            description="User kept the default category",
            is_user_action=True,
        )

    @staticmethod
    def category_not_found(
        conversation_id: str,
        record_id: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            conversation_id=conversation_id,
            record_id=record_id,
            description="No uncategorized record matched the pending commit",
        )

    @staticmethod
    def ledger_cleared(
        conversation_id: str,
        outcome: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CLEARED,
            severity=AuditSeverity.WARNING,
            conversation_id=conversation_id,
            description=f"Ledger clear requested: {outcome}",
            details={"outcome": outcome},
            is_user_action=True,
        )

    @staticmethod
    def clear_cancelled(conversation_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLEAR_CANCELLED,
            conversation_id=conversation_id,
            description="User cancelled the ledger clear",
            is_user_action=True,
        )

    @staticmethod
    def report_generated(
        conversation_id: str,
        report: str,
        record_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            conversation_id=conversation_id,
            description=f"Report {report} generated over {record_count} records",
            details={
                "report": report,
                "record_count": record_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def sessions_reset(dropped: int, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSIONS_RESET,
            severity=AuditSeverity.WARNING if dropped else AuditSeverity.INFO,
            description=f"Session table cleared ({reason})",
            details={
                "dropped_sessions": dropped,
                "reason": reason,
            },
        )

    @staticmethod
    def storage_error(
        conversation_id: str,
        operation: str,
        error_message: str,
    ) -> AuditEvent:
        event_type = {
            "append": AuditEventType.SAVE_FAILED,
            "rewrite": AuditEventType.CATEGORY_UPDATE_FAILED,
        }.get(operation, AuditEventType.STORAGE_ERROR)
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.ERROR,
            conversation_id=conversation_id,
            description=f"Ledger {operation} failed",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def state_inconsistency(
        conversation_id: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_INCONSISTENCY,
            severity=AuditSeverity.ERROR,
            conversation_id=conversation_id,
            description="Session was inconsistent and has been reset",
            error_message=error_message,
        )

    @staticmethod
    def notification_failed(
        conversation_id: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_FAILED,
            severity=AuditSeverity.ERROR,
            conversation_id=conversation_id,
            description="Could not deliver a reply",
            error_message=error_message,
        )
