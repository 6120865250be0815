"""
Audit Logger

DESIGN DECISION: Every significant action in a conversation is logged.
This provides:
1. Complete traceability of ledger mutations
2. Debugging capability
3. A history the user can be shown on request

The audit logger:
- Is async so it composes with the conversation handlers
- Gracefully handles failures (doesn't crash the bot if logging fails)
- Always logs locally, and persists when a storage backend is given
"""

import logging
import sys
from typing import Optional

import structlog

from expense_agent.models.audit import AuditEvent, AuditEventBuilder
from expense_agent.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route stdlib logging (and therefore structlog) to stderr.

    Call once from the entry point.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Persist to storage if available
        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_storage_error(
        self,
        conversation_id: str,
        operation: str,
        error_message: str,
    ) -> None:
        """Log a failed ledger operation."""
        event = AuditEventBuilder.storage_error(
            conversation_id=conversation_id,
            operation=operation,
            error_message=error_message,
        )
        await self.log(event)

    async def log_notification_failed(
        self,
        conversation_id: str,
        error_message: str,
    ) -> None:
        """Log a reply that could not be delivered."""
        event = AuditEventBuilder.notification_failed(
            conversation_id=conversation_id,
            error_message=error_message,
        )
        await self.log(event)

    async def log_sessions_reset(self, dropped: int, reason: str) -> None:
        """Log a wholesale session reset."""
        event = AuditEventBuilder.sessions_reset(dropped=dropped, reason=reason)
        await self.log(event)
