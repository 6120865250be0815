"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the plain-text ledger file the users already know
2. Use in-memory storage for testing
3. Swap in a database later without touching the conversation logic

The interface is intentionally tiny - the ledger is append-only, and the
only other mutations are "rewrite everything" (category correction) and
"delete everything" (/clear).

Ledger I/O is synchronous and bounded by the medium's latency.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable

from expense_agent.models.audit import AuditEvent
from expense_agent.models.expense import ExpenseRecord


class ClearOutcome(str, Enum):
    """What `clear()` found when it ran."""
    REMOVED = "removed"
    ALREADY_EMPTY = "already_empty"


class LedgerStorageInterface(ABC):
    """
    Abstract interface for the expense ledger.

    Any storage implementation (text file, in-memory, database...)
    must implement these methods. Implementations must not cache:
    every `read_all` reflects the medium at call time.
    """

    @abstractmethod
    def read_all(self) -> list[ExpenseRecord]:
        """
        Read every record in append order.

        Returns:
            All valid records. An absent or empty store yields [].
            Corrupt entries are skipped, never reported as errors.

        Raises:
            LedgerIOError: If the medium cannot be read
        """
        pass

    @abstractmethod
    def append(self, record: ExpenseRecord) -> None:
        """
        Append one record.

        A failure must not leave a partially written record behind.

        Raises:
            LedgerIOError: If the medium is unwritable
        """
        pass

    @abstractmethod
    def rewrite_all(self, records: Iterable[ExpenseRecord]) -> None:
        """
        Replace the whole store with `records`, in the given order.

        Raises:
            LedgerIOError: If the medium fails
        """
        pass

    @abstractmethod
    def clear(self) -> ClearOutcome:
        """
        Remove every record.

        Returns:
            REMOVED if there was something to delete, ALREADY_EMPTY otherwise

        Raises:
            LedgerIOError: If the medium fails
        """
        pass

    def is_empty(self) -> bool:
        return not self.read_all()


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_conversation(
        self,
        conversation_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for one conversation, in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class LedgerIOError(StorageError):
    """The ledger medium could not be read or written."""
    pass
