"""
In-Memory Ledger Storage

Used by tests and by ephemeral runs where nothing should touch the disk.
Behaves like the file ledger: copies go in and out, nothing is shared
with the caller.
"""

from typing import Iterable

from expense_agent.models.expense import ExpenseRecord
from expense_agent.services.storage.interface import (
    ClearOutcome,
    LedgerIOError,
    LedgerStorageInterface,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """
    List-backed ledger.

    Set `fail_writes` / `fail_reads` to simulate an unwritable or
    unreadable medium.
    """

    def __init__(self, records: Iterable[ExpenseRecord] = ()):
        self._records = list(records)
        self.fail_reads = False
        self.fail_writes = False

    def read_all(self) -> list[ExpenseRecord]:
        if self.fail_reads:
            raise LedgerIOError("in-memory ledger: reads disabled")
        return list(self._records)

    def append(self, record: ExpenseRecord) -> None:
        self._check_writable()
        self._records.append(record)

    def rewrite_all(self, records: Iterable[ExpenseRecord]) -> None:
        self._check_writable()
        self._records = list(records)

    def clear(self) -> ClearOutcome:
        self._check_writable()
        if not self._records:
            return ClearOutcome.ALREADY_EMPTY
        self._records = []
        return ClearOutcome.REMOVED

    def _check_writable(self) -> None:
        if self.fail_writes:
            raise LedgerIOError("in-memory ledger: writes disabled")
