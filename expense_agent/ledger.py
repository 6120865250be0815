"""
Ledger Book

Thin layer over a `LedgerStorageInterface` that owns the two ledger
mutations the conversation can trigger:

1. Committing a confirmed expense (always as "Other")
2. Retroactively applying a confirmed category to that expense

The storage stays dumb; the matching rules live here.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

import structlog

from expense_agent.models.expense import (
    DEFAULT_CATEGORY,
    ExpenseRecord,
    PendingCommit,
    new_record_id,
)
from expense_agent.services.storage import ClearOutcome, LedgerStorageInterface


logger = structlog.get_logger(__name__)


def find_pending_record(
    records: list[ExpenseRecord],
    commit: PendingCommit,
) -> Optional[int]:
    """
    Index of the newest record that `commit` refers to and that still
    carries the default category, or None.
    """
    for index in range(len(records) - 1, -1, -1):
        record = records[index]
        if record.is_uncategorized and commit.matches(record):
            return index
    return None


class LedgerBook:
    """Commits expenses and category corrections to a ledger store."""

    def __init__(self, storage: LedgerStorageInterface):
        self._storage = storage

    @property
    def storage(self) -> LedgerStorageInterface:
        return self._storage

    def records(self) -> list[ExpenseRecord]:
        return self._storage.read_all()

    def is_empty(self) -> bool:
        return self._storage.is_empty()

    def record_expense(
        self,
        value: Decimal,
        description: str,
        timestamp: datetime,
    ) -> ExpenseRecord:
        """
        Append a confirmed expense with the default category.

        Raises:
            LedgerIOError: If the append fails (nothing is committed)
        """
        record = ExpenseRecord(
            timestamp=timestamp,
            value=value,
            description=description,
            category=DEFAULT_CATEGORY,
            record_id=new_record_id(),
        )
        self._storage.append(record)
        logger.info(
            "expense_recorded",
            record_id=record.record_id,
            value=str(record.value),
        )
        return record

    def apply_category(self, commit: PendingCommit) -> bool:
        """
        Set the suggested category on the record `commit` refers to.

        Only a record still labelled "Other" is touched, so applying the
        same commit twice updates at most once.

        Returns:
            True if a record was updated, False if none matched

        Raises:
            LedgerIOError: If reading or rewriting the ledger fails
        """
        records = self._storage.read_all()
        index = find_pending_record(records, commit)
        if index is None:
            logger.info("category_target_not_found", record_id=commit.record_id)
            return False

        records[index] = records[index].model_copy(
            update={"category": commit.suggested_category}
        )
        self._storage.rewrite_all(records)
        logger.info(
            "category_applied",
            record_id=commit.record_id,
            category=commit.suggested_category,
        )
        return True

    def clear(self) -> ClearOutcome:
        return self._storage.clear()
