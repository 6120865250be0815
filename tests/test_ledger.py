"""
Tests for LedgerBook: committing expenses and applying categories.
"""

from datetime import datetime, timezone
from decimal import Decimal

from expense_agent.ledger import LedgerBook, find_pending_record
from expense_agent.models.expense import PendingCommit
from expense_agent.services.storage import ClearOutcome, FileLedgerStorage


TS = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


class TestLedgerBook:
    def test_record_expense_is_uncategorized(self, storage):
        book = LedgerBook(storage)
        record = book.record_expense(Decimal("25.50"), "cinema", TS)

        assert record.category == "Other"
        assert record.record_id
        assert storage.read_all() == [record]

    def test_apply_category_updates_once(self, storage):
        book = LedgerBook(storage)
        record = book.record_expense(Decimal("25.50"), "cinema", TS)
        commit = PendingCommit.from_record(record, "Entertainment")

        assert book.apply_category(commit) is True
        assert book.apply_category(commit) is False
        assert storage.read_all()[0].category == "Entertainment"

    def test_apply_category_on_file_ledger(self, tmp_path):
        book = LedgerBook(FileLedgerStorage(tmp_path / "gastos.txt"))
        first = book.record_expense(Decimal("10"), "padaria", TS)
        second = book.record_expense(Decimal("20"), "uber", TS)

        assert book.apply_category(PendingCommit.from_record(second, "Transport"))

        records = book.records()
        assert [r.record_id for r in records] == [first.record_id, second.record_id]
        assert [r.category for r in records] == ["Other", "Transport"]

    def test_clear(self, storage):
        book = LedgerBook(storage)
        book.record_expense(Decimal("1"), "x", TS)
        assert book.clear() == ClearOutcome.REMOVED
        assert book.is_empty()


class TestFindPendingRecord:
    def test_legacy_duplicates_pick_newest(self, record_factory):
        """Lines without an id are matched by fields, newest first."""
        records = [
            record_factory(TS, "5", "cafe"),
            record_factory(TS, "5", "cafe"),
        ]
        commit = PendingCommit(
            record_id="gone",
            timestamp=TS,
            value=Decimal("5"),
            description="cafe",
            suggested_category="Food",
        )
        assert find_pending_record(records, commit) == 1

    def test_categorized_records_are_skipped(self, record_factory):
        records = [record_factory(TS, "5", "cafe", category="Food", record_id="a")]
        commit = PendingCommit(
            record_id="a",
            timestamp=TS,
            value=Decimal("5"),
            description="cafe",
            suggested_category="Food",
        )
        assert find_pending_record(records, commit) is None
