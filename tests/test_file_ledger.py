"""
Tests for the plain-text ledger store.

All tests use pytest's tmp_path; nothing outside it is touched.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from expense_agent.models.expense import ExpenseRecord
from expense_agent.services.storage import (
    ClearOutcome,
    FileLedgerStorage,
    InMemoryLedgerStorage,
    LedgerIOError,
)
from expense_agent.services.storage.file_ledger import (
    escape_field,
    format_timestamp,
    parse_record,
    serialize_record,
    split_fields,
)


TS = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


def _record(description="cinema", value="25.50", category="Other", record_id=None, ts=TS):
    return ExpenseRecord(
        timestamp=ts,
        value=Decimal(value),
        description=description,
        category=category,
        record_id=record_id,
    )


@pytest.fixture
def ledger_path(tmp_path):
    return tmp_path / "gastos.txt"


@pytest.fixture
def ledger(ledger_path):
    return FileLedgerStorage(ledger_path)


class TestLineFormat:
    """Tests for serializing and parsing single ledger lines."""

    def test_timestamp_is_utc_with_milliseconds(self):
        assert format_timestamp(TS) == "2026-10-18T09:30:00.000Z"

    def test_serialize_record(self):
        line = serialize_record(_record())
        assert line == "2026-10-18T09:30:00.000Z;25.50;cinema;Other"

    def test_serialize_includes_record_id(self):
        line = serialize_record(_record(record_id="abc123"))
        assert line.endswith(";Other;abc123")

    def test_delimiter_in_description_is_escaped(self):
        """A ';' in a description cannot split the record."""
        line = serialize_record(_record(description="pão; queijo"))
        assert "pão\\; queijo" in line

        parsed = parse_record(line)
        assert parsed is not None
        assert parsed.description == "pão; queijo"
        assert parsed.category == "Other"

    def test_line_break_in_description_is_escaped(self):
        line = serialize_record(_record(description="linha1\nlinha2"))
        assert "\n" not in line
        assert parse_record(line).description == "linha1\nlinha2"

    def test_escape_and_split(self):
        assert escape_field("a\\b") == "a\\\\b"
        assert split_fields("a\\;b;c") == ["a;b", "c"]

    def test_unknown_escape_is_kept(self):
        assert split_fields("C:\\temp;x") == ["C:\\temp", "x"]

    def test_three_field_line_defaults_category(self):
        record = parse_record("2026-10-18T09:00:00.000Z;7;lanche")
        assert record is not None
        assert record.category == "Other"
        assert record.value == Decimal("7.00")
        assert record.record_id is None

    def test_empty_description_gets_placeholder(self):
        record = parse_record("2026-10-18T09:00:00.000Z;7;;Food")
        assert record.description == "No description"
        assert record.category == "Food"

    @pytest.mark.parametrize("line", [
        "garbage line",
        "2026-10-18T09:00:00.000Z;7",
        "not-a-date;5.00;desc;Other",
        "2026-10-18T09:00:00.000Z;abc;desc;Other",
        "2026-10-18T09:00:00.000Z;-5.00;desc;Other",
        "2026-10-18T09:00:00.000Z;0;desc;Other",
        "2026-10-18T09:00:00.000Z;NaN;desc;Other",
        "2026-10-18T09:00:00.000Z;0.004;chiclete;Other",
    ])
    def test_invalid_lines_are_rejected(self, line):
        assert parse_record(line) is None


class TestFileLedgerStorage:
    """Tests for FileLedgerStorage."""

    def test_missing_file_is_empty(self, ledger):
        assert ledger.read_all() == []
        assert ledger.is_empty()

    def test_append_then_read(self, ledger, ledger_path):
        ledger.append(_record(record_id="a1"))
        ledger.append(_record(description="padaria", value="12", category="Food"))

        records = ledger.read_all()
        assert [r.description for r in records] == ["cinema", "padaria"]
        assert records[0].record_id == "a1"
        assert records[1].value == Decimal("12.00")
        assert ledger_path.read_text(encoding="utf-8").endswith("\n")

    def test_append_after_missing_trailing_newline(self, ledger, ledger_path):
        """A hand-edited file without a final newline keeps lines apart."""
        ledger_path.write_text("2026-10-17T10:00:00.000Z;5.00;pizza;Food", encoding="utf-8")
        ledger.append(_record())

        lines = ledger_path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert len(ledger.read_all()) == 2

    def test_malformed_lines_are_skipped(self, ledger, ledger_path):
        """Garbage lines are ignored; valid lines around them survive."""
        ledger_path.write_text(
            "2026-10-17T10:00:00.000Z;10.00;padaria;Food\n"
            "garbage line\n"
            "\n"
            "2026-10-17T11:00:00.000Z;abc;broken;Other\n"
            "2026-10-18T09:00:00.000Z;7.00;lanche\r\n",
            encoding="utf-8",
        )

        records = ledger.read_all()
        assert [r.description for r in records] == ["padaria", "lanche"]
        assert sum(r.value for r in records) == Decimal("17.00")

    def test_sub_cent_line_is_skipped_and_not_rewritten(self, ledger, ledger_path):
        """An amount that rounds to zero is never read back as a record."""
        ledger_path.write_text(
            "2026-10-18T12:00:00.000Z;0.004;chiclete;Other\n"
            "2026-10-18T12:30:00.000Z;25.50;cinema;Other;abc\n",
            encoding="utf-8",
        )

        records = ledger.read_all()
        assert [r.description for r in records] == ["cinema"]
        assert all(r.value > 0 for r in records)

        ledger.rewrite_all([records[0].model_copy(update={"category": "Entertainment"})])

        assert ";0.00;" not in ledger_path.read_text(encoding="utf-8")
        assert [r.category for r in ledger.read_all()] == ["Entertainment"]

    def test_rewrite_round_trip_preserves_bytes(self, ledger, ledger_path):
        content = (
            "2026-10-17T10:00:00.000Z;12.50;padaria;Food;abc\n"
            "2026-10-18T09:30:00.000Z;25.50;cinema;Other\n"
        )
        ledger_path.write_text(content, encoding="utf-8")

        ledger.rewrite_all(ledger.read_all())

        assert ledger_path.read_text(encoding="utf-8") == content

    def test_rewrite_empty_list_leaves_empty_file(self, ledger, ledger_path):
        ledger.append(_record())
        ledger.rewrite_all([])
        assert ledger_path.exists()
        assert ledger_path.read_text(encoding="utf-8") == ""
        assert ledger.read_all() == []

    def test_rewrite_leaves_no_temp_files(self, ledger, tmp_path):
        ledger.append(_record())
        ledger.rewrite_all(ledger.read_all())
        assert [p.name for p in tmp_path.iterdir()] == ["gastos.txt"]

    def test_clear_removes_then_reports_empty(self, ledger, ledger_path):
        ledger.append(_record())

        assert ledger.clear() == ClearOutcome.REMOVED
        assert not ledger_path.exists()
        assert ledger.clear() == ClearOutcome.ALREADY_EMPTY

    def test_clear_blank_file_is_already_empty(self, ledger, ledger_path):
        ledger_path.write_text("\n\n", encoding="utf-8")
        assert ledger.clear() == ClearOutcome.ALREADY_EMPTY

    def test_io_failures_raise_ledger_io_error(self, tmp_path):
        """A path that cannot hold a file surfaces as LedgerIOError."""
        directory = tmp_path / "not-a-file"
        directory.mkdir()
        ledger = FileLedgerStorage(directory)

        with pytest.raises(LedgerIOError):
            ledger.read_all()
        with pytest.raises(LedgerIOError):
            ledger.append(_record())
        with pytest.raises(LedgerIOError):
            ledger.rewrite_all([_record()])


class TestInMemoryLedgerStorage:
    """Tests for the in-memory double."""

    def test_read_returns_copy(self):
        storage = InMemoryLedgerStorage([_record()])
        storage.read_all().clear()
        assert len(storage.read_all()) == 1

    def test_failure_switches(self):
        storage = InMemoryLedgerStorage()
        storage.fail_writes = True
        with pytest.raises(LedgerIOError):
            storage.append(_record())
        storage.fail_reads = True
        with pytest.raises(LedgerIOError):
            storage.read_all()

    def test_clear_outcomes(self):
        storage = InMemoryLedgerStorage([_record()])
        assert storage.clear() == ClearOutcome.REMOVED
        assert storage.clear() == ClearOutcome.ALREADY_EMPTY
