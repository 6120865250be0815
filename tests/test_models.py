"""
Tests for Expense Agent models

Test strategy:
1. Unit tests for individual components (models, parser, storage, reports)
2. Conversation tests against an in-memory ledger and a fake transport
3. No real network or clock in tests
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import TypeAdapter, ValidationError

from expense_agent.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from expense_agent.models.expense import (
    ExpenseRecord,
    ParsedExpense,
    PendingCommit,
    quantize_money,
    utc_now,
)
from expense_agent.models.session import (
    AwaitingCategoryConfirmation,
    AwaitingClearConfirmation,
    AwaitingExpenseConfirmation,
    SessionState,
)


TS = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


class TestExpenseRecord:
    """Tests for the ledger record model."""

    def test_defaults_to_other_category(self):
        """A record without a category is "Other"."""
        record = ExpenseRecord(timestamp=TS, value=Decimal("10"), description="pizza")
        assert record.category == "Other"
        assert record.is_uncategorized is True
        assert record.record_id is None

    def test_value_is_rounded_to_cents(self):
        """Values are quantized to two decimal places."""
        record = ExpenseRecord(timestamp=TS, value=Decimal("25.5"), description="x")
        assert record.value == Decimal("25.50")
        assert str(record.value) == "25.50"

    def test_rejects_non_positive_value(self):
        """Zero and negative amounts are invalid."""
        with pytest.raises(ValidationError):
            ExpenseRecord(timestamp=TS, value=Decimal("0"), description="x")
        with pytest.raises(ValidationError):
            ExpenseRecord(timestamp=TS, value=Decimal("-3"), description="x")

    def test_rejects_value_rounding_to_zero(self):
        """Positivity is checked after rounding to cents."""
        with pytest.raises(ValidationError):
            ExpenseRecord(timestamp=TS, value=Decimal("0.004"), description="x")
        with pytest.raises(ValidationError):
            ParsedExpense(value=Decimal("0.001"), description="x")

    def test_rejects_empty_description(self):
        with pytest.raises(ValidationError):
            ExpenseRecord(timestamp=TS, value=Decimal("1"), description="")

    def test_naive_timestamp_is_utc(self):
        """Naive timestamps are interpreted as UTC."""
        record = ExpenseRecord(
            timestamp=datetime(2026, 1, 1, 8, 0),
            value=Decimal("1"),
            description="x",
        )
        assert record.timestamp.tzinfo == timezone.utc

    def test_records_are_frozen(self):
        """Records cannot be mutated in place."""
        record = ExpenseRecord(timestamp=TS, value=Decimal("1"), description="x")
        with pytest.raises(ValidationError):
            record.category = "Food"

    def test_category_update_via_copy(self):
        record = ExpenseRecord(timestamp=TS, value=Decimal("1"), description="x")
        updated = record.model_copy(update={"category": "Food"})
        assert updated.category == "Food"
        assert record.category == "Other"


class TestHelpers:
    def test_quantize_money_rounds_half_up(self):
        assert quantize_money(Decimal("1.005")) == Decimal("1.01")
        assert quantize_money(Decimal("2")) == Decimal("2.00")

    def test_utc_now_has_millisecond_precision(self):
        now = utc_now()
        assert now.tzinfo == timezone.utc
        assert now.microsecond % 1000 == 0


class TestParsedExpense:
    def test_strips_description(self):
        parsed = ParsedExpense(value=Decimal("3"), description="  cinema  ")
        assert parsed.description == "cinema"
        assert parsed.value == Decimal("3.00")

    def test_blank_description_rejected(self):
        with pytest.raises(ValidationError):
            ParsedExpense(value=Decimal("3"), description="   ")


class TestPendingCommit:
    """Tests for matching a pending commit to a ledger record."""

    def test_matches_by_record_id(self):
        record = ExpenseRecord(
            timestamp=TS, value=Decimal("10"), description="cinema", record_id="abc"
        )
        commit = PendingCommit.from_record(record, "Entertainment")
        assert commit.suggested_category == "Entertainment"
        assert commit.matches(record)

        same_fields_other_id = record.model_copy(update={"record_id": "xyz"})
        assert not commit.matches(same_fields_other_id)

    def test_legacy_record_matches_by_fields(self):
        """Records without an id fall back to timestamp/value/description."""
        record = ExpenseRecord(timestamp=TS, value=Decimal("10"), description="cinema")
        commit = PendingCommit(
            record_id="abc",
            timestamp=TS,
            value=Decimal("10.00"),
            description="cinema",
            suggested_category="Entertainment",
        )
        assert commit.matches(record)
        assert not commit.matches(record.model_copy(update={"description": "filme"}))


class TestSessionStates:
    """Tests for the session tagged union."""

    def test_discriminator_selects_variant(self):
        adapter = TypeAdapter(SessionState)
        state = adapter.validate_python({"kind": "clear_confirm"})
        assert isinstance(state, AwaitingClearConfirmation)

        state = adapter.validate_python({
            "kind": "expense_confirm",
            "value": "25.50",
            "description": "cinema",
            "suggested_category": "Entertainment",
        })
        assert isinstance(state, AwaitingExpenseConfirmation)
        assert state.value == Decimal("25.50")

    def test_unknown_kind_is_rejected(self):
        adapter = TypeAdapter(SessionState)
        with pytest.raises(ValidationError):
            adapter.validate_python({"kind": "something_else"})

    def test_category_confirmation_requires_commit(self):
        """A category confirmation cannot exist without its pending commit."""
        with pytest.raises(ValidationError):
            AwaitingCategoryConfirmation()


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_SAVED,
            description="Expense saved",
        )
        assert event.event_type == AuditEventType.EXPENSE_SAVED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        event = AuditEventBuilder.expense_saved(
            conversation_id="chat-1",
            record_id="abc",
            value="25.50",
            description="cinema",
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "expense_saved"
        assert log_dict["conversation_id"] == "chat-1"
        assert log_dict["details"]["value"] == "25.50"
        assert log_dict["is_user_action"] is True

    def test_storage_error_event_type_depends_on_operation(self):
        append = AuditEventBuilder.storage_error("c", "append", "disk full")
        rewrite = AuditEventBuilder.storage_error("c", "rewrite", "disk full")
        read = AuditEventBuilder.storage_error("c", "read", "disk full")
        assert append.event_type == AuditEventType.SAVE_FAILED
        assert rewrite.event_type == AuditEventType.CATEGORY_UPDATE_FAILED
        assert read.event_type == AuditEventType.STORAGE_ERROR
        assert append.severity == AuditSeverity.ERROR
        assert append.error_message == "disk full"

    def test_long_description_is_clipped(self):
        """A very long expense description must not break auditing."""
        event = AuditEventBuilder.expense_saved("c", "abc", "1.00", "x" * 2000)
        assert len(event.description) == 500
        assert event.description.endswith("...")

    def test_sessions_reset_severity(self):
        assert AuditEventBuilder.sessions_reset(0, "x").severity == AuditSeverity.INFO
        assert AuditEventBuilder.sessions_reset(2, "x").severity == AuditSeverity.WARNING


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
