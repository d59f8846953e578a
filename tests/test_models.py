"""
Tests for the Finance Tracker

Test strategy:
1. Unit tests for individual components (models, engines, validators)
2. Integration tests for flows (with in-memory storage)
3. No real API calls in tests (Google Sheets is faked)
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from finance_tracker.models.record import (
    DataError,
    ExpenseRecord,
    IncomeRecord,
    RecordDraft,
    RecordKind,
    SavingRecord,
    ValidationIssue,
    ValidationResult,
    parse_record,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestRecordModels:
    """Tests for the record variants."""

    def test_expense_record_creation(self):
        """Test ExpenseRecord model creation."""
        record = ExpenseRecord(
            owner_id="user-1",
            amount=Decimal("25.50"),
            category="Food",
            date=date(2025, 11, 28),
        )
        assert record.kind == "expense"
        assert record.label == "Food"
        assert record.description is None
        assert record.id is not None

    def test_each_kind_exposes_its_label(self):
        """Test that category, source and goal all surface as label."""
        income = IncomeRecord(
            owner_id="user-1", amount=Decimal("3000"), source="Salary", date=date(2025, 1, 1)
        )
        saving = SavingRecord(
            owner_id="user-1", amount=Decimal("200"), goal="Vacation", date=date(2025, 1, 1)
        )
        assert income.label == "Salary"
        assert saving.label == "Vacation"

    def test_stored_label_is_kept_exactly(self):
        """Test that a record keeps its label's surrounding whitespace."""
        record = ExpenseRecord(
            owner_id="user-1", amount=Decimal("5"), category="  Food  ", date=date(2025, 1, 1)
        )
        assert record.category == "  Food  "

    def test_record_requires_owner(self):
        """Test that an empty owner is rejected."""
        with pytest.raises(ValueError):
            ExpenseRecord(
                owner_id="", amount=Decimal("5"), category="Food", date=date(2025, 1, 1)
            )

    def test_record_rejects_non_finite_amount(self):
        """Test that NaN amounts are rejected."""
        with pytest.raises(ValueError):
            ExpenseRecord(
                owner_id="user-1",
                amount=Decimal("NaN"),
                category="Food",
                date=date(2025, 1, 1),
            )


class TestParseRecord:
    """Tests for building records from raw store rows."""

    def test_parse_expense_row(self):
        """Test parsing a stored expense row."""
        record_id = uuid4()
        record = parse_record({
            "id": str(record_id),
            "owner_id": "user-1",
            "amount": "18.25",
            "category": "Food",
            "date": "2025-11-30",
            "description": "",
            "kind": "expense",
        })
        assert isinstance(record, ExpenseRecord)
        assert record.id == record_id
        assert record.amount == Decimal("18.25")
        assert record.date == date(2025, 11, 30)
        assert record.description is None

    def test_parse_keeps_label_whitespace(self):
        """Test that labels read from a store are not trimmed."""
        record = parse_record(
            {"owner_id": "user-1", "amount": "5", "label": " Food", "date": "2025-01-01"},
            kind=RecordKind.EXPENSE,
        )
        assert record.category == " Food"

    def test_parse_keeps_non_positive_amount(self):
        """Test that a stored zero or negative amount is read as stored."""
        record = parse_record(
            {"owner_id": "user-1", "amount": "-5.00", "label": "Refund", "date": "2025-01-01"},
            kind=RecordKind.EXPENSE,
        )
        assert record.amount == Decimal("-5.00")

    def test_parse_generic_label_column(self):
        """Test that a generic label column maps to the kind's label field."""
        record = parse_record(
            {"owner_id": "user-1", "amount": "3000", "label": "Salary", "date": "2025-01-01"},
            kind=RecordKind.INCOME,
        )
        assert isinstance(record, IncomeRecord)
        assert record.source == "Salary"

    def test_parse_bad_amount_raises_data_error(self):
        """Test that a non-numeric amount names the amount field."""
        record_id = str(uuid4())
        with pytest.raises(DataError) as exc_info:
            parse_record(
                {"id": record_id, "owner_id": "user-1", "amount": "lots", "label": "Food",
                 "date": "2025-01-01"},
                kind=RecordKind.EXPENSE,
            )
        assert exc_info.value.field == "amount"
        assert exc_info.value.record_id == record_id

    def test_parse_bad_date_raises_data_error(self):
        """Test that a non-calendar date names the date field."""
        with pytest.raises(DataError) as exc_info:
            parse_record(
                {"owner_id": "user-1", "amount": "5", "label": "Food", "date": "2025-13-45"},
                kind=RecordKind.EXPENSE,
            )
        assert exc_info.value.field == "date"

    def test_parse_missing_label_raises_data_error(self):
        """Test that a missing label names the kind's label field."""
        with pytest.raises(DataError) as exc_info:
            parse_record(
                {"owner_id": "user-1", "amount": "5", "date": "2025-01-01"},
                kind=RecordKind.SAVING,
            )
        assert exc_info.value.field == "goal"

    def test_parse_unknown_kind_raises_data_error(self):
        """Test that an unknown kind is reported on the kind field."""
        with pytest.raises(DataError) as exc_info:
            parse_record(
                {"owner_id": "user-1", "amount": "5", "label": "Food",
                 "date": "2025-01-01", "kind": "loan"},
            )
        assert exc_info.value.field == "kind"


class TestRecordDraft:
    """Tests for draft-to-record conversion."""

    def test_to_record_builds_variant(self):
        """Test that a complete draft becomes the right record variant."""
        draft = RecordDraft(
            kind=RecordKind.SAVING,
            amount=Decimal("100"),
            label="Emergency fund",
            date=date(2025, 2, 1),
        )
        record = draft.to_record("user-1")
        assert isinstance(record, SavingRecord)
        assert record.goal == "Emergency fund"
        assert record.owner_id == "user-1"

    def test_draft_strips_whitespace(self):
        """Test that whitespace is stripped from user input."""
        draft = RecordDraft(
            kind=RecordKind.EXPENSE,
            amount=Decimal("5"),
            label="  Food  ",
            date=date(2025, 1, 1),
        )
        assert draft.label == "Food"
        assert draft.to_record("user-1").category == "Food"

    def test_to_record_keeps_given_id(self):
        """Test that an explicit record id is kept."""
        record_id = uuid4()
        draft = RecordDraft(
            kind=RecordKind.EXPENSE,
            amount=Decimal("10"),
            label="Food",
            date=date(2025, 2, 1),
        )
        assert draft.to_record("user-1", record_id=record_id).id == record_id

    def test_incomplete_draft_cannot_become_record(self):
        """Test that a draft without a date is refused."""
        draft = RecordDraft(kind=RecordKind.EXPENSE, amount=Decimal("10"), label="Food")
        with pytest.raises(ValueError, match="incomplete"):
            draft.to_record("user-1")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            description="Expense recorded",
        )
        assert event.event_type == AuditEventType.RECORD_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.DASHBOARD_GENERATED,
            owner_id="user-1",
            description="Dashboard generated",
            details={"month": "all", "record_count": 3},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "dashboard_generated"
        assert log_dict["owner_id"] == "user-1"
        assert log_dict["details"]["record_count"] == 3

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            owner_id="user-1",
            description="Record deleted",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 12  # Expected number of columns
        assert row[2] == "record_deleted"  # event_type
        assert row[4] == "user-1"  # owner_id
        assert row[11] == "True"  # is_user_action

    def test_audit_event_builder_record_created(self):
        """Test AuditEventBuilder.record_created."""
        correlation_id = uuid4()
        record = ExpenseRecord(
            owner_id="user-1", amount=Decimal("12.00"), category="Transport",
            date=date(2025, 3, 4),
        )

        event = AuditEventBuilder.record_created(record, correlation_id)

        assert event.event_type == AuditEventType.RECORD_CREATED
        assert event.entity_type == "expense"
        assert event.entity_id == record.id
        assert event.correlation_id == correlation_id
        assert event.details["amount"] == "12.00"
        assert event.is_user_action is True

    def test_audit_event_builder_data_error(self):
        """Test AuditEventBuilder.data_error."""
        event = AuditEventBuilder.data_error(
            owner_id="user-1",
            record_id="r-9",
            field="amount",
            error_message="not a number",
            correlation_id=None,
        )

        assert event.event_type == AuditEventType.DATA_ERROR
        assert event.severity == AuditSeverity.ERROR
        assert event.details == {"record_id": "r-9", "field": "amount"}
        assert event.is_user_action is False


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            schema_valid=False,
            semantic_valid=False,
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            schema_valid=True,
            semantic_valid=True,
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0


class TestRecordKinds:
    """Tests for the record kind enum."""

    def test_all_kinds_exist(self):
        """Test that expected kinds exist."""
        for kind in ["expense", "income", "saving"]:
            assert RecordKind(kind) is not None

    def test_kind_values(self):
        """Test kind string values."""
        assert RecordKind.EXPENSE.value == "expense"
        assert RecordKind.SAVING.value == "saving"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
