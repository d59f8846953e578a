"""
Tests for two-stage record validation.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from finance_tracker.config import AppSettings
from finance_tracker.models.record import RecordDraft, RecordKind
from finance_tracker.validation import RecordValidator


@pytest.fixture
def validator():
    """Validator with default thresholds, independent of any .env file."""
    return RecordValidator(AppSettings(_env_file=None))


def draft(**overrides):
    fields = {
        "kind": RecordKind.EXPENSE,
        "amount": Decimal("25.50"),
        "label": "Food",
        "date": date(2025, 11, 28),
    }
    fields.update(overrides)
    return RecordDraft(**fields)


class TestSchemaValidation:
    """Tests for stage 1."""

    def test_complete_draft_is_valid(self, validator):
        """Test that a well-formed draft passes both stages."""
        result = validator.validate(draft())
        assert result.schema_valid is True
        assert result.semantic_valid is True
        assert result.is_valid is True
        assert result.issues == []

    def test_all_missing_fields_reported_at_once(self, validator):
        """Test that every missing field gets its own issue."""
        result = validator.validate(RecordDraft(kind=RecordKind.INCOME))
        assert result.schema_valid is False
        assert result.semantic_valid is False
        assert {issue.field for issue in result.issues} == {"amount", "source", "date"}
        assert result.error_count == 3

    def test_label_issue_uses_kind_field_name(self, validator):
        """Test that a saving without a goal is reported on 'goal'."""
        result = validator.validate(draft(kind=RecordKind.SAVING, label=None))
        assert [issue.field for issue in result.issues] == ["goal"]

    def test_zero_amount_rejected(self, validator):
        """Test that the amount must be strictly positive."""
        result = validator.validate(draft(amount=Decimal("0")))
        assert result.is_valid is False
        assert result.issues[0].issue_type == "invalid_value"

    def test_negative_amount_rejected(self, validator):
        """Test that negative amounts are rejected."""
        result = validator.validate(draft(amount=Decimal("-5")))
        assert result.is_valid is False

    def test_sub_cent_amount_rejected(self, validator):
        """Test that more than two decimal places are rejected."""
        result = validator.validate(draft(amount=Decimal("1.005")))
        assert result.is_valid is False
        assert result.issues[0].issue_type == "invalid_format"

    def test_trailing_zero_cents_accepted(self, validator):
        """Test that 25.500 is accepted since its value is whole cents."""
        result = validator.validate(draft(amount=Decimal("25.500")))
        assert result.is_valid is True
        assert result.issues == []


class TestSemanticValidation:
    """Tests for stage 2."""

    def test_far_future_date_is_a_warning(self, validator):
        """Test that a date beyond the tolerance warns but does not block."""
        result = validator.validate(draft(date=date.today() + timedelta(days=30)))
        assert result.is_valid is True
        assert len(result.warnings) == 1
        assert result.issues[0].issue_type == "future_date"

    def test_near_future_date_is_fine(self, validator):
        """Test that a date inside the tolerance is accepted silently."""
        result = validator.validate(draft(date=date.today() + timedelta(days=3)))
        assert result.warnings == []

    def test_huge_amount_is_a_warning(self, validator):
        """Test that an absurd amount warns but does not block."""
        result = validator.validate(draft(amount=Decimal("5000000")))
        assert result.is_valid is True
        assert result.issues[0].issue_type == "suspicious_value"

    def test_long_label_is_an_error(self, validator):
        """Test that labels over 100 characters are rejected."""
        result = validator.validate(draft(label="x" * 101))
        assert result.schema_valid is True
        assert result.semantic_valid is False
        assert result.issues[0].field == "category"

    def test_thresholds_come_from_settings(self):
        """Test that the amount threshold is configurable."""
        validator = RecordValidator(AppSettings(_env_file=None, max_record_amount=100.0))
        result = validator.validate(draft(amount=Decimal("150")))
        assert len(result.warnings) == 1


class TestUserFriendlySummary:
    """Tests for the plain-text summary."""

    def test_summary_when_valid(self, validator):
        """Test the all-clear message."""
        result = validator.validate(draft())
        assert validator.get_user_friendly_summary(result) == "All checks passed."

    def test_summary_lists_errors_and_fixes(self, validator):
        """Test that errors come with their suggested fixes."""
        result = validator.validate(draft(amount=None))
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("Please fix the following:")
        assert "Amount is required" in summary
        assert "Enter how much money this was" in summary

    def test_summary_lists_warnings(self, validator):
        """Test that warnings are listed separately."""
        result = validator.validate(draft(amount=Decimal("5000000")))
        summary = validator.get_user_friendly_summary(result)
        assert "Please double-check:" in summary
        assert "Please fix" not in summary


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
