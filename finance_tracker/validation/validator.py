"""
Two-Stage Record Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (amount, label, date)
- Amount strictly positive, at most two decimal places
- This catches incomplete or malformed form input

STAGE 2 - SEMANTIC VALIDATION:
- Future date detection
- Absurd amount detection
- Label length
- This catches logically suspicious data

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the user can correct the entry.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from finance_tracker.config import AppSettings, get_settings
from finance_tracker.models.record import (
    LABEL_FIELDS,
    RecordDraft,
    ValidationIssue,
    ValidationResult,
)


MAX_LABEL_LENGTH = 100
CENTS = Decimal("0.01")


class RecordValidator:
    """
    Validates record drafts through a two-stage pipeline.

    Stage 2 only runs when stage 1 passes.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        draft: RecordDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        label_field = LABEL_FIELDS[draft.kind]

        if draft.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
                suggested_fix="Enter how much money this was",
            ))
        elif draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter a positive amount",
            ))
        elif (
            draft.amount.as_tuple().exponent < -2
            and draft.amount != draft.amount.quantize(CENTS)
        ):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount can have at most two decimal places",
                severity="error",
                suggested_fix="Round the amount to cents",
            ))

        if not draft.label:
            issues.append(ValidationIssue(
                field=label_field,
                issue_type="missing",
                message=f"A {label_field} is required",
                severity="error",
                suggested_fix=f"Pick or type a {label_field}",
            ))

        if draft.date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
                suggested_fix="Pick the date this happened",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_semantic(
        self,
        draft: RecordDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        today = date.today()

        # Future date check (with tolerance)
        max_future_days = self._settings.future_date_tolerance_days
        max_future_date = today + timedelta(days=max_future_days)

        if draft.date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({draft.date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        # Absurd amount check
        max_amount = Decimal(str(self._settings.max_record_amount))
        if draft.amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({draft.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if len(draft.label) > MAX_LABEL_LENGTH:
            label_field = LABEL_FIELDS[draft.kind]
            issues.append(ValidationIssue(
                field=label_field,
                issue_type="too_long",
                message=f"The {label_field} is longer than {MAX_LABEL_LENGTH} characters",
                severity="error",
                suggested_fix=f"Use a shorter {label_field}",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate(self, draft: RecordDraft) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            draft: The record draft to validate

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(draft)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(draft)
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Plain-text summary of validation results for the entry form."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   - {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     ({issue.suggested_fix})")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please double-check:")
            for warning in result.warnings:
                lines.append(f"   - {warning}")

        return "\n".join(lines)
