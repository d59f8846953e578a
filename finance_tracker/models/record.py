"""
Core Data Models for the Finance Tracker

These models define the strict schemas for every ledger record.
They are designed to:
1. Enforce type safety at runtime
2. Give each record kind its own shape (category, source or goal)
3. Turn malformed stored rows into a typed DataError naming the bad field
4. Be serializable for storage and logging

DESIGN DECISION: A record is a tagged variant keyed on `kind`.
Expenses carry a category, income carries a source and savings carry a goal.
All three expose the same value as `label`, which is the grouping key the
analytics engines work with.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Mapping, Optional, Union
from uuid import UUID, uuid4

import structlog
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)


logger = structlog.get_logger(__name__)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class RecordKind(str, Enum):
    """The three kinds of ledger records."""
    EXPENSE = "expense"
    INCOME = "income"
    SAVING = "saving"


# Name of the label field on each record variant
LABEL_FIELDS = {
    RecordKind.EXPENSE: "category",
    RecordKind.INCOME: "source",
    RecordKind.SAVING: "goal",
}


# =============================================================================
# ERRORS
# =============================================================================

class DataError(Exception):
    """
    A record is present but malformed.

    Raised when an amount is not a finite number, a date is not a calendar
    date, or a required field is missing. Never raised for empty input.
    """

    def __init__(
        self,
        record_id: Any,
        field: str,
        message: Optional[str] = None,
    ):
        self.record_id = record_id
        self.field = field
        self.message = message or f"invalid {field}"
        super().__init__(f"Malformed record {record_id}: {field}: {self.message}")


# =============================================================================
# RECORD MODELS
# =============================================================================

class _RecordBase(BaseModel):
    """
    Fields shared by every record kind.

    Stored values are kept exactly as given; labels differing only in
    whitespace are distinct. Trimming happens on RecordDraft.
    """

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID, immutable"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="User who owns the record, immutable"
    )

    amount: Decimal = Field(
        ...,
        allow_inf_nan=False,
        description="Currency amount; positive for anything entered by a user"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the record"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Free text, no role in aggregation"
    )

    # Timestamps
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)


class ExpenseRecord(_RecordBase):
    """Money spent, grouped by category."""

    kind: Literal["expense"] = "expense"
    category: str = Field(..., min_length=1)

    @property
    def label(self) -> str:
        return self.category


class IncomeRecord(_RecordBase):
    """Money earned, grouped by source."""

    kind: Literal["income"] = "income"
    source: str = Field(..., min_length=1)

    @property
    def label(self) -> str:
        return self.source


class SavingRecord(_RecordBase):
    """Money put aside, grouped by goal."""

    kind: Literal["saving"] = "saving"
    goal: str = Field(..., min_length=1)

    @property
    def label(self) -> str:
        return self.goal


Record = Annotated[
    Union[ExpenseRecord, IncomeRecord, SavingRecord],
    Field(discriminator="kind"),
]

RECORD_MODELS = {
    RecordKind.EXPENSE: ExpenseRecord,
    RecordKind.INCOME: IncomeRecord,
    RecordKind.SAVING: SavingRecord,
}

_record_adapter = TypeAdapter(Record)


def parse_record(
    row: Mapping[str, Any],
    kind: Optional[RecordKind] = None,
) -> Record:
    """
    Build a Record from a raw mapping, as read from a store.

    Empty strings count as absent. A generic `label` key is accepted in place
    of the kind's own label field.
    Non-positive amounts are kept as stored and logged once here.

    Raises:
        DataError: naming the record id and the first offending field
    """
    data = {key: value for key, value in row.items() if value not in ("", None)}
    if kind is not None:
        data["kind"] = kind

    record_id = data.get("id")

    try:
        record_kind = RecordKind(data.get("kind"))
    except ValueError:
        record_kind = None  # the discriminator check below reports the bad kind
    else:
        data["kind"] = record_kind.value

    if "label" in data:
        label = data.pop("label")
        if record_kind is not None:
            data.setdefault(LABEL_FIELDS[record_kind], label)

    try:
        record = _record_adapter.validate_python(data)
    except ValidationError as e:
        error = e.errors()[0]
        field = "kind"
        kind_tags = {k.value for k in RecordKind}
        for part in reversed(error["loc"]):
            if isinstance(part, str) and part not in kind_tags:
                field = part
                break
        raise DataError(record_id, field, error["msg"]) from e

    if record.amount <= 0:
        logger.warning(
            "non_positive_amount",
            record_id=str(record.id),
            amount=str(record.amount),
        )
    return record


# =============================================================================
# INPUT MODEL
# =============================================================================

class RecordDraft(BaseModel):
    """
    A record as entered by a user, before validation.

    CRITICAL: This is PROPOSED data, NOT verified.
    All value fields are optional so the validator can report every
    problem at once instead of failing on the first.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    kind: RecordKind
    amount: Optional[Decimal] = Field(default=None, allow_inf_nan=False)
    label: Optional[str] = None
    date: Optional[dt.date] = None
    description: Optional[str] = Field(default=None, max_length=1000)

    def to_record(
        self,
        owner_id: str,
        record_id: Optional[UUID] = None,
    ) -> Record:
        """Build the record variant for this draft's kind."""
        if self.amount is None or not self.label or self.date is None:
            raise ValueError("Draft is incomplete; validate it before saving")

        fields = {
            "owner_id": owner_id,
            "amount": self.amount,
            "date": self.date,
            "description": self.description or None,
            LABEL_FIELDS[self.kind]: self.label,
        }
        if record_id is not None:
            fields["id"] = record_id
        return RECORD_MODELS[self.kind](**fields)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (required fields, positive amount)
    Stage 2: Semantic validation (future dates, absurd amounts)
    """

    validated_at: dt.datetime = Field(default_factory=_utcnow)

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)

    # Warnings don't block but should be shown
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
