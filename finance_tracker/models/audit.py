"""
Audit Models for the Finance Tracker

Every record mutation and every insight computation is logged for audit
purposes. This provides:
1. Traceability of who changed which record, and when
2. Debugging information when stored data turns out to be malformed
3. A history the owner can inspect

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import datetime as dt
import json
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Record lifecycle
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    VALIDATION_FAILED = "validation_failed"

    # Insights
    DASHBOARD_GENERATED = "dashboard_generated"
    PREDICTION_GENERATED = "prediction_generated"

    # Errors
    DATA_ERROR = "data_error"
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - which owner and which record is this about?
    owner_id: Optional[str] = Field(
        default=None,
        description="Owner whose ledger the event touched"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'dashboard')"
    )
    entity_id: Optional[UUID] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one request"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "owner_id": self.owner_id,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, owner_id, entity_type,
         entity_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.owner_id or "",
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created(record, correlation_id)
        event = AuditEventBuilder.data_error(owner_id, error, correlation_id)
    """

    @staticmethod
    def record_created(record, correlation_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            owner_id=record.owner_id,
            entity_type=record.kind,
            entity_id=record.id,
            correlation_id=correlation_id,
            description=f"{record.kind.capitalize()} recorded: {record.label}",
            details={
                "amount": str(record.amount),
                "label": record.label,
                "date": record.date.isoformat(),
            },
            is_user_action=True,
        )

    @staticmethod
    def record_updated(record, correlation_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            owner_id=record.owner_id,
            entity_type=record.kind,
            entity_id=record.id,
            correlation_id=correlation_id,
            description=f"{record.kind.capitalize()} updated: {record.label}",
            details={
                "amount": str(record.amount),
                "label": record.label,
                "date": record.date.isoformat(),
            },
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(
        owner_id: str,
        record_id: UUID,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            owner_id=owner_id,
            entity_type="record",
            entity_id=record_id,
            correlation_id=correlation_id,
            description="Record deleted",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        owner_id: str,
        kind: str,
        issues: list[dict],
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            entity_type=kind,
            correlation_id=correlation_id,
            description=f"{kind.capitalize()} draft failed validation",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def dashboard_generated(
        owner_id: str,
        month: str,
        label: Optional[str],
        record_count: int,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DASHBOARD_GENERATED,
            owner_id=owner_id,
            entity_type="dashboard",
            correlation_id=correlation_id,
            description=f"Dashboard generated for month: {month}",
            details={
                "month": month,
                "label": label,
                "record_count": record_count,
            },
        )

    @staticmethod
    def prediction_generated(
        owner_id: str,
        categories: list[str],
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PREDICTION_GENERATED,
            owner_id=owner_id,
            entity_type="prediction",
            correlation_id=correlation_id,
            description=f"Predictions generated for {len(categories)} categories",
            details={"categories": categories},
        )

    @staticmethod
    def data_error(
        owner_id: Optional[str],
        record_id: Any,
        field: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_ERROR,
            severity=AuditSeverity.ERROR,
            owner_id=owner_id,
            entity_type="record",
            correlation_id=correlation_id,
            description=f"Malformed record field: {field}",
            details={"record_id": str(record_id), "field": field},
            error_message=error_message,
        )

    @staticmethod
    def storage_error(
        owner_id: Optional[str],
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Storage operation failed: {operation}",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
