"""
Audit Logger

DESIGN DECISION: Every record mutation and insight computation is logged.
This provides:
1. Complete traceability of ledger changes
2. Debugging capability when stored data turns out malformed
3. Owners can see the history of their ledger

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace the events of one request
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_tracker.models.audit import AuditEvent, AuditEventBuilder
from finance_tracker.models.record import DataError, Record
from finance_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """Route the JSON log lines to stderr at the given level."""
    logging.basicConfig(format="%(message)s", level=log_level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_record_created(
        self,
        record: Record,
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.record_created(record, correlation_id))

    async def log_record_updated(
        self,
        record: Record,
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(AuditEventBuilder.record_updated(record, correlation_id))

    async def log_record_deleted(
        self,
        owner_id: str,
        record_id: UUID,
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(
            AuditEventBuilder.record_deleted(owner_id, record_id, correlation_id)
        )

    async def log_validation_failed(
        self,
        owner_id: str,
        kind: str,
        issues: list[dict],
        correlation_id: Optional[UUID],
    ) -> None:
        """Log a draft that was not saved because it failed validation."""
        await self.log(
            AuditEventBuilder.validation_failed(owner_id, kind, issues, correlation_id)
        )

    async def log_dashboard_generated(
        self,
        owner_id: str,
        month: str,
        label: Optional[str],
        record_count: int,
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(
            AuditEventBuilder.dashboard_generated(
                owner_id, month, label, record_count, correlation_id
            )
        )

    async def log_prediction_generated(
        self,
        owner_id: str,
        categories: list[str],
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(
            AuditEventBuilder.prediction_generated(owner_id, categories, correlation_id)
        )

    async def log_data_error(
        self,
        owner_id: Optional[str],
        error: DataError,
        correlation_id: Optional[UUID],
    ) -> None:
        """Log a malformed record found while reading a ledger."""
        await self.log(
            AuditEventBuilder.data_error(
                owner_id=owner_id,
                record_id=error.record_id,
                field=error.field,
                error_message=error.message,
                correlation_id=correlation_id,
            )
        )

    async def log_storage_error(
        self,
        owner_id: Optional[str],
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> None:
        await self.log(
            AuditEventBuilder.storage_error(
                owner_id, operation, error_message, correlation_id
            )
        )

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new request and pass it through all
    subsequent operations.
    """
    return uuid4()
