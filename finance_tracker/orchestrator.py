"""
Main Orchestrator for the Finance Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Record entry (draft -> validate -> save -> audit)
2. Insights (fetch owner's ledger -> aggregate or predict -> audit)

DESIGN DECISION: The authenticated owner travels explicitly.
Every flow method takes a RequestContext built by the calling layer from
its verified credential. Nothing here reads a token or a current user from
module state, and the analytics engines never see credentials at all.
"""

from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, Field

from finance_tracker.analytics import build_dashboard, predict_next
from finance_tracker.audit import AuditLogger, configure_logging, create_correlation_id
from finance_tracker.config import AppSettings, get_settings, validate_all_settings
from finance_tracker.models.insights import DashboardView, Prediction
from finance_tracker.models.record import (
    DataError,
    Record,
    RecordDraft,
    RecordKind,
    ValidationIssue,
    ValidationResult,
)
from finance_tracker.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from finance_tracker.validation import RecordValidator


logger = structlog.get_logger(__name__)


class RequestContext(BaseModel):
    """The authenticated owner of one request, plus its correlation id."""
    model_config = ConfigDict(frozen=True)

    owner_id: str = Field(..., min_length=1)
    correlation_id: UUID = Field(default_factory=create_correlation_id)


async def _fetch_records(
    storage: LedgerStorageInterface,
    audit_logger: Optional[AuditLogger],
    ctx: RequestContext,
    kind: Optional[RecordKind] = None,
) -> list[Record]:
    """List the owner's records, auditing malformed data and backend failures."""
    try:
        return await storage.list_records(ctx.owner_id, kind)
    except DataError as e:
        if audit_logger:
            await audit_logger.log_data_error(ctx.owner_id, e, ctx.correlation_id)
        raise
    except StorageError as e:
        if audit_logger:
            await audit_logger.log_storage_error(
                ctx.owner_id, "list_records", str(e), ctx.correlation_id
            )
        raise


class LedgerFlow:
    """
    Orchestrates record entry and maintenance.

    Flow:
    1. Validate the draft (two stages)
    2. Build the record for the request's owner
    3. Save to storage
    4. Audit the outcome

    A draft that fails validation is never saved; the ValidationResult is
    returned so the caller can show the issues.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger

    async def _reject(
        self,
        ctx: RequestContext,
        draft: RecordDraft,
        result: ValidationResult,
    ) -> tuple[None, ValidationResult]:
        if self._audit_logger:
            issues = [
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in result.issues
            ]
            await self._audit_logger.log_validation_failed(
                owner_id=ctx.owner_id,
                kind=draft.kind.value,
                issues=issues,
                correlation_id=ctx.correlation_id,
            )
        return None, result

    async def _call(self, ctx: RequestContext, operation: str, coro):
        """Await a storage call, auditing any failure before re-raising it."""
        try:
            return await coro
        except DataError as e:
            if self._audit_logger:
                await self._audit_logger.log_data_error(
                    ctx.owner_id, e, ctx.correlation_id
                )
            raise
        except StorageError as e:
            if self._audit_logger and not isinstance(e, NotFoundError):
                await self._audit_logger.log_storage_error(
                    ctx.owner_id, operation, str(e), ctx.correlation_id
                )
            raise
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"operation": operation},
                    correlation_id=ctx.correlation_id,
                )
            raise

    async def add_record(
        self,
        ctx: RequestContext,
        draft: RecordDraft,
    ) -> tuple[Optional[Record], ValidationResult]:
        """
        Validate and save a new record for the request's owner.

        Returns:
            (saved_record, validation_result); saved_record is None when the
            draft failed validation
        """
        result = self._validator.validate(draft)
        if not result.is_valid:
            return await self._reject(ctx, draft, result)

        record = draft.to_record(ctx.owner_id)
        saved = await self._call(ctx, "create_record", self._storage.create_record(record))

        if self._audit_logger:
            await self._audit_logger.log_record_created(saved, ctx.correlation_id)

        return saved, result

    async def list_records(
        self,
        ctx: RequestContext,
        kind: Optional[RecordKind] = None,
    ) -> list[Record]:
        """The owner's records, newest first."""
        return await _fetch_records(self._storage, self._audit_logger, ctx, kind)

    async def update_record(
        self,
        ctx: RequestContext,
        record_id: UUID,
        draft: RecordDraft,
    ) -> tuple[Optional[Record], ValidationResult]:
        """
        Replace every field of an existing record except id and owner.

        Raises:
            NotFoundError: If the owner has no record with this id
        """
        existing = await self._call(
            ctx, "get_record", self._storage.get_record(ctx.owner_id, record_id)
        )
        if existing is None:
            raise NotFoundError(f"Record not found: {record_id}")

        if draft.kind.value != existing.kind:
            result = ValidationResult(
                schema_valid=False,
                semantic_valid=False,
                is_valid=False,
                issues=[ValidationIssue(
                    field="kind",
                    issue_type="immutable",
                    message=f"A {existing.kind} cannot be changed into a {draft.kind.value}",
                    severity="error",
                    suggested_fix="Delete this entry and add a new one instead",
                )],
            )
            return await self._reject(ctx, draft, result)

        result = self._validator.validate(draft)
        if not result.is_valid:
            return await self._reject(ctx, draft, result)

        record = draft.to_record(ctx.owner_id, record_id=existing.id)
        updated = await self._call(ctx, "update_record", self._storage.update_record(record))

        if self._audit_logger:
            await self._audit_logger.log_record_updated(updated, ctx.correlation_id)

        return updated, result

    async def delete_record(self, ctx: RequestContext, record_id: UUID) -> None:
        """
        Delete one of the owner's records.

        Raises:
            NotFoundError: If the owner has no record with this id
        """
        deleted = await self._call(
            ctx, "delete_record", self._storage.delete_record(ctx.owner_id, record_id)
        )
        if not deleted:
            raise NotFoundError(f"Record not found: {record_id}")

        if self._audit_logger:
            await self._audit_logger.log_record_deleted(
                ctx.owner_id, record_id, ctx.correlation_id
            )


class InsightsFlow:
    """
    Orchestrates the derived views.

    Both methods fetch the owner's full ledger from storage and hand it to
    the pure analytics engines. Malformed stored records are audited and
    re-raised as DataError; they are never counted as zero.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().app

    async def _audit_data_error(self, ctx: RequestContext, error: DataError) -> None:
        if self._audit_logger:
            await self._audit_logger.log_data_error(
                ctx.owner_id, error, ctx.correlation_id
            )

    async def dashboard(
        self,
        ctx: RequestContext,
        month: Union[int, str] = "all",
        label: Optional[str] = None,
    ) -> DashboardView:
        """
        Totals, breakdowns, highest category, daily spend and monthly trend.

        Args:
            month: "all", a 0-based month index, or a "YYYY-MM" key
            label: Only records with exactly this label
        """
        records = await _fetch_records(self._storage, self._audit_logger, ctx)

        try:
            view = build_dashboard(records, month=month, label=label)
        except DataError as e:
            await self._audit_data_error(ctx, e)
            raise

        if self._audit_logger:
            await self._audit_logger.log_dashboard_generated(
                owner_id=ctx.owner_id,
                month=str(month),
                label=label,
                record_count=len(records),
                correlation_id=ctx.correlation_id,
            )
        return view

    async def predictions(self, ctx: RequestContext) -> list[Prediction]:
        """Next-spend prediction per expense category with enough history."""
        expenses = await _fetch_records(
            self._storage, self._audit_logger, ctx, RecordKind.EXPENSE
        )

        try:
            predictions = predict_next(
                expenses,
                window=self._settings.prediction_window,
                min_history=self._settings.prediction_min_history,
            )
        except DataError as e:
            await self._audit_data_error(ctx, e)
            raise

        if self._audit_logger:
            await self._audit_logger.log_prediction_generated(
                owner_id=ctx.owner_id,
                categories=[p.category for p in predictions],
                correlation_id=ctx.correlation_id,
            )
        return predictions


def create_app_components(
    use_storage: bool = True,
) -> tuple[LedgerFlow, InsightsFlow]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured storage backend.
                    Set to False to run on in-memory storage.

    Returns:
        (ledger_flow, insights_flow)
    """
    settings = get_settings().app
    configure_logging(settings.log_level)

    ledger_storage = None
    audit_storage = None

    if use_storage and settings.storage_backend == "google_sheets":
        checks = validate_all_settings()
        if not checks["google_sheets"]:
            logger.warning(
                "storage_not_configured",
                backend="google_sheets",
                error=checks.get("google_sheets_error"),
            )
        else:
            # Connection is lazy; nothing touches the network until first use
            sheets_client = GoogleSheetsClient()
            ledger_storage = GoogleSheetsLedgerStorage(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)

    if ledger_storage is None:
        ledger_storage = InMemoryLedgerStorage()
        audit_storage = InMemoryAuditStorage()

    audit_logger = AuditLogger(audit_storage)

    ledger_flow = LedgerFlow(
        storage=ledger_storage,
        validator=RecordValidator(settings),
        audit_logger=audit_logger,
    )
    insights_flow = InsightsFlow(
        storage=ledger_storage,
        audit_logger=audit_logger,
        settings=settings,
    )

    return ledger_flow, insights_flow
