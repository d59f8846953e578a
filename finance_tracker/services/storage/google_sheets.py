"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a storage backend because:
1. Users can view and export their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)

Each record kind lives in its own worksheet with the same columns.
Rows that cannot be parsed raise DataError instead of being skipped, so a
corrupted sheet never silently shrinks an owner's totals.
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.config import GoogleSheetsSettings, get_settings
from finance_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from finance_tracker.models.record import (
    DataError,
    Record,
    RecordKind,
    parse_record,
)
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)

# Column mappings shared by the Expenses, Income and Savings sheets
RECORD_COLUMNS = [
    "id",
    "owner_id",
    "amount",
    "label",
    "date",
    "description",
    "created_at",
    "updated_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "owner_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
        return sheet

    def get_records_sheet(self, kind: RecordKind) -> gspread.Worksheet:
        """Get or create the worksheet holding one kind of record."""
        titles = {
            RecordKind.EXPENSE: self._settings.expenses_sheet_name,
            RecordKind.INCOME: self._settings.income_sheet_name,
            RecordKind.SAVING: self._settings.savings_sheet_name,
        }
        return self._get_or_create_sheet(
            titles[RecordKind(kind)], RECORD_COLUMNS, rows=1000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    Records are stored one per row; the owner column scopes every lookup.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _record_to_row(self, record: Record) -> list:
        """Convert a Record to a spreadsheet row."""
        return [
            str(record.id),
            record.owner_id,
            str(record.amount),
            record.label,
            record.date.isoformat(),
            record.description or "",
            record.created_at.isoformat(),
            record.updated_at.isoformat(),
        ]

    def _row_to_record(self, row: list, kind: RecordKind) -> Record:
        """Convert a spreadsheet row to a Record (DataError if malformed)."""
        return parse_record(dict(zip(RECORD_COLUMNS, row)), kind=kind)

    @staticmethod
    def _is_owned(row: list, owner_id: str, record_id: Optional[UUID] = None) -> bool:
        if len(row) < 2 or row[1] != owner_id:
            return False
        return record_id is None or row[0] == str(record_id)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def create_record(self, record: Record) -> Record:
        """Append a record to its kind's sheet."""
        try:
            sheet = self._client.get_records_sheet(RecordKind(record.kind))
            sheet.append_row(self._record_to_row(record), value_input_option="RAW")
            return record
        except Exception as e:
            raise StorageError(f"Failed to save record: {e}") from e

    async def get_record(
        self,
        owner_id: str,
        record_id: UUID,
    ) -> Optional[Record]:
        """Look the record up in every kind's sheet."""
        try:
            for kind in RecordKind:
                sheet = self._client.get_records_sheet(kind)
                for row in sheet.get_all_values()[1:]:
                    if self._is_owned(row, owner_id, record_id):
                        return self._row_to_record(row, kind)
            return None
        except DataError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get record: {e}") from e

    async def list_records(
        self,
        owner_id: str,
        kind: Optional[RecordKind] = None,
    ) -> list[Record]:
        """List the owner's records, newest first."""
        kinds = [RecordKind(kind)] if kind is not None else list(RecordKind)
        try:
            records = []
            for record_kind in kinds:
                sheet = self._client.get_records_sheet(record_kind)
                for row in sheet.get_all_values()[1:]:  # Skip header
                    if not row or not row[0]:  # Skip empty rows
                        continue
                    if self._is_owned(row, owner_id):
                        records.append(self._row_to_record(row, record_kind))
        except DataError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list records: {e}") from e

        records.sort(key=lambda r: r.date, reverse=True)
        return records

    async def update_record(self, record: Record) -> Record:
        """Rewrite the record's row in place."""
        try:
            sheet = self._client.get_records_sheet(RecordKind(record.kind))
            all_rows = sheet.get_all_values()

            # Start from 2 (row 1 is header)
            for idx, row in enumerate(all_rows[1:], start=2):
                if self._is_owned(row, record.owner_id, record.id):
                    stored = self._row_to_record(row, RecordKind(record.kind))
                    updated = record.model_copy(update={
                        "created_at": stored.created_at,
                        "updated_at": datetime.now(tz=stored.created_at.tzinfo),
                    })

                    for col_idx, value in enumerate(self._record_to_row(updated), start=1):
                        sheet.update_cell(idx, col_idx, value)

                    return updated

            raise NotFoundError(f"Record not found: {record.id}")
        except (NotFoundError, DataError):
            raise
        except Exception as e:
            raise StorageError(f"Failed to update record: {e}") from e

    async def delete_record(self, owner_id: str, record_id: UUID) -> bool:
        """Delete the owner's record from whichever sheet holds it."""
        try:
            for kind in RecordKind:
                sheet = self._client.get_records_sheet(kind)
                all_rows = sheet.get_all_values()

                for idx, row in enumerate(all_rows[1:], start=2):
                    if self._is_owned(row, owner_id, record_id):
                        sheet.delete_rows(idx)
                        return True

            return False
        except Exception as e:
            raise StorageError(f"Failed to delete record: {e}") from e


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            owner_id=safe_get(4) or None,
            entity_type=safe_get(5) or None,
            entity_id=UUID(safe_get(6)) if safe_get(6) else None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
            is_user_action=safe_get(11).lower() == "true",
        )

    def _read_events(self) -> list[AuditEvent]:
        events = []
        for row in self._client.get_audit_sheet().get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, IndexError) as e:
                # Unreadable audit rows are logged and skipped
                logger.warning("audit_row_unreadable", row=row[:1], error=str(e))
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning("audit_append_failed", event_id=str(event.event_id), error=str(e))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        try:
            events = [
                e for e in self._read_events()
                if e.entity_type == entity_type and e.entity_id == entity_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            events = self._read_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
