"""
In-Memory Storage Implementation

Dict-backed storage for tests and for running without any external backend.
Nothing survives a restart.
"""

import asyncio
import datetime as dt
from typing import Optional
from uuid import UUID

from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.record import Record, RecordKind
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """
    Records are kept per owner, keyed by record id.

    Mutations are serialized with an asyncio.Lock; records are stored as
    copies so callers cannot change stored state by mutating what they hold.
    """

    def __init__(self):
        self._records: dict[str, dict[UUID, Record]] = {}
        self._lock = asyncio.Lock()

    async def create_record(self, record: Record) -> Record:
        async with self._lock:
            owned = self._records.setdefault(record.owner_id, {})
            if record.id in owned:
                raise StorageError(f"Record already exists: {record.id}")
            owned[record.id] = record.model_copy(deep=True)
            return record

    async def get_record(
        self,
        owner_id: str,
        record_id: UUID,
    ) -> Optional[Record]:
        record = self._records.get(owner_id, {}).get(record_id)
        return record.model_copy(deep=True) if record else None

    async def list_records(
        self,
        owner_id: str,
        kind: Optional[RecordKind] = None,
    ) -> list[Record]:
        records = [
            record.model_copy(deep=True)
            for record in self._records.get(owner_id, {}).values()
            if kind is None or record.kind == RecordKind(kind).value
        ]
        records.sort(key=lambda r: r.date, reverse=True)
        return records

    async def update_record(self, record: Record) -> Record:
        async with self._lock:
            owned = self._records.get(record.owner_id, {})
            existing = owned.get(record.id)
            if existing is None:
                raise NotFoundError(f"Record not found: {record.id}")

            updated = record.model_copy(
                update={
                    "created_at": existing.created_at,
                    "updated_at": dt.datetime.now(dt.timezone.utc),
                },
                deep=True,
            )
            owned[record.id] = updated
            return updated.model_copy(deep=True)

    async def delete_record(self, owner_id: str, record_id: UUID) -> bool:
        async with self._lock:
            return self._records.get(owner_id, {}).pop(record_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
