"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

CRITICAL: Every ledger operation is scoped by owner. A backend must never
return, change or delete a record that belongs to a different owner. The
analytics engines rely on this and never check ownership themselves.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.record import Record, RecordKind


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger record storage.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def create_record(self, record: Record) -> Record:
        """
        Persist a new record.

        Returns:
            The stored record

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_record(
        self,
        owner_id: str,
        record_id: UUID,
    ) -> Optional[Record]:
        """
        Retrieve one of the owner's records.

        Returns:
            The record if the owner has it, None otherwise
        """
        pass

    @abstractmethod
    async def list_records(
        self,
        owner_id: str,
        kind: Optional[RecordKind] = None,
    ) -> list[Record]:
        """
        List the owner's records, newest first by date.

        Args:
            owner_id: Whose records to list
            kind: Only records of this kind, or all kinds when None

        Raises:
            DataError: If a stored record is malformed
            StorageError: If the backend fails
        """
        pass

    @abstractmethod
    async def update_record(self, record: Record) -> Record:
        """
        Replace an existing record (matched on owner and id).

        Returns:
            The stored record with a fresh updated_at

        Raises:
            NotFoundError: If the owner has no record with this id
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_record(self, owner_id: str, record_id: UUID) -> bool:
        """
        Delete one of the owner's records.

        Returns:
            True if deleted, False if the owner has no such record
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for one request, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a specific entity, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
