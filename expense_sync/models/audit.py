"""
Sync Audit Models for Expense Sync

Every exchange with the backend is recorded as a SyncEvent.
This provides:
1. Visibility into silently absorbed transport failures
2. Debugging information when local and remote state drift apart
3. A way for callers and tests to see which path an operation took

DESIGN DECISION: Failures are logged, not raised. The audit trail is
the only place where "applied locally only" is visible after the fact.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class SyncEventType(str, Enum):
    """Types of sync events we record."""
    # Reads
    LOAD_STARTED = "load_started"
    LOAD_COMPLETED = "load_completed"
    FETCH_SUCCEEDED = "fetch_succeeded"
    FETCH_FAILED = "fetch_failed"
    SNAPSHOT_RESTORED = "snapshot_restored"

    # Writes
    REMOTE_WRITE_SUCCEEDED = "remote_write_succeeded"
    REMOTE_WRITE_FAILED = "remote_write_failed"

    # Local cache
    SNAPSHOT_SAVED = "snapshot_saved"
    SNAPSHOT_FAILED = "snapshot_failed"

    # Domain
    PROTECTED_ENTITY_REJECTED = "protected_entity_rejected"


class SyncSeverity(str, Enum):
    """Severity level for sync events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class SyncEvent(BaseModel):
    """A single sync audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: SyncEventType
    severity: SyncSeverity = SyncSeverity.INFO

    # Which backend resource and record
    resource: Optional[str] = Field(
        default=None,
        description="Endpoint name, e.g. 'expenses' or 'budget'"
    )
    operation: Optional[str] = Field(
        default=None,
        description="add, update, delete, replace or fetch"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "resource": self.resource,
            "operation": self.operation,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class SyncEventBuilder:
    """
    Helper class to build sync events with common patterns.

    Usage:
        event = SyncEventBuilder.remote_write_failed("expenses", "add", None, err)
        await audit_logger.log(event)
    """

    @staticmethod
    def load_started() -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.LOAD_STARTED,
            operation="fetch",
            description="Loading all resources from backend",
        )

    @staticmethod
    def load_completed(loaded: list[str], failed: list[str]) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.LOAD_COMPLETED,
            severity=SyncSeverity.WARNING if failed else SyncSeverity.INFO,
            operation="fetch",
            description=f"Load finished: {len(loaded)} loaded, {len(failed)} failed",
            details={"loaded": loaded, "failed": failed},
        )

    @staticmethod
    def fetch_succeeded(resource: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.FETCH_SUCCEEDED,
            severity=SyncSeverity.DEBUG,
            resource=resource,
            operation="fetch",
            description=f"Fetched {resource}",
        )

    @staticmethod
    def fetch_failed(resource: str, error: Exception) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.FETCH_FAILED,
            severity=SyncSeverity.WARNING,
            resource=resource,
            operation="fetch",
            description=f"Failed to fetch {resource}, keeping current value",
            error_message=str(error),
        )

    @staticmethod
    def snapshot_restored(count: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.SNAPSHOT_RESTORED,
            severity=SyncSeverity.WARNING,
            resource="expenses",
            operation="fetch",
            description=f"Loaded {count} expenses from local snapshot",
            details={"count": count},
        )

    @staticmethod
    def remote_write_succeeded(
        resource: str,
        operation: str,
        entity_id: Optional[str],
    ) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.REMOTE_WRITE_SUCCEEDED,
            severity=SyncSeverity.DEBUG,
            resource=resource,
            operation=operation,
            entity_id=entity_id,
            description=f"{operation} on {resource} confirmed by backend",
        )

    @staticmethod
    def remote_write_failed(
        resource: str,
        operation: str,
        entity_id: Optional[str],
        error: Exception,
    ) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.REMOTE_WRITE_FAILED,
            severity=SyncSeverity.WARNING,
            resource=resource,
            operation=operation,
            entity_id=entity_id,
            description=f"{operation} on {resource} applied locally only",
            error_message=str(error),
        )

    @staticmethod
    def snapshot_saved(count: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.SNAPSHOT_SAVED,
            severity=SyncSeverity.DEBUG,
            resource="expenses",
            description=f"Saved {count} expenses to local snapshot",
            details={"count": count},
        )

    @staticmethod
    def snapshot_failed(error: Exception) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.SNAPSHOT_FAILED,
            severity=SyncSeverity.ERROR,
            resource="expenses",
            description="Local expense snapshot could not be read or written",
            error_message=str(error),
        )

    @staticmethod
    def protected_entity_rejected(resource: str, entity_id: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.PROTECTED_ENTITY_REJECTED,
            severity=SyncSeverity.WARNING,
            resource=resource,
            operation="delete",
            entity_id=entity_id,
            description=f"Refused to delete protected {resource} {entity_id}",
        )
