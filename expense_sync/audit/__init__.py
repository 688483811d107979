"""Sync audit logging package."""

from expense_sync.audit.logger import SyncAuditLogger

__all__ = ["SyncAuditLogger"]
