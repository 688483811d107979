"""
Store Assembly

This module wires the concrete pieces of the sync layer together:
1. HTTP transport to the expense backend
2. Snapshot cache (JSON file when a path is configured, memory otherwise)
3. Sync audit logger
4. The ExpenseStore itself

DESIGN DECISION: Components are built here and injected, never looked
up globally. Tests build an ExpenseStore directly with fakes instead.
"""

from typing import Optional

from expense_sync.audit import SyncAuditLogger
from expense_sync.config import Settings, get_settings
from expense_sync.services.remote import HttpRemoteStore, RemoteStoreInterface
from expense_sync.services.snapshot import (
    ExpenseSnapshot,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    MemoryKeyValueStore,
)
from expense_sync.store import ExpenseStore


def create_snapshot_storage(settings: Optional[Settings] = None) -> KeyValueStoreInterface:
    """Pick the snapshot backend from configuration."""
    settings = settings or get_settings()
    if settings.sync.snapshot_path is not None:
        return JsonFileKeyValueStore(settings.sync.snapshot_path)
    return MemoryKeyValueStore()


def create_store(
    settings: Optional[Settings] = None,
    remote: Optional[RemoteStoreInterface] = None,
    storage: Optional[KeyValueStoreInterface] = None,
) -> ExpenseStore:
    """
    Factory function to create a fully wired store.

    Args:
        settings: Settings to use (defaults to environment settings)
        remote: Transport override (defaults to HttpRemoteStore)
        storage: Snapshot storage override

    Returns:
        An ExpenseStore that has not been loaded yet; call `await store.load()`
    """
    settings = settings or get_settings()

    remote = remote or HttpRemoteStore(settings.sync)
    storage = storage or create_snapshot_storage(settings)
    audit_logger = SyncAuditLogger(history_size=settings.app.audit_history_size)

    return ExpenseStore(
        remote=remote,
        snapshot=ExpenseSnapshot(storage),
        audit_logger=audit_logger,
        settings=settings.sync,
    )
