"""Services package."""

from expense_sync.services.remote import (
    HttpRemoteStore,
    RemoteStoreError,
    RemoteStoreInterface,
    Resource,
    TransportError,
)
from expense_sync.services.snapshot import (
    EXPENSES_KEY,
    ExpenseSnapshot,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    MemoryKeyValueStore,
    SnapshotError,
)

__all__ = [
    # Remote services
    "HttpRemoteStore",
    "RemoteStoreError",
    "RemoteStoreInterface",
    "Resource",
    "TransportError",
    # Snapshot services
    "EXPENSES_KEY",
    "ExpenseSnapshot",
    "JsonFileKeyValueStore",
    "KeyValueStoreInterface",
    "MemoryKeyValueStore",
    "SnapshotError",
]
