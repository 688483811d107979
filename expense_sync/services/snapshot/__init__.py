"""
Snapshot Services Package

Local key-value persistence used as the expense snapshot cache.
"""

from expense_sync.services.snapshot.interface import KeyValueStoreInterface, SnapshotError
from expense_sync.services.snapshot.json_file import JsonFileKeyValueStore
from expense_sync.services.snapshot.memory import MemoryKeyValueStore
from expense_sync.services.snapshot.expenses import EXPENSES_KEY, ExpenseSnapshot

__all__ = [
    # Interface
    "KeyValueStoreInterface",
    "SnapshotError",
    # Implementations
    "JsonFileKeyValueStore",
    "MemoryKeyValueStore",
    # Expense cache
    "EXPENSES_KEY",
    "ExpenseSnapshot",
]
