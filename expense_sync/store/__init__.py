"""Synchronized entity store package."""

from expense_sync.store.errors import DomainError, EntityNotFoundError, ProtectedEntityError
from expense_sync.store.expense_store import ExpenseStore
from expense_sync.store.ids import TimestampIdFactory
from expense_sync.store.reducer import reduce

__all__ = [
    "DomainError",
    "EntityNotFoundError",
    "ExpenseStore",
    "ProtectedEntityError",
    "TimestampIdFactory",
    "reduce",
]
