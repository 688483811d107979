"""
Expense snapshot cache.

Serializes the full expense list under one key of a KeyValueStoreInterface.
"""

import json

from pydantic import TypeAdapter, ValidationError

from expense_sync.models.entities import Expense
from expense_sync.services.snapshot.interface import KeyValueStoreInterface, SnapshotError


EXPENSES_KEY = "EXPENSE_DATA"

_expense_list = TypeAdapter(list[Expense])


class ExpenseSnapshot:
    """Reads and writes the local copy of the expense list."""

    def __init__(self, storage: KeyValueStoreInterface, key: str = EXPENSES_KEY):
        self._storage = storage
        self._key = key

    async def save(self, expenses: list[Expense]) -> None:
        payload = json.dumps([e.to_wire() for e in expenses], ensure_ascii=False)
        await self._storage.set(self._key, payload)

    async def load(self) -> list[Expense]:
        """
        Read the last saved list.

        Returns:
            The saved expenses, or an empty list if nothing was saved yet

        Raises:
            SnapshotError: If the stored data can't be read or parsed
        """
        raw = await self._storage.get(self._key)
        if raw is None:
            return []
        try:
            return _expense_list.validate_json(raw)
        except ValidationError as e:
            raise SnapshotError(f"Corrupt expense snapshot: {e.error_count()} invalid fields")

    async def clear(self) -> None:
        await self._storage.remove(self._key)
