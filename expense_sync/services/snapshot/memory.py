"""In-memory key-value store, used when no snapshot file is configured."""

from typing import Optional

from expense_sync.services.snapshot.interface import KeyValueStoreInterface


class MemoryKeyValueStore(KeyValueStoreInterface):

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)
