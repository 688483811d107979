"""
Abstract Key-Value Store Interface

The snapshot cache only needs get/set/remove by key. It is never the
system of record: the store writes to it after expense changes and reads
from it once, when the backend can't deliver the expense list at boot.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStoreInterface(ABC):
    """Opaque string storage addressed by key."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read a value.

        Returns:
            The stored string, or None if the key is absent

        Raises:
            SnapshotError: If the underlying storage can't be read
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Write a value, replacing any previous one.

        Raises:
            SnapshotError: If the write fails
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete a key. Missing keys are ignored."""
        pass


class SnapshotError(Exception):
    """Local snapshot storage failed."""
    pass
