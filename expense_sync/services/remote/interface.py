"""
Abstract Remote Store Interface

DESIGN DECISION: We define an abstract interface for the backend.
This allows us to:
1. Swap the HTTP backend for another transport later
2. Use an in-memory fake for testing (including forced failures)
3. Keep the store's optimistic logic decoupled from HTTP details

The interface is intentionally narrow - the backend is a collection-style
REST API with no pagination, filtering or conditional writes.
Implementations return decoded JSON and raise TransportError for
anything that prevents a usable answer.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional


class Resource(str, Enum):
    """Backend endpoints, one per mirrored collection or scalar."""
    EXPENSES = "expenses"
    BUDGET = "budget"
    CURRENCY = "currency"
    CATEGORIES = "categories"
    PAYMENT_METHODS = "payment-methods"
    BANKS = "banks"
    UPI_APPS = "upi-apps"
    USER = "user"
    PREFERENCES = "preferences"
    DEBTS = "debts"
    BALANCES = "balances"


class RemoteStoreInterface(ABC):
    """
    Abstract interface for the expense backend.

    Any transport (HTTP, in-memory, ...) must implement these methods.
    """

    @abstractmethod
    async def fetch(self, resource: Resource) -> Any:
        """
        GET a whole resource (a list for collections, an object for scalars).

        Raises:
            TransportError: If the backend cannot be reached or answers badly
        """
        pass

    @abstractmethod
    async def fetch_one(self, resource: Resource, entity_id: str) -> Optional[dict]:
        """
        GET a single record by id.

        Returns:
            The record, or None if the backend answers 404

        Raises:
            TransportError: For any other failure
        """
        pass

    @abstractmethod
    async def create(self, resource: Resource, body: dict) -> Any:
        """
        POST a new record (or a scalar value) and return the persisted echo.

        Raises:
            TransportError: If the write fails
        """
        pass

    @abstractmethod
    async def replace(
        self,
        resource: Resource,
        body: dict,
        entity_id: Optional[str] = None,
    ) -> Any:
        """
        PUT a full replacement, addressed by id for collections.

        Returns:
            The persisted echo

        Raises:
            TransportError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, resource: Resource, entity_id: str) -> Any:
        """
        DELETE a record by id.

        Raises:
            TransportError: If the delete fails (including 404)
        """
        pass

    def close(self) -> None:
        """Release connections held by the transport. Nothing by default."""


class RemoteStoreError(Exception):
    """Base exception for remote store operations."""
    pass


class TransportError(RemoteStoreError):
    """
    The backend could not be used: unreachable, timed out, non-2xx
    status, or a body that isn't the JSON we expect.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
