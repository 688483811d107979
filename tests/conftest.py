"""
Shared fixtures for expense sync tests.

No real network calls: the store talks to FakeRemoteStore, an in-memory
backend that can be switched offline per resource.
"""

import itertools
from typing import Any, Optional

import pytest

from expense_sync.audit import SyncAuditLogger
from expense_sync.config import SyncSettings
from expense_sync.services.remote import RemoteStoreInterface, Resource, TransportError
from expense_sync.services.snapshot import ExpenseSnapshot, MemoryKeyValueStore
from expense_sync.store import ExpenseStore


COLLECTIONS = {
    Resource.EXPENSES,
    Resource.CATEGORIES,
    Resource.PAYMENT_METHODS,
    Resource.BANKS,
    Resource.UPI_APPS,
    Resource.DEBTS,
}


class FakeRemoteStore(RemoteStoreInterface):
    """
    In-memory backend mimicking the REST server.

    - POST assigns ids "srv-1", "srv-2", ... unless the body has one
    - PUT/POST echo what was stored
    - `offline` makes every call fail; `failing` fails selected resources
    """

    def __init__(self, data: Optional[dict[Resource, Any]] = None):
        self.data: dict[Resource, Any] = {
            Resource.EXPENSES: [],
            Resource.CATEGORIES: [],
            Resource.PAYMENT_METHODS: [],
            Resource.BANKS: [],
            Resource.UPI_APPS: [],
            Resource.DEBTS: [],
            Resource.BUDGET: {"budget": 0},
            Resource.CURRENCY: {"currency": "₹"},
            Resource.USER: {"name": "User1234", "email": "user1234@email.com"},
            Resource.PREFERENCES: {"pushNotifications": False, "budgetAlerts": False},
            Resource.BALANCES: {"cashBalance": 0, "upiBalance": 0},
        }
        self.data.update(data or {})
        self.offline = False
        self.failing: set[Resource] = set()
        self.calls: list[tuple[str, Resource, Optional[str]]] = []
        self._ids = itertools.count(1)
        self.closed = False

    def _check(self, method: str, resource: Resource, entity_id: Optional[str] = None) -> None:
        self.calls.append((method, resource, entity_id))
        if self.offline or resource in self.failing:
            raise TransportError(f"{method} /{resource.value} failed: connection refused")

    def close(self) -> None:
        self.closed = True

    async def fetch(self, resource: Resource) -> Any:
        self._check("GET", resource)
        return self.data[resource]

    async def fetch_one(self, resource: Resource, entity_id: str) -> Optional[dict]:
        self._check("GET", resource, entity_id)
        return next((r for r in self.data[resource] if r.get("id") == entity_id), None)

    async def create(self, resource: Resource, body: dict) -> Any:
        self._check("POST", resource)
        if resource not in COLLECTIONS:
            self.data[resource] = body
            return body
        record = {**body, "id": body.get("id") or f"srv-{next(self._ids)}"}
        self.data[resource].append(record)
        return record

    async def replace(self, resource: Resource, body: dict, entity_id: Optional[str] = None) -> Any:
        self._check("PUT", resource, entity_id)
        if resource not in COLLECTIONS:
            self.data[resource] = body
            return body
        records = self.data[resource]
        for i, record in enumerate(records):
            if record.get("id") == entity_id:
                records[i] = {**body, "id": entity_id}
                return records[i]
        raise TransportError(f"PUT /{resource.value}/{entity_id} returned 404", status_code=404)

    async def delete(self, resource: Resource, entity_id: str) -> Any:
        self._check("DELETE", resource, entity_id)
        self.data[resource] = [r for r in self.data[resource] if r.get("id") != entity_id]
        return {"success": True}


@pytest.fixture
def sync_settings():
    return SyncSettings(server_url="http://test.local", snapshot_debounce_seconds=0)


@pytest.fixture
def remote():
    return FakeRemoteStore()


@pytest.fixture
def kv_storage():
    return MemoryKeyValueStore()


@pytest.fixture
def audit_logger():
    return SyncAuditLogger()


@pytest.fixture
def store(remote, kv_storage, audit_logger, sync_settings):
    return ExpenseStore(
        remote=remote,
        snapshot=ExpenseSnapshot(kv_storage),
        audit_logger=audit_logger,
        settings=sync_settings,
    )
