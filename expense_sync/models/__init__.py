"""
Data Models Package

This package contains all Pydantic models used by the expense sync store.
All data flowing between the store and the backend must conform to these schemas.
"""

from expense_sync.models.entities import (
    Amount,
    Balances,
    Bank,
    Category,
    Debt,
    DebtStatus,
    DebtType,
    EntryType,
    Expense,
    PaymentMethod,
    PaymentOption,
    Preferences,
    UpiApp,
    UserProfile,
    WireModel,
)
from expense_sync.models.state import Action, StoreState
from expense_sync.models.results import LoadReport, MutationResult, SyncOutcome
from expense_sync.models.audit import (
    SyncEvent,
    SyncEventBuilder,
    SyncEventType,
    SyncSeverity,
)

__all__ = [
    # Entities
    "Amount",
    "Balances",
    "Bank",
    "Category",
    "Debt",
    "DebtStatus",
    "DebtType",
    "EntryType",
    "Expense",
    "PaymentMethod",
    "PaymentOption",
    "Preferences",
    "UpiApp",
    "UserProfile",
    "WireModel",
    # State
    "Action",
    "StoreState",
    # Results
    "LoadReport",
    "MutationResult",
    "SyncOutcome",
    # Audit models
    "SyncEvent",
    "SyncEventBuilder",
    "SyncEventType",
    "SyncSeverity",
]
