"""
Pure state transitions for the expense store.

reduce(state, action) never performs I/O and never mutates its input;
it returns a new StoreState (or the same one when nothing changes).
"""

from typing import Any

from expense_sync.models import state as actions
from expense_sync.models.state import Action, StoreState


# action type -> (state field, how the payload is applied)
_COLLECTION_ACTIONS: dict[str, tuple[str, str]] = {
    "LOAD": ("expenses", "load"),
    "ADD": ("expenses", "prepend"),
    "UPDATE": ("expenses", "replace"),
    "DELETE": ("expenses", "remove"),
    "LOAD_CATEGORIES": ("categories", "load"),
    "ADD_CATEGORY": ("categories", "append"),
    "DELETE_CATEGORY": ("categories", "remove"),
    "LOAD_PAYMENT_METHODS": ("payment_methods", "load"),
    "ADD_PAYMENT_METHOD": ("payment_methods", "append"),
    "DELETE_PAYMENT_METHOD": ("payment_methods", "remove"),
    "LOAD_BANKS": ("banks", "load"),
    "ADD_BANK": ("banks", "append"),
    "DELETE_BANK": ("banks", "remove"),
    "LOAD_UPI_APPS": ("upi_apps", "load"),
    "ADD_UPI_APP": ("upi_apps", "append"),
    "DELETE_UPI_APP": ("upi_apps", "remove"),
    "LOAD_DEBTS": ("debts", "load"),
    "ADD_DEBT": ("debts", "prepend"),
    "UPDATE_DEBT": ("debts", "replace"),
    "DELETE_DEBT": ("debts", "remove"),
}

_SCALAR_ACTIONS: dict[str, str] = {
    "SET_LOADING": "loading",
    "SET_BUDGET": "budget",
    "SET_CURRENCY": "currency",
    "SET_USER": "user",
    "SET_PREFERENCES": "preferences",
    "SET_BALANCES": "balances",
}


def _apply(items: list, mode: str, payload: Any) -> list:
    if mode == "load":
        return list(payload)

    if mode == "remove":
        return [item for item in items if item.id != payload]

    # add / replace: one entry per id, last writer wins
    if any(item.id == payload.id for item in items):
        return [payload if item.id == payload.id else item for item in items]
    if mode == "replace":
        # updating something we don't hold is a no-op, like the backend's 404
        return items
    if mode == "prepend":
        return [payload, *items]
    return [*items, payload]


def reduce(state: StoreState, action: Action) -> StoreState:
    """Apply one action to the state and return the resulting state."""
    if action.type in _COLLECTION_ACTIONS:
        field, mode = _COLLECTION_ACTIONS[action.type]
        update: dict[str, Any] = {field: _apply(getattr(state, field), mode, action.payload)}
        if isinstance(action, actions.LoadExpenses):
            update["loading"] = False
        return state.model_copy(update=update)

    if action.type in _SCALAR_ACTIONS:
        return state.model_copy(update={_SCALAR_ACTIONS[action.type]: action.payload})

    # Closed union: anything else is a programming error
    raise ValueError(f"Unknown action type: {action.type}")
