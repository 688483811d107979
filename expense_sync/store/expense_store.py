"""
Synchronized Expense Store

DESIGN DECISION: Optimism always wins.
Every mutation follows the same shape:
1. Send the write to the backend
2. On success, apply the backend's echo to local state
3. On any transport failure, apply the locally built value anyway
4. Record which path was taken (MutationResult + sync audit event)

Local state is the source of truth for the session. Remote failures are
logged, never raised, and never rolled back. Only domain violations
(deleting a protected category) reach the caller as exceptions.

Concurrent mutations of the same record are last-writer-wins in the order
their calls resolve. There is no versioning, conflict detection or
cancellation.
"""

import asyncio
from decimal import Decimal
from typing import Any, Callable, Optional, Union

from pydantic import Field, TypeAdapter, ValidationError

from expense_sync.audit import SyncAuditLogger
from expense_sync.config import SyncSettings, get_settings
from expense_sync.models.audit import SyncEvent, SyncEventBuilder
from expense_sync.models.entities import (
    Amount,
    Balances,
    Category,
    Debt,
    DebtStatus,
    Expense,
    PaymentOption,
    Preferences,
    UserProfile,
    WireModel,
)
from expense_sync.models.results import LoadReport, MutationResult
from expense_sync.models.state import (
    Action,
    AddBank,
    AddCategory,
    AddDebt,
    AddExpense,
    AddPaymentMethod,
    AddUpiApp,
    DeleteBank,
    DeleteCategory,
    DeleteDebt,
    DeleteExpense,
    DeletePaymentMethod,
    DeleteUpiApp,
    LoadBanks,
    LoadCategories,
    LoadDebts,
    LoadExpenses,
    LoadPaymentMethods,
    LoadUpiApps,
    SetBalances,
    SetBudget,
    SetCurrency,
    SetLoading,
    SetPreferences,
    SetUser,
    StoreState,
    UpdateDebt,
    UpdateExpense,
)
from expense_sync.services.remote import RemoteStoreInterface, Resource, TransportError
from expense_sync.services.snapshot import ExpenseSnapshot, SnapshotError
from expense_sync.store.balances import adjust_balances
from expense_sync.store.errors import EntityNotFoundError, ProtectedEntityError
from expense_sync.store.ids import TimestampIdFactory
from expense_sync.store.reducer import reduce


Listener = Callable[[StoreState], None]

# Anything that means "the backend didn't give us something usable"
_REMOTE_FAILURES = (TransportError, ValidationError)


class _BudgetBody(WireModel):
    budget: Amount


class _CurrencyBody(WireModel):
    currency: str = Field(..., min_length=1)


_expense_list = TypeAdapter(list[Expense])
_payment_amount = TypeAdapter(Amount)

# How a successful GET turns into an action
_FETCH_ACTIONS: dict[Resource, Callable[[Any], Action]] = {
    Resource.BUDGET: lambda raw: SetBudget(payload=_BudgetBody.model_validate(raw).budget),
    Resource.CURRENCY: lambda raw: SetCurrency(payload=_CurrencyBody.model_validate(raw).currency),
    Resource.USER: lambda raw: SetUser(payload=raw),
    Resource.PREFERENCES: lambda raw: SetPreferences(payload=raw),
    Resource.BALANCES: lambda raw: SetBalances(payload=raw),
    Resource.CATEGORIES: lambda raw: LoadCategories(payload=raw),
    Resource.PAYMENT_METHODS: lambda raw: LoadPaymentMethods(payload=raw),
    Resource.BANKS: lambda raw: LoadBanks(payload=raw),
    Resource.UPI_APPS: lambda raw: LoadUpiApps(payload=raw),
    Resource.DEBTS: lambda raw: LoadDebts(payload=raw),
}


def _echo_or(requested: WireModel, echo: Any) -> WireModel:
    """
    Overlay the backend's echo on the requested value.

    Some endpoints answer `{"success": true}` instead of the record;
    unknown keys are ignored, so the requested value is what remains.
    """
    if isinstance(echo, dict):
        return type(requested).model_validate({**requested.to_wire(), **echo})
    return requested


class ExpenseStore:
    """
    In-memory mirror of the expense backend with optimistic updates.

    One instance lives for the whole app session and is handed to every
    consumer explicitly. State only changes through dispatch().

    Usage:
        store = ExpenseStore(HttpRemoteStore(), ExpenseSnapshot(MemoryKeyValueStore()))
        await store.load()
        result = await store.add_expense(Expense(title="Coffee", amount=150, category="Food"))
    """

    def __init__(
        self,
        remote: RemoteStoreInterface,
        snapshot: ExpenseSnapshot,
        audit_logger: Optional[SyncAuditLogger] = None,
        settings: Optional[SyncSettings] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._settings = settings or get_settings().sync
        self._remote = remote
        self._snapshot = snapshot
        self._audit_logger = audit_logger or SyncAuditLogger()
        self._new_id = id_factory or TimestampIdFactory()
        self._protected_category_ids = frozenset(self._settings.protected_category_ids)

        self._state = StoreState(currency=self._settings.default_currency)
        self._listeners: list[Listener] = []

        self._snapshot_dirty = False
        self._snapshot_task: Optional[asyncio.Task] = None

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def audit_logger(self) -> SyncAuditLogger:
        return self._audit_logger

    @property
    def protected_category_ids(self) -> frozenset[str]:
        return self._protected_category_ids

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(state)` after every dispatch. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> StoreState:
        """Run the reducer and notify listeners. The only way state changes."""
        previous = self._state
        self._state = reduce(previous, action)

        if self._state.expenses is not previous.expenses:
            self._schedule_snapshot()

        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    async def _log(self, event: SyncEvent) -> None:
        await self._audit_logger.log(event)

    # =========================================================================
    # SNAPSHOT CACHE
    # =========================================================================

    def _schedule_snapshot(self) -> None:
        """Mark the expense list dirty and make sure a writer is running."""
        self._snapshot_dirty = True
        if self._snapshot_task is not None and not self._snapshot_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (plain dispatch from sync code); flush_snapshot() writes it later
            return
        self._snapshot_task = loop.create_task(self._snapshot_writer())

    async def _snapshot_writer(self) -> None:
        # Changes made while waiting are picked up by the same write
        while self._snapshot_dirty:
            if self._settings.snapshot_debounce_seconds:
                await asyncio.sleep(self._settings.snapshot_debounce_seconds)
            self._snapshot_dirty = False
            await self._save_snapshot()

    async def _save_snapshot(self) -> None:
        expenses = self._state.expenses
        try:
            await self._snapshot.save(expenses)
        except SnapshotError as e:
            await self._log(SyncEventBuilder.snapshot_failed(e))
            return
        await self._log(SyncEventBuilder.snapshot_saved(len(expenses)))

    async def flush_snapshot(self) -> None:
        """Wait until the latest expense list has been written to the snapshot."""
        if self._snapshot_task is not None and not self._snapshot_task.done():
            await self._snapshot_task
        if self._snapshot_dirty:
            self._snapshot_dirty = False
            await self._save_snapshot()

    async def close(self) -> None:
        """Write any pending snapshot and release the transport."""
        await self.flush_snapshot()
        self._remote.close()

    # =========================================================================
    # LOAD
    # =========================================================================

    async def load(self) -> LoadReport:
        """
        Fetch every resource concurrently and replace local values.

        Expenses fall back to the local snapshot when the backend fails.
        Every other resource keeps its current value on failure.
        Nothing is retried.
        """
        self.dispatch(SetLoading(payload=True))
        await self._log(SyncEventBuilder.load_started())

        resources = list(_FETCH_ACTIONS)
        outcomes = await asyncio.gather(
            self._load_expenses(),
            *(self._load_resource(resource) for resource in resources),
        )

        report = LoadReport(expenses_from_snapshot=not outcomes[0])
        for resource, ok in zip([Resource.EXPENSES, *resources], outcomes):
            (report.loaded if ok else report.failed).append(resource.value)

        await self._log(SyncEventBuilder.load_completed(report.loaded, report.failed))
        return report

    async def _load_expenses(self) -> bool:
        try:
            raw = await self._remote.fetch(Resource.EXPENSES)
            expenses = _expense_list.validate_python(raw)
        except _REMOTE_FAILURES as e:
            await self._log(SyncEventBuilder.fetch_failed(Resource.EXPENSES.value, e))
            try:
                expenses = await self._snapshot.load()
            except SnapshotError as snapshot_error:
                await self._log(SyncEventBuilder.snapshot_failed(snapshot_error))
                expenses = []
            self.dispatch(LoadExpenses(payload=expenses))
            await self._log(SyncEventBuilder.snapshot_restored(len(expenses)))
            return False

        self.dispatch(LoadExpenses(payload=expenses))
        await self._log(SyncEventBuilder.fetch_succeeded(Resource.EXPENSES.value))
        return True

    async def _load_resource(self, resource: Resource) -> bool:
        try:
            raw = await self._remote.fetch(resource)
            action = _FETCH_ACTIONS[resource](raw)
        except _REMOTE_FAILURES as e:
            await self._log(SyncEventBuilder.fetch_failed(resource.value, e))
            return False

        self.dispatch(action)
        await self._log(SyncEventBuilder.fetch_succeeded(resource.value))
        return True

    # =========================================================================
    # GENERIC OPTIMISTIC OPERATIONS
    # =========================================================================

    async def _add(
        self,
        resource: Resource,
        entity: WireModel,
        action_cls: Callable[..., Action],
    ) -> MutationResult:
        try:
            echo = await self._remote.create(resource, entity.to_wire())
            saved = type(entity).model_validate(echo)
        except _REMOTE_FAILURES as e:
            local = entity if entity.id else entity.model_copy(update={"id": self._new_id()})
            self.dispatch(action_cls(payload=local))
            await self._log(SyncEventBuilder.remote_write_failed(resource.value, "add", local.id, e))
            return MutationResult.local_only(local, e)

        if not saved.id:
            saved = saved.model_copy(update={"id": entity.id or self._new_id()})
        self.dispatch(action_cls(payload=saved))
        await self._log(SyncEventBuilder.remote_write_succeeded(resource.value, "add", saved.id))
        return MutationResult.remote(saved)

    async def _update(
        self,
        resource: Resource,
        entity: WireModel,
        action_cls: Callable[..., Action],
    ) -> MutationResult:
        if not entity.id:
            raise ValueError(f"Cannot update {resource.value} without an id")

        try:
            echo = await self._remote.replace(resource, entity.to_wire(), entity.id)
            saved = _echo_or(entity, echo)
        except _REMOTE_FAILURES as e:
            self.dispatch(action_cls(payload=entity))
            await self._log(SyncEventBuilder.remote_write_failed(resource.value, "update", entity.id, e))
            return MutationResult.local_only(entity, e)

        if saved.id != entity.id:
            saved = saved.model_copy(update={"id": entity.id})
        self.dispatch(action_cls(payload=saved))
        await self._log(SyncEventBuilder.remote_write_succeeded(resource.value, "update", entity.id))
        return MutationResult.remote(saved)

    async def _delete(
        self,
        resource: Resource,
        entity_id: str,
        action_cls: Callable[..., Action],
    ) -> MutationResult:
        try:
            await self._remote.delete(resource, entity_id)
        except TransportError as e:
            self.dispatch(action_cls(payload=entity_id))
            await self._log(SyncEventBuilder.remote_write_failed(resource.value, "delete", entity_id, e))
            return MutationResult.local_only(None, e)

        self.dispatch(action_cls(payload=entity_id))
        await self._log(SyncEventBuilder.remote_write_succeeded(resource.value, "delete", entity_id))
        return MutationResult.remote(None)

    async def _replace_scalar(
        self,
        resource: Resource,
        requested: Any,
        send: Callable[[], Any],
        parse_echo: Callable[[Any], Any],
        action_cls: Callable[..., Action],
    ) -> MutationResult:
        try:
            echo = await send()
            value = parse_echo(echo)
        except _REMOTE_FAILURES as e:
            self.dispatch(action_cls(payload=requested))
            await self._log(SyncEventBuilder.remote_write_failed(resource.value, "replace", None, e))
            return MutationResult.local_only(requested, e)

        self.dispatch(action_cls(payload=value))
        await self._log(SyncEventBuilder.remote_write_succeeded(resource.value, "replace", None))
        return MutationResult.remote(value)

    # =========================================================================
    # EXPENSES
    # =========================================================================

    async def add_expense(self, expense: Expense) -> MutationResult:
        """Add an entry (newest first). A missing id is assigned by the backend or synthesised."""
        result = await self._add(Resource.EXPENSES, expense, AddExpense)
        await self._update_balances(added=result.entity)
        return result

    async def update_expense(self, expense: Expense) -> MutationResult:
        """Replace the entry with the same id. No merge, last writer wins."""
        previous = self._state.find_expense(expense.id) if expense.id else None
        result = await self._update(Resource.EXPENSES, expense, UpdateExpense)
        if previous is not None:
            await self._update_balances(added=result.entity, removed=previous)
        return result

    async def delete_expense(self, expense_id: str) -> MutationResult:
        """Remove the entry locally whatever the backend says."""
        previous = self._state.find_expense(expense_id)
        result = await self._delete(Resource.EXPENSES, expense_id, DeleteExpense)
        if previous is not None:
            await self._update_balances(removed=previous)
        return result

    async def refresh_expense(self, expense_id: str) -> Optional[Expense]:
        """
        Re-read one entry from the backend.

        Returns the backend's version (and stores it locally), or the local
        copy when the backend can't be reached or doesn't know the id.
        """
        try:
            raw = await self._remote.fetch_one(Resource.EXPENSES, expense_id)
            remote = Expense.model_validate(raw) if raw is not None else None
        except _REMOTE_FAILURES as e:
            await self._log(SyncEventBuilder.fetch_failed(Resource.EXPENSES.value, e))
            return self._state.find_expense(expense_id)

        if remote is None:
            return self._state.find_expense(expense_id)
        if remote.id != expense_id:
            remote = remote.model_copy(update={"id": expense_id})
        self.dispatch(UpdateExpense(payload=remote))
        return remote

    async def _update_balances(
        self,
        added: Optional[Expense] = None,
        removed: Optional[Expense] = None,
    ) -> None:
        current = self._state.balances
        balances = adjust_balances(current, added=added, removed=removed)
        if balances == current:
            return

        try:
            await self._remote.replace(Resource.BALANCES, balances.to_wire())
        except TransportError as e:
            await self._log(SyncEventBuilder.remote_write_failed(Resource.BALANCES.value, "replace", None, e))
        else:
            await self._log(SyncEventBuilder.remote_write_succeeded(Resource.BALANCES.value, "replace", None))
        # Re-apply to the latest balances so concurrent entries are not lost
        self.dispatch(SetBalances(payload=adjust_balances(self._state.balances, added=added, removed=removed)))

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    async def add_category(self, category: Category) -> MutationResult:
        return await self._add(Resource.CATEGORIES, category, AddCategory)

    async def delete_category(self, category_id: str) -> MutationResult:
        """
        Delete a custom category.

        Raises:
            ProtectedEntityError: For default category ids. Nothing is sent
                                  and local state is untouched.
        """
        if category_id in self._protected_category_ids:
            await self._log(
                SyncEventBuilder.protected_entity_rejected(Resource.CATEGORIES.value, category_id)
            )
            raise ProtectedEntityError(Resource.CATEGORIES.value, category_id)
        return await self._delete(Resource.CATEGORIES, category_id, DeleteCategory)

    # =========================================================================
    # PAYMENT METHODS / BANKS / UPI APPS
    # =========================================================================

    async def add_payment_method(self, payment_method: PaymentOption) -> MutationResult:
        return await self._add(Resource.PAYMENT_METHODS, payment_method, AddPaymentMethod)

    async def delete_payment_method(self, payment_method_id: str) -> MutationResult:
        return await self._delete(Resource.PAYMENT_METHODS, payment_method_id, DeletePaymentMethod)

    async def add_bank(self, bank: PaymentOption) -> MutationResult:
        return await self._add(Resource.BANKS, bank, AddBank)

    async def delete_bank(self, bank_id: str) -> MutationResult:
        return await self._delete(Resource.BANKS, bank_id, DeleteBank)

    async def add_upi_app(self, upi_app: PaymentOption) -> MutationResult:
        return await self._add(Resource.UPI_APPS, upi_app, AddUpiApp)

    async def delete_upi_app(self, upi_app_id: str) -> MutationResult:
        return await self._delete(Resource.UPI_APPS, upi_app_id, DeleteUpiApp)

    # =========================================================================
    # SCALARS
    # =========================================================================

    async def update_budget(self, amount: Union[Decimal, int, float, str]) -> MutationResult:
        """Replace the current period's budget. The previous value is discarded."""
        body = _BudgetBody(budget=amount)
        return await self._replace_scalar(
            Resource.BUDGET,
            body.budget,
            lambda: self._remote.replace(Resource.BUDGET, body.to_wire()),
            lambda echo: _BudgetBody.model_validate(echo).budget,
            SetBudget,
        )

    async def update_currency(self, symbol: str) -> MutationResult:
        """Change the display currency. Stored amounts are not converted."""
        body = _CurrencyBody(currency=symbol)
        return await self._replace_scalar(
            Resource.CURRENCY,
            body.currency,
            lambda: self._remote.create(Resource.CURRENCY, body.to_wire()),
            lambda echo: _echo_or(body, echo).currency,
            SetCurrency,
        )

    async def update_user(self, user: UserProfile) -> MutationResult:
        return await self._replace_scalar(
            Resource.USER,
            user,
            lambda: self._remote.replace(Resource.USER, user.to_wire()),
            lambda echo: _echo_or(user, echo),
            SetUser,
        )

    async def update_preferences(self, preferences: Preferences) -> MutationResult:
        return await self._replace_scalar(
            Resource.PREFERENCES,
            preferences,
            lambda: self._remote.replace(Resource.PREFERENCES, preferences.to_wire()),
            lambda echo: _echo_or(preferences, echo),
            SetPreferences,
        )

    async def update_balances(self, balances: Balances) -> MutationResult:
        """Set cash/UPI balances directly (e.g. after counting cash)."""
        return await self._replace_scalar(
            Resource.BALANCES,
            balances,
            lambda: self._remote.replace(Resource.BALANCES, balances.to_wire()),
            lambda echo: _echo_or(balances, echo),
            SetBalances,
        )

    # =========================================================================
    # DEBTS
    # =========================================================================

    async def add_debt(self, debt: Debt) -> MutationResult:
        """Record a new debt. It starts unsettled with nothing repaid."""
        fresh = debt.model_copy(update={
            "remaining_amount": debt.original_amount,
            "status": DebtStatus.UNSETTLED,
        })
        return await self._add(Resource.DEBTS, fresh, AddDebt)

    async def update_debt(self, debt: Debt) -> MutationResult:
        return await self._update(Resource.DEBTS, debt, UpdateDebt)

    async def delete_debt(self, debt_id: str) -> MutationResult:
        return await self._delete(Resource.DEBTS, debt_id, DeleteDebt)

    async def record_debt_payment(
        self,
        debt_id: str,
        amount: Union[Decimal, int, float, str],
    ) -> MutationResult:
        """
        Reduce what is left on a debt.

        The remaining amount is clamped to [0, original]; reaching 0 settles
        the debt.

        Raises:
            EntityNotFoundError: If no local debt has this id
            ValidationError: If the amount is negative or not a number
        """
        debt = self._state.find_debt(debt_id)
        if debt is None:
            raise EntityNotFoundError(Resource.DEBTS.value, debt_id)

        paid = _payment_amount.validate_python(amount)
        remaining = min(debt.original_amount, max(Decimal("0"), debt.remaining_amount - paid))
        status = DebtStatus.SETTLED if remaining == 0 else DebtStatus.UNSETTLED
        return await self.update_debt(
            debt.model_copy(update={"remaining_amount": remaining, "status": status})
        )
