"""
Tests for the synchronized expense store.

Every operation is exercised twice: with the backend answering, and with
it unreachable. Local state must end up the same either way; only the
reported outcome differs.
"""

import asyncio
from decimal import Decimal

import pytest
from pydantic import ValidationError

from expense_sync.config import SyncSettings
from expense_sync.models import (
    Balances,
    Category,
    Debt,
    DebtStatus,
    DebtType,
    EntryType,
    Expense,
    PaymentOption,
    Preferences,
    SyncEventType,
    SyncOutcome,
    UserProfile,
)
from expense_sync.models.state import AddExpense
from expense_sync.services.remote import Resource
from expense_sync.services.snapshot import (
    EXPENSES_KEY,
    ExpenseSnapshot,
    JsonFileKeyValueStore,
    MemoryKeyValueStore,
)
from expense_sync.store import EntityNotFoundError, ExpenseStore, ProtectedEntityError

from conftest import FakeRemoteStore


def coffee(**overrides) -> Expense:
    fields = {"title": "Coffee", "amount": Decimal("150"), "category": "Food", "type": EntryType.OUTCOME}
    fields.update(overrides)
    return Expense(**fields)


class TestLoad:
    """Tests for the boot sequence."""

    @pytest.mark.asyncio
    async def test_load_replaces_every_resource(self, store, remote):
        """Test that a successful load mirrors the backend."""
        remote.data[Resource.EXPENSES] = [
            {"id": "e1", "title": "Rent", "amount": 9000, "category": "Bills", "date": "2024-05-01"},
        ]
        remote.data[Resource.CATEGORIES] = [{"id": "1", "title": "Food", "color": "#FF6B6B"}]
        remote.data[Resource.BANKS] = [{"id": "b1", "name": "HDFC"}]
        remote.data[Resource.BUDGET] = {"budget": 3500}
        remote.data[Resource.CURRENCY] = {"currency": "$"}
        remote.data[Resource.DEBTS] = [
            {"id": "d1", "type": "owe", "person": "Asha", "originalAmount": 500},
        ]

        report = await store.load()

        assert report.fully_synced
        assert not report.expenses_from_snapshot
        assert len(report.loaded) == 11
        state = store.state
        assert state.loading is False
        assert [e.id for e in state.expenses] == ["e1"]
        assert state.categories[0].title == "Food"
        assert state.banks[0].name == "HDFC"
        assert state.budget == Decimal("3500")
        assert state.currency == "$"
        assert state.debts[0].remaining_amount == Decimal("500")

    @pytest.mark.asyncio
    async def test_failed_expenses_fetch_uses_snapshot(self, remote, audit_logger, sync_settings):
        """Test that boot falls back to the saved expense list."""
        saved = [coffee(id="local-1")]
        kv = MemoryKeyValueStore()
        await ExpenseSnapshot(kv).save(saved)
        remote.failing = {Resource.EXPENSES}
        store = ExpenseStore(remote, ExpenseSnapshot(kv), audit_logger, sync_settings)

        report = await store.load()

        assert report.expenses_from_snapshot
        assert "expenses" in report.failed
        assert store.state.loading is False
        assert [e.id for e in store.state.expenses] == ["local-1"]
        assert audit_logger.recent_events(event_type=SyncEventType.SNAPSHOT_RESTORED)

    @pytest.mark.asyncio
    async def test_failed_expenses_fetch_without_snapshot_gives_empty_list(self, store, remote):
        """Test boot with no backend and no snapshot."""
        remote.offline = True

        report = await store.load()

        assert store.state.expenses == []
        assert store.state.loading is False
        assert len(report.failed) == 11

    @pytest.mark.asyncio
    async def test_corrupt_snapshot_gives_empty_list(self, remote, audit_logger, sync_settings):
        """Test that an unreadable snapshot is treated as absent."""
        kv = MemoryKeyValueStore({EXPENSES_KEY: "not json at all"})
        remote.failing = {Resource.EXPENSES}
        store = ExpenseStore(remote, ExpenseSnapshot(kv), audit_logger, sync_settings)

        await store.load()

        assert store.state.expenses == []
        assert store.state.loading is False
        assert audit_logger.recent_events(event_type=SyncEventType.SNAPSHOT_FAILED)

    @pytest.mark.asyncio
    async def test_failed_scalar_fetch_keeps_default(self, store, remote):
        """Test that other failures keep defaults and don't consult the snapshot."""
        remote.failing = {Resource.BUDGET, Resource.USER}

        report = await store.load()

        assert set(report.failed) == {"budget", "user"}
        assert store.state.budget == Decimal("0")
        assert store.state.user.name == "User1234"

    @pytest.mark.asyncio
    async def test_malformed_payload_counts_as_failure(self, store, remote):
        """Test that a body that doesn't validate is treated like a transport error."""
        remote.data[Resource.BUDGET] = {"budget": "lots"}

        report = await store.load()

        assert "budget" in report.failed
        assert store.state.budget == Decimal("0")


class TestExpenses:
    """Tests for expense mutations."""

    @pytest.mark.asyncio
    async def test_add_uses_server_id(self, store):
        """Test that a confirmed add holds the echoed id."""
        result = await store.add_expense(coffee())

        assert result.outcome == SyncOutcome.REMOTE
        assert result.entity.id == "srv-1"
        assert [e.id for e in store.state.expenses] == ["srv-1"]

    @pytest.mark.asyncio
    async def test_add_offline_synthesises_id(self, store, remote):
        """Test adding Coffee/150/Food while the backend is down."""
        remote.offline = True

        result = await store.add_expense(coffee())

        assert result.outcome == SyncOutcome.LOCAL_ONLY
        assert "connection refused" in result.error
        assert len(store.state.expenses) == 1
        added = store.state.expenses[0]
        assert added.id
        assert added.title == "Coffee"
        assert added.amount == Decimal("150")

    @pytest.mark.asyncio
    async def test_offline_ids_are_unique(self, store, remote):
        """Test that back-to-back offline adds get distinct ids."""
        remote.offline = True

        results = [await store.add_expense(coffee()) for _ in range(5)]

        ids = [r.entity.id for r in results]
        assert len(set(ids)) == 5

    @pytest.mark.asyncio
    async def test_caller_id_kept_offline(self, store, remote):
        """Test that an id supplied by the caller is not replaced."""
        remote.offline = True

        result = await store.add_expense(coffee(id="mine"))

        assert result.entity.id == "mine"

    @pytest.mark.asyncio
    async def test_newest_first(self, store):
        await store.add_expense(coffee(title="First"))
        await store.add_expense(coffee(title="Second"))

        assert [e.title for e in store.state.expenses] == ["Second", "First"]

    @pytest.mark.asyncio
    async def test_update_offline_applies_locally(self, store, remote):
        """Test that an update survives a backend failure."""
        added = (await store.add_expense(coffee())).entity
        remote.offline = True

        result = await store.update_expense(added.model_copy(update={"amount": Decimal("180")}))

        assert result.outcome == SyncOutcome.LOCAL_ONLY
        assert store.state.find_expense(added.id).amount == Decimal("180")

    @pytest.mark.asyncio
    async def test_two_updates_last_writer_wins(self, store):
        """Test that the later update is the one that remains."""
        added = (await store.add_expense(coffee())).entity

        await store.update_expense(added.model_copy(update={"title": "Latte"}))
        await store.update_expense(added.model_copy(update={"title": "Espresso"}))

        matching = [e for e in store.state.expenses if e.id == added.id]
        assert len(matching) == 1
        assert matching[0].title == "Espresso"

    @pytest.mark.asyncio
    async def test_concurrent_updates_last_resolved_wins(self, store, remote):
        """Test that concurrent updates leave exactly one entry."""
        added = (await store.add_expense(coffee())).entity
        remote.offline = True

        await asyncio.gather(
            store.update_expense(added.model_copy(update={"title": "Latte"})),
            store.update_expense(added.model_copy(update={"title": "Espresso"})),
        )

        matching = [e for e in store.state.expenses if e.id == added.id]
        assert len(matching) == 1
        assert matching[0].title == "Espresso"

    @pytest.mark.asyncio
    async def test_update_without_id_is_rejected(self, store):
        with pytest.raises(ValueError):
            await store.update_expense(coffee())

    @pytest.mark.asyncio
    async def test_delete_offline_removes_locally(self, store, remote):
        """Test that a delete is applied even when the backend refuses it."""
        added = (await store.add_expense(coffee())).entity
        remote.offline = True

        result = await store.delete_expense(added.id)

        assert result.outcome == SyncOutcome.LOCAL_ONLY
        assert store.state.expenses == []

    @pytest.mark.asyncio
    async def test_refresh_expense_pulls_backend_version(self, store, remote):
        """Test re-reading a single entry."""
        added = (await store.add_expense(coffee())).entity
        remote.data[Resource.EXPENSES][0]["title"] = "Cold Coffee"

        refreshed = await store.refresh_expense(added.id)

        assert refreshed.title == "Cold Coffee"
        assert store.state.find_expense(added.id).title == "Cold Coffee"

    @pytest.mark.asyncio
    async def test_refresh_expense_offline_returns_local_copy(self, store, remote):
        added = (await store.add_expense(coffee())).entity
        remote.offline = True

        assert await store.refresh_expense(added.id) == added

    @pytest.mark.asyncio
    async def test_failures_are_audited(self, store, remote, audit_logger):
        """Test that absorbed failures are still recorded."""
        remote.offline = True

        await store.add_expense(coffee())

        failure = audit_logger.last_failure()
        assert failure is not None
        assert failure.event_type == SyncEventType.REMOTE_WRITE_FAILED
        assert failure.resource == "expenses"


class TestBalances:
    """Tests for cash / UPI bookkeeping driven by expenses."""

    @pytest.mark.asyncio
    async def test_income_and_outcome_move_cash(self, store, remote):
        """Test that cash entries move the cash balance."""
        await store.add_expense(coffee(title="Pocket money", amount=1000, type=EntryType.INCOME, payment="Cash"))
        await store.add_expense(coffee(amount=200, payment="cash"))

        assert store.state.balances.cash_balance == Decimal("800")
        assert remote.data[Resource.BALANCES]["cashBalance"] == 800.0

    @pytest.mark.asyncio
    async def test_update_reverts_previous_effect(self, store):
        """Test that changing the payment moves the amount between balances."""
        await store.update_balances(Balances(cash_balance=1000, upi_balance=1000))
        added = (await store.add_expense(coffee(amount=200, payment="cash"))).entity

        await store.update_expense(added.model_copy(update={"payment": "upi"}))

        assert store.state.balances.cash_balance == Decimal("1000")
        assert store.state.balances.upi_balance == Decimal("800")

    @pytest.mark.asyncio
    async def test_delete_reverts_effect(self, store):
        await store.update_balances(Balances(cash_balance=500))
        added = (await store.add_expense(coffee(amount=100, payment="cash"))).entity

        await store.delete_expense(added.id)

        assert store.state.balances.cash_balance == Decimal("500")

    @pytest.mark.asyncio
    async def test_balances_floor_at_zero(self, store):
        await store.update_balances(Balances(upi_balance=50))

        await store.add_expense(coffee(amount=100, payment="UPI"))

        assert store.state.balances.upi_balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_balances_applied_when_backend_down(self, store, remote):
        """Test that balance changes are kept even if the PUT fails."""
        remote.failing = {Resource.BALANCES}

        await store.add_expense(coffee(amount=300, type=EntryType.INCOME, payment="netbanking"))

        assert store.state.balances.upi_balance == Decimal("300")

    @pytest.mark.asyncio
    async def test_other_payments_leave_balances_alone(self, store, remote):
        await store.add_expense(coffee(payment="card"))

        assert store.state.balances == Balances()
        assert ("PUT", Resource.BALANCES, None) not in remote.calls


class TestCategories:
    """Tests for category mutations and the protected-id guard."""

    @pytest.mark.asyncio
    async def test_delete_protected_category_raises(self, store, remote):
        """Test that default category "1" can't be deleted."""
        remote.data[Resource.CATEGORIES] = [
            {"id": "1", "title": "Food"},
            {"id": "42", "title": "Pets"},
        ]
        await store.load()
        before = store.state.categories
        calls_before = len(remote.calls)

        with pytest.raises(ProtectedEntityError, match="Default categories cannot be deleted"):
            await store.delete_category("1")

        assert store.state.categories == before
        assert len(remote.calls) == calls_before

    @pytest.mark.asyncio
    async def test_guard_applies_even_when_offline(self, store, remote):
        remote.offline = True

        with pytest.raises(ProtectedEntityError):
            await store.delete_category("9")

    @pytest.mark.asyncio
    async def test_rejection_is_audited(self, store, audit_logger):
        with pytest.raises(ProtectedEntityError):
            await store.delete_category("3")

        events = audit_logger.recent_events(event_type=SyncEventType.PROTECTED_ENTITY_REJECTED)
        assert len(events) == 1
        assert events[0].entity_id == "3"

    @pytest.mark.asyncio
    async def test_delete_custom_category_removes_only_it(self, store, remote):
        """Test that a non-default id removes exactly that category."""
        remote.data[Resource.CATEGORIES] = [
            {"id": "1", "title": "Food"},
            {"id": "42", "title": "Pets"},
            {"id": "43", "title": "Gifts"},
        ]
        await store.load()

        await store.delete_category("42")

        assert [c.id for c in store.state.categories] == ["1", "43"]

    @pytest.mark.asyncio
    async def test_add_category_offline_appends(self, store, remote):
        remote.offline = True

        result = await store.add_category(Category(title="Pets", color="#123456"))

        assert result.outcome == SyncOutcome.LOCAL_ONLY
        assert store.state.categories[-1].title == "Pets"
        assert store.state.categories[-1].id


class TestPaymentOptions:
    """Tests for payment methods, banks and UPI apps."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", ["payment_method", "bank", "upi_app"])
    async def test_add_and_delete(self, store, kind):
        add = getattr(store, f"add_{kind}")
        delete = getattr(store, f"delete_{kind}")
        field = f"{kind}s"

        added = (await add(PaymentOption(name="Option"))).entity
        assert [o.name for o in getattr(store.state, field)] == ["Option"]

        await delete(added.id)
        assert getattr(store.state, field) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", ["payment_method", "bank", "upi_app"])
    async def test_offline_add_and_delete(self, store, remote, kind):
        remote.offline = True
        add = getattr(store, f"add_{kind}")
        delete = getattr(store, f"delete_{kind}")
        field = f"{kind}s"

        added = (await add(PaymentOption(name="Option"))).entity
        assert len(getattr(store.state, field)) == 1

        await delete(added.id)
        assert getattr(store.state, field) == []


class TestScalars:
    """Tests for budget, currency, user and preferences."""

    @pytest.mark.asyncio
    async def test_budget_offline(self, store, remote):
        """Test budget 0 -> 5000 while the backend is down."""
        remote.offline = True
        assert store.state.budget == Decimal("0")

        result = await store.update_budget(5000)

        assert result.outcome == SyncOutcome.LOCAL_ONLY
        assert store.state.budget == Decimal("5000")

    @pytest.mark.asyncio
    async def test_budget_confirmed(self, store, remote):
        result = await store.update_budget("4200.50")

        assert result.confirmed
        assert store.state.budget == Decimal("4200.50")
        assert remote.data[Resource.BUDGET] == {"budget": 4200.5}

    @pytest.mark.asyncio
    async def test_negative_budget_rejected(self, store):
        with pytest.raises(ValueError):
            await store.update_budget(-1)

    @pytest.mark.asyncio
    async def test_currency_posts(self, store, remote):
        result = await store.update_currency("$")

        assert result.confirmed
        assert store.state.currency == "$"
        assert ("POST", Resource.CURRENCY, None) in remote.calls

    @pytest.mark.asyncio
    async def test_user_with_bare_success_echo(self, store, remote):
        """Test that a `{success: true}` answer keeps the requested value."""
        async def bare_success(resource, body, entity_id=None):
            return {"success": True}
        remote.replace = bare_success

        result = await store.update_user(UserProfile(name="Priya", email="priya@example.com"))

        assert result.confirmed
        assert store.state.user.name == "Priya"

    @pytest.mark.asyncio
    async def test_preferences_offline(self, store, remote):
        remote.offline = True

        await store.update_preferences(Preferences(budget_alerts=True))

        assert store.state.preferences.budget_alerts is True


class TestDebts:
    """Tests for the debt ledger."""

    def _debt(self, **overrides) -> Debt:
        fields = {"type": DebtType.OWE, "person": "Asha", "original_amount": Decimal("1000")}
        fields.update(overrides)
        return Debt(**fields)

    @pytest.mark.asyncio
    async def test_add_debt_starts_unsettled(self, store):
        result = await store.add_debt(
            self._debt(remaining_amount=Decimal("10"), status=DebtStatus.SETTLED)
        )

        assert result.entity.remaining_amount == Decimal("1000")
        assert result.entity.status == DebtStatus.UNSETTLED
        assert store.state.debts[0].id == "srv-1"

    @pytest.mark.asyncio
    async def test_payment_reduces_remaining(self, store):
        debt = (await store.add_debt(self._debt())).entity

        await store.record_debt_payment(debt.id, 400)

        assert store.state.find_debt(debt.id).remaining_amount == Decimal("600")
        assert store.state.find_debt(debt.id).status == DebtStatus.UNSETTLED

    @pytest.mark.asyncio
    async def test_overpayment_settles_at_zero(self, store, remote):
        """Test that remaining is clamped and the debt settles."""
        debt = (await store.add_debt(self._debt())).entity
        remote.offline = True

        result = await store.record_debt_payment(debt.id, 5000)

        assert result.outcome == SyncOutcome.LOCAL_ONLY
        settled = store.state.find_debt(debt.id)
        assert settled.remaining_amount == Decimal("0")
        assert settled.is_settled

    @pytest.mark.asyncio
    async def test_payment_on_unknown_debt(self, store):
        with pytest.raises(EntityNotFoundError):
            await store.record_debt_payment("nope", 10)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [-100, "lots"])
    async def test_invalid_payment_rejected(self, store, amount):
        """Test that negative or non-numeric payments leave the debt untouched."""
        debt = (await store.add_debt(self._debt())).entity

        with pytest.raises(ValidationError):
            await store.record_debt_payment(debt.id, amount)

        assert store.state.find_debt(debt.id).remaining_amount == Decimal("1000")

    @pytest.mark.asyncio
    async def test_delete_debt_offline(self, store, remote):
        debt = (await store.add_debt(self._debt())).entity
        remote.offline = True

        await store.delete_debt(debt.id)

        assert store.state.debts == []


class TestSnapshotAndListeners:
    """Tests for the expense snapshot cache and change notifications."""

    @pytest.mark.asyncio
    async def test_flush_writes_latest_list(self, store, kv_storage):
        await store.add_expense(coffee(title="One"))
        await store.add_expense(coffee(title="Two"))

        await store.flush_snapshot()

        saved = await ExpenseSnapshot(kv_storage).load()
        assert [e.title for e in saved] == ["Two", "One"]

    @pytest.mark.asyncio
    async def test_debounced_writes_are_coalesced(self, remote, kv_storage, audit_logger):
        """Test that changes inside the debounce window produce one write."""
        settings = SyncSettings(server_url="http://test.local", snapshot_debounce_seconds=0.01)
        store = ExpenseStore(remote, ExpenseSnapshot(kv_storage), audit_logger, settings)

        await store.add_expense(coffee(title="One"))
        await store.add_expense(coffee(title="Two"))
        await store.flush_snapshot()

        assert len(audit_logger.recent_events(event_type=SyncEventType.SNAPSHOT_SAVED)) == 1
        saved = await ExpenseSnapshot(kv_storage).load()
        assert len(saved) == 2

    @pytest.mark.asyncio
    async def test_close_flushes_and_releases_remote(self, remote, kv_storage, audit_logger):
        """Test that close() writes a pending snapshot before closing the transport."""
        settings = SyncSettings(server_url="http://test.local", snapshot_debounce_seconds=0.01)
        store = ExpenseStore(remote, ExpenseSnapshot(kv_storage), audit_logger, settings)
        await store.add_expense(coffee())

        await store.close()

        assert remote.closed
        assert [e.title for e in await ExpenseSnapshot(kv_storage).load()] == ["Coffee"]

    @pytest.mark.asyncio
    async def test_non_expense_changes_skip_snapshot(self, store, kv_storage):
        await store.update_budget(100)
        await store.flush_snapshot()

        assert await kv_storage.get(EXPENSES_KEY) is None

    def test_dispatch_without_loop_defers_snapshot(self, store, kv_storage):
        """Test that sync dispatch works and the write waits for flush."""
        store.dispatch(AddExpense(payload=coffee(id="x")))

        assert store.state.expenses[0].id == "x"
        asyncio.run(store.flush_snapshot())
        assert asyncio.run(ExpenseSnapshot(kv_storage).load())[0].id == "x"

    @pytest.mark.asyncio
    async def test_subscribers_see_each_change(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda state: seen.append(len(state.expenses)))

        await store.add_expense(coffee())
        unsubscribe()
        await store.add_expense(coffee())

        assert seen == [1]

    @pytest.mark.asyncio
    async def test_offline_entries_survive_reboot_over_corrupt_file(self, tmp_path, audit_logger, sync_settings):
        """Test that a corrupt snapshot file is replaced by the next write."""
        path = tmp_path / "snapshot.json"
        path.write_text("{not json", encoding="utf-8")
        remote = FakeRemoteStore()
        remote.offline = True
        store = ExpenseStore(remote, ExpenseSnapshot(JsonFileKeyValueStore(path)), audit_logger, sync_settings)
        await store.load()
        assert store.state.expenses == []

        await store.add_expense(coffee())
        await store.flush_snapshot()

        rebooted = ExpenseStore(remote, ExpenseSnapshot(JsonFileKeyValueStore(path)), audit_logger, sync_settings)
        report = await rebooted.load()
        assert report.expenses_from_snapshot
        assert [e.title for e in rebooted.state.expenses] == ["Coffee"]
