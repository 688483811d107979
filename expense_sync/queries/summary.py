"""
Summary Queries

DESIGN DECISION: Queries are DETERMINISTIC and read-only.
They take a StoreState snapshot and compute totals from the records it
holds. No I/O, no estimates; an empty state gives zeros, never None.

Only outcome entries count as spending. Income is reported separately.
"""

import calendar
import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from expense_sync.models.entities import DebtStatus, DebtType, EntryType, Expense
from expense_sync.models.state import StoreState


ZERO = Decimal("0")
HUNDRED = Decimal("100")


class BudgetStatus(BaseModel):
    """Spending against the monthly budget."""
    spent: Decimal
    budget: Decimal
    remaining: Decimal          # negative when over budget
    used_percent: Decimal       # capped at 100
    days_left: int
    daily_allowance: Decimal    # remaining spread over days_left, 0 if none left

    @property
    def over_budget(self) -> bool:
        return self.remaining < 0


class DailySpending(BaseModel):
    day: dt.date
    amount: Decimal


class LedgerTotals(BaseModel):
    """Outstanding amounts on unsettled debts."""
    to_pay: Decimal       # I owe
    to_receive: Decimal   # owed to me

    @property
    def net(self) -> Decimal:
        return self.to_receive - self.to_pay


class SummaryQueries:
    """
    Read-side computations over one StoreState.

    Usage:
        queries = SummaryQueries(store.state)
        status = queries.budget_status(2024, 5)
    """

    def __init__(self, state: StoreState):
        self._state = state

    def _outcomes_in(self, year: int, month: int) -> list[Expense]:
        return [
            e for e in self._state.expenses
            if e.type == EntryType.OUTCOME and e.date.year == year and e.date.month == month
        ]

    def month_spending(self, year: int, month: int) -> Decimal:
        return sum((e.amount for e in self._outcomes_in(year, month)), ZERO)

    def total_income(self) -> Decimal:
        return sum((e.amount for e in self._state.expenses if e.is_income), ZERO)

    def budget_status(
        self,
        year: int,
        month: int,
        today: Optional[dt.date] = None,
    ) -> BudgetStatus:
        """
        Compare the month's spending to the stored budget.

        Args:
            year, month: The month to report on
            today: Reference date for days left (defaults to today)
        """
        today = today or dt.date.today()
        spent = self.month_spending(year, month)
        budget = self._state.budget
        remaining = budget - spent

        if budget > 0:
            used_percent = min(spent / budget * HUNDRED, HUNDRED)
        else:
            used_percent = HUNDRED if spent > 0 else ZERO

        days_in_month = calendar.monthrange(year, month)[1]
        if (today.year, today.month) == (year, month):
            days_left = days_in_month - today.day
        elif (today.year, today.month) < (year, month):
            days_left = days_in_month
        else:
            days_left = 0

        daily_allowance = remaining / days_left if days_left > 0 else ZERO

        return BudgetStatus(
            spent=spent,
            budget=budget,
            remaining=remaining,
            used_percent=used_percent,
            days_left=days_left,
            daily_allowance=daily_allowance,
        )

    def category_breakdown(self, year: int, month: int) -> dict[str, Decimal]:
        """Outcome totals per category title, largest first."""
        totals: dict[str, Decimal] = {}
        for expense in self._outcomes_in(year, month):
            totals[expense.category] = totals.get(expense.category, ZERO) + expense.amount
        return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))

    def daily_spending(self, year: int, month: int) -> list[DailySpending]:
        """One entry per day of the month, including days with no spending."""
        days_in_month = calendar.monthrange(year, month)[1]
        by_day = {day: ZERO for day in range(1, days_in_month + 1)}
        for expense in self._outcomes_in(year, month):
            by_day[expense.date.day] += expense.amount
        return [
            DailySpending(day=dt.date(year, month, day), amount=amount)
            for day, amount in by_day.items()
        ]

    def ledger_totals(self) -> LedgerTotals:
        to_pay = ZERO
        to_receive = ZERO
        for debt in self._state.debts:
            if debt.status == DebtStatus.SETTLED:
                continue
            if debt.type == DebtType.OWE:
                to_pay += debt.remaining_amount
            else:
                to_receive += debt.remaining_amount
        return LedgerTotals(to_pay=to_pay, to_receive=to_receive)

    def total_balance(self) -> Decimal:
        return self._state.balances.total
