"""
Cash / UPI balance bookkeeping.

Which balance an entry moves depends on its payment method:

    income  + "cash"                -> cash up
    income  + "netbanking"          -> UPI up
    outcome + "cash"                -> cash down
    outcome + "upi" / "net banking" -> UPI down

Anything else leaves both balances alone. Balances never go below zero.
"""

from decimal import Decimal
from typing import Optional

from expense_sync.models.entities import Balances, EntryType, Expense


ZERO = Decimal("0")


def expense_effect(expense: Expense) -> tuple[Decimal, Decimal]:
    """Return the (cash, upi) delta an entry applies when it is recorded."""
    payment = (expense.payment or "").strip().lower()

    if expense.type == EntryType.INCOME:
        if payment == "cash":
            return expense.amount, ZERO
        if payment == "netbanking":
            return ZERO, expense.amount
    elif expense.type == EntryType.OUTCOME:
        if payment == "cash":
            return -expense.amount, ZERO
        if payment in ("upi", "net banking"):
            return ZERO, -expense.amount

    return ZERO, ZERO


def adjust_balances(
    balances: Balances,
    added: Optional[Expense] = None,
    removed: Optional[Expense] = None,
) -> Balances:
    """
    Revert `removed` (if any), apply `added` (if any), floor at zero.

    Update = removed old version + added new version.
    """
    cash = balances.cash_balance
    upi = balances.upi_balance

    if removed is not None:
        cash_delta, upi_delta = expense_effect(removed)
        cash -= cash_delta
        upi -= upi_delta

    if added is not None:
        cash_delta, upi_delta = expense_effect(added)
        cash += cash_delta
        upi += upi_delta

    return Balances(cash_balance=max(ZERO, cash), upi_balance=max(ZERO, upi))
