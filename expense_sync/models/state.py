"""
Store State and Actions

The whole mirrored state lives in one immutable StoreState record.
It only changes through actions: a closed, discriminated union of
pydantic models processed by the pure reducer in expense_sync.store.reducer.
"""

from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from expense_sync.models.entities import (
    Amount,
    Balances,
    Category,
    Debt,
    Expense,
    PaymentOption,
    Preferences,
    UserProfile,
)


class StoreState(BaseModel):
    """
    Aggregate state mirrored from the backend.

    Ordering:
    - expenses and debts: newest added first
    - categories and payment options: insertion order
    """
    model_config = ConfigDict(frozen=True)

    expenses: list[Expense] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    payment_methods: list[PaymentOption] = Field(default_factory=list)
    banks: list[PaymentOption] = Field(default_factory=list)
    upi_apps: list[PaymentOption] = Field(default_factory=list)
    debts: list[Debt] = Field(default_factory=list)

    budget: Amount = Decimal("0")
    currency: str = "₹"
    user: UserProfile = Field(default_factory=UserProfile)
    preferences: Preferences = Field(default_factory=Preferences)
    balances: Balances = Field(default_factory=Balances)
    loading: bool = True

    def find_expense(self, expense_id: str) -> Optional[Expense]:
        return next((e for e in self.expenses if e.id == expense_id), None)

    def find_debt(self, debt_id: str) -> Optional[Debt]:
        return next((d for d in self.debts if d.id == debt_id), None)


# =============================================================================
# ACTIONS
# =============================================================================

class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


# Expenses
class LoadExpenses(_Action):
    type: Literal["LOAD"] = "LOAD"
    payload: list[Expense]


class AddExpense(_Action):
    type: Literal["ADD"] = "ADD"
    payload: Expense


class UpdateExpense(_Action):
    type: Literal["UPDATE"] = "UPDATE"
    payload: Expense


class DeleteExpense(_Action):
    type: Literal["DELETE"] = "DELETE"
    payload: str


# Categories
class LoadCategories(_Action):
    type: Literal["LOAD_CATEGORIES"] = "LOAD_CATEGORIES"
    payload: list[Category]


class AddCategory(_Action):
    type: Literal["ADD_CATEGORY"] = "ADD_CATEGORY"
    payload: Category


class DeleteCategory(_Action):
    type: Literal["DELETE_CATEGORY"] = "DELETE_CATEGORY"
    payload: str


# Payment methods
class LoadPaymentMethods(_Action):
    type: Literal["LOAD_PAYMENT_METHODS"] = "LOAD_PAYMENT_METHODS"
    payload: list[PaymentOption]


class AddPaymentMethod(_Action):
    type: Literal["ADD_PAYMENT_METHOD"] = "ADD_PAYMENT_METHOD"
    payload: PaymentOption


class DeletePaymentMethod(_Action):
    type: Literal["DELETE_PAYMENT_METHOD"] = "DELETE_PAYMENT_METHOD"
    payload: str


# Banks
class LoadBanks(_Action):
    type: Literal["LOAD_BANKS"] = "LOAD_BANKS"
    payload: list[PaymentOption]


class AddBank(_Action):
    type: Literal["ADD_BANK"] = "ADD_BANK"
    payload: PaymentOption


class DeleteBank(_Action):
    type: Literal["DELETE_BANK"] = "DELETE_BANK"
    payload: str


# UPI apps
class LoadUpiApps(_Action):
    type: Literal["LOAD_UPI_APPS"] = "LOAD_UPI_APPS"
    payload: list[PaymentOption]


class AddUpiApp(_Action):
    type: Literal["ADD_UPI_APP"] = "ADD_UPI_APP"
    payload: PaymentOption


class DeleteUpiApp(_Action):
    type: Literal["DELETE_UPI_APP"] = "DELETE_UPI_APP"
    payload: str


# Debts
class LoadDebts(_Action):
    type: Literal["LOAD_DEBTS"] = "LOAD_DEBTS"
    payload: list[Debt]


class AddDebt(_Action):
    type: Literal["ADD_DEBT"] = "ADD_DEBT"
    payload: Debt


class UpdateDebt(_Action):
    type: Literal["UPDATE_DEBT"] = "UPDATE_DEBT"
    payload: Debt


class DeleteDebt(_Action):
    type: Literal["DELETE_DEBT"] = "DELETE_DEBT"
    payload: str


# Scalars
class SetLoading(_Action):
    type: Literal["SET_LOADING"] = "SET_LOADING"
    payload: bool


class SetBudget(_Action):
    type: Literal["SET_BUDGET"] = "SET_BUDGET"
    payload: Amount


class SetCurrency(_Action):
    type: Literal["SET_CURRENCY"] = "SET_CURRENCY"
    payload: str = Field(..., min_length=1)


class SetUser(_Action):
    type: Literal["SET_USER"] = "SET_USER"
    payload: UserProfile


class SetPreferences(_Action):
    type: Literal["SET_PREFERENCES"] = "SET_PREFERENCES"
    payload: Preferences


class SetBalances(_Action):
    type: Literal["SET_BALANCES"] = "SET_BALANCES"
    payload: Balances


Action = Annotated[
    Union[
        LoadExpenses, AddExpense, UpdateExpense, DeleteExpense,
        LoadCategories, AddCategory, DeleteCategory,
        LoadPaymentMethods, AddPaymentMethod, DeletePaymentMethod,
        LoadBanks, AddBank, DeleteBank,
        LoadUpiApps, AddUpiApp, DeleteUpiApp,
        LoadDebts, AddDebt, UpdateDebt, DeleteDebt,
        SetLoading, SetBudget, SetCurrency, SetUser, SetPreferences, SetBalances,
    ],
    Field(discriminator="type"),
]
