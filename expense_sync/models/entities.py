"""
Core Entity Models for Expense Sync

These models define the strict schemas for every record mirrored from the
expense backend. They are designed to:
1. Enforce type safety at runtime (amounts are Decimal, never negative)
2. Translate between the backend's camelCase JSON and snake_case Python
3. Stay immutable so the reducer can share them between states

DESIGN DECISION: Identifiers are opaque strings and optional on creation.
The backend assigns them on POST; when it is unreachable the store
synthesises one locally.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    model_validator,
)
from pydantic.alias_generators import to_camel


# Decimal in Python, plain JSON number on the wire (the backend is JavaScript)
Amount = Annotated[
    Decimal,
    Field(ge=0),
    PlainSerializer(float, return_type=float, when_used="json"),
]


def _date_only(value: Any) -> Any:
    """Accept full ISO timestamps where a calendar date is expected."""
    if isinstance(value, str) and len(value) > 10 and value[10] in ("T", " "):
        return value[:10]
    if isinstance(value, dt.datetime):
        return value.date()
    return value


CalendarDate = Annotated[dt.date, BeforeValidator(_date_only)]


# =============================================================================
# ENUMS
# =============================================================================

class EntryType(str, Enum):
    """Direction of money for an expense-list entry."""
    INCOME = "income"
    OUTCOME = "outcome"


class DebtType(str, Enum):
    """Who owes whom."""
    OWE = "owe"          # I owe the person
    RECEIVE = "receive"  # the person owes me


class DebtStatus(str, Enum):
    UNSETTLED = "unsettled"
    SETTLED = "settled"


# =============================================================================
# BASE
# =============================================================================

class WireModel(BaseModel):
    """
    Base for every record exchanged with the backend.

    Python attributes are snake_case, JSON keys are camelCase.
    Unknown keys sent by the backend are ignored.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        """Serialize to the JSON body the backend expects."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# EXPENSES
# =============================================================================

class Expense(WireModel):
    """
    A single income or outcome entry.

    `category` holds a Category title, not an id. Nothing guarantees the
    title still exists; display code falls back to neutral branding.
    """
    id: Optional[str] = None
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the money was for"
    )
    amount: Amount
    category: str = Field(
        ...,
        description="Title of the category this entry belongs to"
    )
    date: CalendarDate = Field(
        default_factory=dt.date.today,
        description="Calendar date of the entry"
    )
    payment: str = Field(
        default="",
        description="Payment method name (cash, upi, net banking, ...)"
    )
    type: EntryType = EntryType.OUTCOME
    notes: Optional[str] = None
    bank: Optional[str] = None
    upi_app: Optional[str] = None

    @property
    def is_income(self) -> bool:
        return self.type == EntryType.INCOME


# =============================================================================
# OPTION LISTS
# =============================================================================

class Category(WireModel):
    """A spending/income category. `title` is the display key."""
    id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(default="ellipsis-horizontal-outline")
    color: str = Field(
        default="#9CA3AF",
        pattern=r"^#[0-9A-Fa-f]{3,8}$",
        description="Display hex colour"
    )


class PaymentOption(WireModel):
    """
    Named option shared by payment methods, banks and UPI apps.

    These lists support add and delete only.
    """
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = ""


# Distinct names for readability at call sites
PaymentMethod = PaymentOption
Bank = PaymentOption
UpiApp = PaymentOption


# =============================================================================
# DEBTS
# =============================================================================

class Debt(WireModel):
    """
    A ledger entry: money owed to or by another person.

    remaining_amount defaults to original_amount and is kept within
    [0, original_amount].
    """
    id: Optional[str] = None
    type: DebtType
    person: str = Field(..., min_length=1, max_length=100)
    original_amount: Amount
    remaining_amount: Amount
    reason: str = ""
    date: CalendarDate = Field(default_factory=dt.date.today)
    status: DebtStatus = DebtStatus.UNSETTLED

    @model_validator(mode="before")
    @classmethod
    def default_remaining(cls, data: Any) -> Any:
        """A new debt starts with nothing repaid."""
        if isinstance(data, dict):
            if data.get("remaining_amount") is None and data.get("remainingAmount") is None:
                original = data.get("original_amount", data.get("originalAmount"))
                data = {**data, "remaining_amount": original}
        return data

    @model_validator(mode="after")
    def check_remaining(self) -> "Debt":
        if self.remaining_amount > self.original_amount:
            raise ValueError("Remaining amount cannot exceed original amount")
        return self

    @property
    def is_settled(self) -> bool:
        return self.status == DebtStatus.SETTLED


# =============================================================================
# SCALARS
# =============================================================================

class UserProfile(WireModel):
    name: str = "User1234"
    email: str = "user1234@email.com"


class Preferences(WireModel):
    push_notifications: bool = False
    budget_alerts: bool = False


class Balances(WireModel):
    """Cash in hand and money held in UPI / bank apps."""
    cash_balance: Amount = Decimal("0")
    upi_balance: Amount = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.cash_balance + self.upi_balance
