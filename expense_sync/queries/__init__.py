"""Read-side queries package."""

from expense_sync.queries.branding import (
    CATEGORY_BRANDING,
    FALLBACK_BRANDING,
    CategoryBranding,
    category_branding,
)
from expense_sync.queries.summary import (
    BudgetStatus,
    DailySpending,
    LedgerTotals,
    SummaryQueries,
)

__all__ = [
    "CATEGORY_BRANDING",
    "FALLBACK_BRANDING",
    "CategoryBranding",
    "category_branding",
    "BudgetStatus",
    "DailySpending",
    "LedgerTotals",
    "SummaryQueries",
]
