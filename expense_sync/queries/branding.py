"""Display colour/icon lookup for category titles."""

from typing import Iterable

from pydantic import BaseModel, ConfigDict

from expense_sync.models.entities import Category


class CategoryBranding(BaseModel):
    model_config = ConfigDict(frozen=True)

    color: str
    icon: str
    bg: str


def _brand(color: str, icon: str, bg: str) -> CategoryBranding:
    return CategoryBranding(color=color, icon=icon, bg=bg)


_FOOD = _brand("#FF6B6B", "fast-food-outline", "#FFF0F0")
_TRANSPORT = _brand("#F59E0B", "car-outline", "#FFF8E7")
_BILLS = _brand("#3B82F6", "receipt-outline", "#EFF6FF")
_HEALTH = _brand("#22C55E", "medkit-outline", "#F0FDF4")
_FUN = _brand("#8B5CF6", "musical-notes-outline", "#F3E8FF")
_OTHER = _brand("#9CA3AF", "ellipsis-horizontal-outline", "#F3F4F6")

# Order matters for partial matching: first hit wins
CATEGORY_BRANDING: dict[str, CategoryBranding] = {
    # Outcome categories
    "Food & Dining": _FOOD,
    "Food": _FOOD,
    "Transport": _TRANSPORT,
    "Transportation": _TRANSPORT,
    "Bills": _BILLS,
    "Bills & Utilities": _BILLS,
    "Shopping": _brand("#EC4899", "bag-handle-outline", "#FDF2F8"),
    "Healthcare": _HEALTH,
    "Medics": _HEALTH,
    "Entertainment": _FUN,
    "Subscriptions": _FUN,
    "Others": _OTHER,
    "Other": _OTHER,
    # Income categories
    "Salary": _brand("#22c55e", "cash-outline", "#22c55e20"),
    "Freelance": _brand("#3b82f6", "laptop-outline", "#3b82f620"),
    "Business": _brand("#8b5cf6", "briefcase-outline", "#8b5cf620"),
    "Investment": _brand("#eab308", "trending-up", "#eab30820"),
    "Other Income": _brand("#6b7280", "add-circle-outline", "#6b728020"),
}

FALLBACK_BRANDING = _OTHER


def category_branding(name: str, categories: Iterable[Category] = ()) -> CategoryBranding:
    """
    Resolve branding for a category title.

    Lookup order:
    1. Exact built-in title
    2. User category with the same title (case-insensitive); bg is the
       colour at low alpha
    3. Built-in title matching the first word ("Food & Drinks" -> "Food")
    4. Built-in title containing, or contained in, the name
    5. Neutral fallback
    """
    if not name:
        return FALLBACK_BRANDING

    if name in CATEGORY_BRANDING:
        return CATEGORY_BRANDING[name]

    lowered = name.lower()
    for category in categories:
        if category.title.lower() == lowered:
            return CategoryBranding(
                color=category.color,
                icon=category.icon or FALLBACK_BRANDING.icon,
                bg=f"{category.color}20",
            )

    first_word = name.split(" ")[0]
    if first_word in CATEGORY_BRANDING:
        return CATEGORY_BRANDING[first_word]

    for title, branding in CATEGORY_BRANDING.items():
        key = title.lower()
        if lowered in key or key in lowered:
            return branding

    return FALLBACK_BRANDING
