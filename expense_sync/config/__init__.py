"""Configuration package."""

from expense_sync.config.settings import (
    DEFAULT_PROTECTED_CATEGORY_IDS,
    AppSettings,
    Settings,
    SyncSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "DEFAULT_PROTECTED_CATEGORY_IDS",
    "AppSettings",
    "Settings",
    "SyncSettings",
    "get_settings",
    "validate_all_settings",
]
