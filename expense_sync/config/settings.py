"""
Configuration Management for Expense Sync

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see which collaborators the store talks to
(the REST backend and the local snapshot file) and ensures the
configuration is validated before a store is built.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PROTECTED_CATEGORY_IDS = ["1", "2", "3", "4", "5", "6", "7", "8", "9"]


class SyncSettings(BaseSettings):
    """Remote backend and local snapshot configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    server_url: str = Field(
        default="http://localhost:5000",
        description="Base URL of the expense backend"
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Value sent in the x-api-key header, if the backend requires one"
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Per-request timeout for remote calls"
    )

    # Local snapshot cache
    snapshot_path: Optional[Path] = Field(
        default=None,
        description="JSON file for the expense snapshot (None keeps it in memory)"
    )
    snapshot_debounce_seconds: float = Field(
        default=0.0,
        ge=0.0,
        le=30.0,
        description="Delay before writing the expense snapshot (0 writes immediately)"
    )

    # Domain
    protected_category_ids: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PROTECTED_CATEGORY_IDS),
        description="Category ids that can never be deleted"
    )
    default_currency: str = Field(
        default="₹",
        min_length=1,
        max_length=8,
        description="Currency symbol used until the backend answers"
    )

    @field_validator('server_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Endpoints are joined with '/', so drop any trailing slash."""
        return v.rstrip("/")

    @field_validator('snapshot_path')
    @classmethod
    def validate_snapshot_path(cls, v: Optional[Path]) -> Optional[Path]:
        """Warn if the snapshot directory doesn't exist (it is created on first write)."""
        if v is not None and not v.parent.exists():
            import warnings
            warnings.warn(
                f"Snapshot directory {v.parent} does not exist yet. "
                "It will be created on the first snapshot write."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Sync audit trail
    audit_history_size: int = Field(
        default=200,
        ge=0,
        le=10000,
        description="How many sync events to keep in memory"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def sync(self) -> SyncSettings:
        return SyncSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.sync
        results["sync"] = True
    except Exception as e:
        results["sync"] = False
        results["sync_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
