"""
Configuration Management for Khata Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here. Every sub-settings class reads its own
environment prefix, so a deployment only sets what it wants to change.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from khata.models.ledger import CashFlowWindow


class StorageSettings(BaseSettings):
    """Local key/value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KHATA_STORAGE_",
        extra="ignore"
    )

    directory: Path = Field(
        default=Path("data"),
        description="Directory holding one JSON file per storage key"
    )
    key_prefix: str = Field(
        default="khata_",
        description="Prefix applied to every storage key"
    )
    quota_bytes: Optional[int] = Field(
        default=None,
        ge=1024,
        description="Maximum total bytes the store may hold (None = unlimited)"
    )


class ImportSettings(BaseSettings):
    """Remote JSON import configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KHATA_IMPORT_",
        extra="ignore"
    )

    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Network timeout for a single fetch attempt"
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a failed fetch is attempted"
    )
    max_document_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1024,
        description="Largest import document we will read"
    )


class DashboardSettings(BaseSettings):
    """Dashboard query defaults."""

    model_config = SettingsConfigDict(
        env_prefix="KHATA_DASHBOARD_",
        extra="ignore"
    )

    default_filter: CashFlowWindow = Field(
        default=CashFlowWindow.LAST_30_DAYS,
        description="Cash-flow window shown when nothing is selected"
    )
    recent_limit: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Number of recent transactions on the dashboard"
    )
    debtor_limit: int = Field(
        default=5,
        ge=1,
        le=500,
        description="Number of oldest outstanding debtors on the dashboard"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="KHATA_",
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

    # Display
    currency_symbol: str = Field(
        default="Rs",
        max_length=8,
        description="Currency symbol used when formatting amounts"
    )
    currency_decimals: int = Field(
        default=0,
        ge=0,
        le=2,
        description="Minimum decimal places shown when formatting amounts"
    )

    # Ledger defaults
    default_category: str = Field(
        default="General",
        min_length=1,
        description="Category used when a transaction is recorded without one"
    )
    default_categories: str = Field(
        default="Goods,Cash Loan,Service,Payment",
        description="Comma-separated category suggestions for a new ledger"
    )
    default_users: str = Field(
        default="Owner,Partner",
        min_length=1,
        description="Comma-separated names of the users created for a new ledger"
    )

    # Audit
    audit_history_size: int = Field(
        default=500,
        ge=0,
        le=100000,
        description="How many audit events are kept in memory"
    )

    @property
    def default_categories_list(self) -> list[str]:
        """Get default categories as a list."""
        return [c.strip() for c in self.default_categories.split(",") if c.strip()]

    @property
    def default_users_list(self) -> list[dict]:
        """Default users with sequential integer ids, starting at 1."""
        names = [n.strip() for n in self.default_users.split(",") if n.strip()]
        return [{"id": i, "name": name} for i, name in enumerate(names, start=1)]


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
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def imports(self) -> ImportSettings:
        return ImportSettings()

    @property
    def dashboard(self) -> DashboardSettings:
        return DashboardSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    `<name>_error` entry for every section that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("storage", "imports", "dashboard", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
