"""Configuration loading for the Stockroom item catalog.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
- Expose the paging tunable to the core through ConfigurationPort
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stockroom.core.ports import ConfigurationPort


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Paging
    items_per_page: int = Field(
        default=5,
        description="Number of items returned per page",
    )

    # Store configuration
    store_backend: Literal["sqlite", "postgresql"] = Field(
        default="sqlite",
        description="Item store backend type",
    )
    store_sqlite_path: str = Field(
        default="./data/stockroom.db",
        description="SQLite database file path",
    )
    store_pool_size: int = Field(
        default=5,
        description="Number of pooled store connections",
    )
    database_url: str = Field(
        default="",
        description="PostgreSQL connection URL",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    # Development
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging",
    )

    @field_validator("items_per_page")
    @classmethod
    def validate_items_per_page(cls, v: int) -> int:
        """Ensure page size is positive."""
        if v <= 0:
            raise ValueError("items_per_page must be positive")
        return v

    @field_validator("store_pool_size")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        """Ensure pool size is positive."""
        if v <= 0:
            raise ValueError("store_pool_size must be positive")
        return v


class SettingsConfiguration(ConfigurationPort):
    """ConfigurationPort backed by a Settings instance.

    Keys use the catalog's external names (e.g. "ItemsPerPage") and map
    onto the snake_case settings fields.
    """

    KEYS = {
        "ItemsPerPage": "items_per_page",
    }

    def __init__(self, settings: Settings):
        self.settings = settings

    def get(self, key: str) -> str | None:
        field_name = self.KEYS.get(key)
        if field_name is None:
            return None
        value = getattr(self.settings, field_name, None)
        return None if value is None else str(value)


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "SettingsConfiguration", "load_settings"]
