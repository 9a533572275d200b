"""Configuration management for Mailbox Cache.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the MAILBOX_CACHE_ prefix (e.g., MAILBOX_CACHE_PAGE_SIZE).
    """

    model_config = SettingsConfigDict(
        env_prefix="MAILBOX_CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Pagination
    page_size: int = Field(
        default=50,
        ge=1,
        description="Number of headers per page; also the chunk size for scroll growth",
    )

    # Push updates
    suppress_push_off_first_page: bool = Field(
        default=False,
        description=(
            "Drop new-mail pushes while a page other than the first is visible. "
            "Off by default: pushes always extend the feed at the top."
        ),
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_json: bool = Field(
        default=False,
        description="Render log events as JSON lines instead of console output",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
