"""
Centralized configuration for SheetSearch.

All environment variables and settings should be defined here
to avoid duplication across modules. Values persisted in the preference
store (source URLs, refresh interval) take precedence over these defaults
once a user has set them.
"""
import os
from functools import lru_cache


class Settings:
    """Application settings loaded from environment variables."""

    # CORS - comma-separated list of allowed origins
    ALLOWED_ORIGINS: list = os.environ.get(
        "ALLOWED_ORIGINS",
        "http://localhost:8090,http://localhost:5173,http://127.0.0.1:8090"
    ).split(",")

    # Preference database
    DB_PATH: str = os.environ.get("SHEETSEARCH_DB_PATH", "data/sheetsearch.db")

    # Published spreadsheet sources (pubhtml exports)
    SOURCE_URL: str = os.environ.get("SHEETSEARCH_SOURCE_URL", "")
    ACCOUNTS_URL: str = os.environ.get("SHEETSEARCH_ACCOUNTS_URL", "")

    # Auto refresh period in seconds, 0 disables it
    REFRESH_INTERVAL: int = int(os.environ.get("SHEETSEARCH_REFRESH_INTERVAL", "300"))

    # Transport timeout for a single fetch
    HTTP_TIMEOUT: float = float(os.environ.get("SHEETSEARCH_HTTP_TIMEOUT", "30"))

    # Maximum number of change events kept in the feed
    CHANGE_LIMIT: int = int(os.environ.get("SHEETSEARCH_CHANGE_LIMIT", "1000"))

    LOG_LEVEL: str = os.environ.get("SHEETSEARCH_LOG_LEVEL", "INFO")

    # API key for protecting destructive endpoints (optional)
    API_KEY: str = os.environ.get("SHEETSEARCH_API_KEY", "")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Singleton instance for easy import
settings = get_settings()
