"""
Centralized configuration for the Progressor backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., SESSION_*, SUPABASE_*).
"""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Progressor API"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # API-wide rate limiting
    rate_limit_requests: int = 100
    rate_limit_window: int = 60  # seconds

    # Sessions
    session_secret: str = ""
    session_max_age: int = 30 * 24 * 60 * 60  # 30 days, in seconds

    # Passwords
    bcrypt_rounds: int = 12

    # Storage
    storage_backend: Literal["memory", "supabase"] = "memory"

    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Auth event log
    auth_log_max_entries: int = 10_000
    auth_log_retention_days: int = 30
    auth_log_cleanup_interval: int = 60 * 60  # seconds

    # Rate limiter sweep
    rate_limit_sweep_interval: int = 5 * 60  # seconds
    rate_limit_max_entry_age: int = 60 * 60  # seconds

    # Frontend URLs (for links in emails)
    frontend_url: str = "http://localhost:3000"

    @property
    def is_development(self) -> bool:
        """Whether dev-only conveniences (tokens in responses) are enabled."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
