"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment (prefix ``PAGEGATE_``)."""

    model_config = SettingsConfigDict(
        env_prefix="PAGEGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================

    environment: str = "development"
    debug: bool = True

    # ==========================================================================
    # Policy
    # ==========================================================================

    # YAML file with role levels and permissions. Empty = built-in defaults.
    policy_file: str = ""

    # ==========================================================================
    # Routing (used by the verdict translator)
    # ==========================================================================

    sign_in_path: str = "/auth"
    default_redirect_path: str = "/dashboard"

    # ==========================================================================
    # Session verification
    # ==========================================================================

    # Tokens are issued elsewhere; we only verify them.
    jwt_secret_key: str = "dev-jwt-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_audience: str = ""

    # ==========================================================================
    # Optional Services
    # ==========================================================================

    sentry_dsn: str = ""

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
