"""
Library settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings with defaults for development."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./blaster_base.db"
    sql_echo: bool = False  # Log every SQL statement through SQLAlchemy

    # Connection pool (ignored for SQLite URLs)
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30  # Wait max 30s for a connection from the pool
    pool_recycle: int = 1800  # Recycle connections after 30 minutes

    # Audit attribution used when a BLL is built without an explicit user
    default_user: str | None = None

    # Environment
    environment: str = "development"
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export
settings = get_settings()
