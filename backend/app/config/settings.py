"""
Application Settings for the Admissions Backend

Centralized configuration using Pydantic Settings with .env support.
All environment variables are validated at startup.
"""

from functools import lru_cache
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    DATABASE_URL accepts any SQLAlchemy async URL. Plain postgres:// URLs
    are rewritten to the asyncpg driver by the DatabaseManager.
    """

    # Application Settings
    app_name: str = "Department Admissions"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # CORS Configuration
    allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Database Configuration (SQLModel/SQLAlchemy)
    database_url: str = "sqlite+aiosqlite:///./admissions.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_echo: bool = False
    # Create tables on startup (local SQLite); use Alembic everywhere else
    database_create_tables: bool = False

    # Allocation: attempts before a racing submit is reported as a conflict
    allocation_max_retries: int = 3

    # Bulk import
    import_max_bytes: int = 1_000_000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("allocation_max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 1:
            raise ValueError("ALLOCATION_MAX_RETRIES must be at least 1")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export for direct import
settings = get_settings()
