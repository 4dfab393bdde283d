"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables (.env file).
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Project Info
    PROJECT_NAME: str = "Session Lifecycle & Recurring-Schedule Engine"
    VERSION: str = "0.1.0"

    DEBUG: bool = False

    # Database
    # A full URL wins over the individual parts (used for SQLite in tests).
    DATABASE_URL_OVERRIDE: Optional[str] = None
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: Optional[str] = None
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432
    DATABASE_DBNAME: str = "postgres"

    # Cron trigger shared secret.  Unset means the check is skipped.
    CRON_SECRET: Optional[str] = None

    # Session lifecycle
    SESSION_HORIZON_DAYS: int = 7
    SESSION_RETENTION_DAYS: int = 30
    CHECKIN_WINDOW_MINUTES: int = 60
    REFLECTION_WINDOW_HOURS: int = 24
    OVERDUE_ABSENCE_REASON: str = "Session time has passed"
    DEFAULT_TIMEZONE: str = "UTC"

    # Maintenance sweep
    SWEEP_PHASE_TIMEOUT_SECONDS: float = 60.0
    SWEEP_LEASE_SECONDS: int = 900

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # text or json

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def database_configured(self) -> bool:
        return bool(self.DATABASE_URL_OVERRIDE or self.DATABASE_PASSWORD)

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return (f"postgresql://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}@{self.DATABASE_HOST}"
                f":{self.DATABASE_PORT}"
                f"/{self.DATABASE_DBNAME}")


# Global settings instance
settings = Settings()
