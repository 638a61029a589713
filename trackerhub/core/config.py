"""Configuration settings for the tracker ingestion service."""

from __future__ import annotations

from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    postgres_db: str = Field(default="trackerhub_db")
    postgres_user: str = Field(default="trackerhub_user")
    postgres_password: str = Field(default="dev_password")
    postgres_host: str = Field(default="postgres")
    postgres_port: int = Field(default=5432)

    @property
    def database_url(self) -> str:
        """Construct async database URL from components."""
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    # Queue workers and the scheduler each hold a session while a job runs
    database_pool_size: int = Field(default=5)
    database_max_overflow: int = Field(default=5)

    # Application Configuration
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Anti-bot proxy (FlareSolverr) Configuration
    flaresolverr_url: Optional[str] = Field(
        default=None,
        description="FlareSolverr endpoint, e.g. http://flaresolverr:8191/v1",
    )
    flaresolverr_timeout_ms: int = Field(
        default=60000,
        description="Per-request timeout in milliseconds, also sent as maxTimeout",
    )
    flaresolverr_retry_attempts: int = Field(
        default=3, description="Attempts per request for transient failures"
    )
    flaresolverr_retry_delay_ms: int = Field(
        default=1000, description="Base delay between attempts in milliseconds"
    )
    flaresolverr_rate_limit_per_minute: int = Field(
        default=60, description="Process-wide request limit per minute"
    )

    # Tracker scheduling Configuration
    tracker_refresh_interval_hours: int = Field(default=24)
    tracker_batch_size: int = Field(default=100)
    tracker_refresh_cron: str = Field(default="0 2 * * *")
    tracker_pending_interval_seconds: int = Field(default=300)

    # Scraping queue Configuration
    scraping_queue_concurrency: int = Field(default=2)
    scraping_job_attempts: int = Field(default=3)
    scraping_job_backoff_seconds: float = Field(default=5.0)

    @field_validator(
        "flaresolverr_retry_attempts",
        "flaresolverr_rate_limit_per_minute",
        "tracker_batch_size",
        "scraping_queue_concurrency",
        "scraping_job_attempts",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Reject zero or negative counts."""
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("flaresolverr_url")
    @classmethod
    def validate_flaresolverr_url(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank values as unset."""
        if v is not None and not v.strip():
            return None
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix for environment variables
        extra="forbid",  # Forbid extra fields for better type safety
    )


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()


# Create a global settings instance lazily
settings: Settings | None = None


def get_global_settings() -> Settings:
    """Get or create the global settings instance."""
    global settings
    if settings is None:
        settings = get_settings()
    return settings
