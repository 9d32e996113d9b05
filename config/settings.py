"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )

    # ===================
    # CSV IMPORT
    # ===================
    import_batch_size: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Records submitted concurrently per batch"
    )
    import_batch_delay_seconds: float = Field(
        default=0.1,
        ge=0,
        le=10,
        description="Pause between batches (0 for headless runs)"
    )
    import_record_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Per-record create timeout; a timeout counts as a failed record"
    )
    import_initial_slice_rows: int = Field(
        default=100,
        ge=1,
        description="Data rows validated in the first parsing slice"
    )
    import_session_ttl_minutes: int = Field(
        default=30,
        ge=1,
        description="Minutes a finished import session stays available for polling"
    )
    db_max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for read queries that hit transient connection errors"
    )
    db_retry_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        le=30,
        description="Base delay between read retries (multiplied by attempt)"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
