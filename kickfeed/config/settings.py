"""Library settings read from KICKFEED_* environment variables or a .env file."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the kickfeed library.

    All settings can be overridden via environment variables prefixed
    with ``KICKFEED_`` (e.g., KICKFEED_API_BASE_URL).
    """

    model_config = SettingsConfigDict(
        env_prefix="KICKFEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False

    # Remote news API
    api_base_url: str = "https://api.footiekick.com/v1"
    request_timeout_seconds: float = Field(default=5.0, gt=0.0)
    resource_timeout_seconds: float = Field(default=10.0, gt=0.0)

    # HTTP retry configuration
    max_http_retries: int = Field(default=3, ge=0, le=10)
    rate_limit_retry_delay_seconds: float = Field(default=1.0, ge=0.0, le=60.0)
    connectivity_wait_seconds: float = Field(default=0.0, ge=0.0, le=60.0)

    # Caches (entry counts)
    feed_cache_capacity: int = Field(default=100, ge=1)
    translation_cache_capacity: int = Field(default=500, ge=1)

    # Feed behaviour
    page_size: int = Field(default=20, ge=1, le=100)
    prefetch_threshold: float = Field(default=0.8, gt=0.0, le=1.0)
    search_debounce_seconds: float = Field(default=0.5, ge=0.0)

    # Translation
    default_target_language: str = "zh"

    # Observability
    metrics_enabled: bool = False
    metrics_port: int = 8000

    @property
    def is_production(self) -> bool:
        """JSON logs and other production behaviour are enabled."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Process-wide settings, read from the environment on first use.

    Components call this only when not given explicit values; tests that
    change the environment call get_settings.cache_clear().
    """
    return Settings()
