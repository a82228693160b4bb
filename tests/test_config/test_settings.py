"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from kickfeed.config.settings import Settings, get_settings


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.request_timeout_seconds == 5.0
        assert settings.resource_timeout_seconds == 10.0
        assert settings.max_http_retries == 3
        assert settings.rate_limit_retry_delay_seconds == 1.0
        assert settings.feed_cache_capacity == 100
        assert settings.translation_cache_capacity == 500
        assert settings.page_size == 20
        assert settings.prefetch_threshold == 0.8
        assert settings.search_debounce_seconds == 0.5

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("KICKFEED_MAX_HTTP_RETRIES", "5")
        monkeypatch.setenv("KICKFEED_API_BASE_URL", "https://staging.example.com/v1")

        settings = Settings()

        assert settings.max_http_retries == 5
        assert settings.api_base_url == "https://staging.example.com/v1"

    def test_retry_bounds(self):
        with pytest.raises(ValidationError):
            Settings(max_http_retries=11)

    def test_is_production(self):
        assert Settings(environment="production").is_production is True
        assert Settings().is_production is False

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        assert get_settings() is get_settings()
