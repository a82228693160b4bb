"""Pytest fixtures for kickfeed tests."""

import pytest

from kickfeed.config.settings import Settings
from kickfeed.news.schemas import League, Source
from tests.factories import BASE_URL, source_payload


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing."""
    return Settings(
        environment="development",
        log_level="DEBUG",
        api_base_url=BASE_URL,
        rate_limit_retry_delay_seconds=0.0,
    )


@pytest.fixture
def sky_sports() -> Source:
    return Source.model_validate(source_payload())


@pytest.fixture
def tabloid() -> Source:
    return Source.model_validate(source_payload("tabloid", "Daily Tabloid"))


@pytest.fixture
def epl() -> League:
    return League(
        id="epl",
        name="Premier League",
        country_code="GB",
        logo_url="https://example.com/logos/epl.png",
    )


@pytest.fixture
def laliga() -> League:
    return League(id="laliga", name="La Liga", country_code="ES")
