"""Fixtures for feed controller tests."""

from unittest.mock import AsyncMock

import pytest

from kickfeed.cache.lru import LRUCache
from kickfeed.feed.controller import FeedController
from kickfeed.news.repository import NewsRepository
from kickfeed.preferences.store import InMemoryPreferences
from kickfeed.translation.engine import SimulatedTranslationEngine
from kickfeed.translation.orchestrator import TranslationOrchestrator
from tests.factories import make_page


@pytest.fixture
def repository() -> AsyncMock:
    repository = AsyncMock(spec=NewsRepository)
    repository.fetch_feed.return_value = make_page(["a1", "a2"], next_cursor="c2")
    repository.search.return_value = make_page(["s1"])
    return repository


@pytest.fixture
def preferences() -> InMemoryPreferences:
    return InMemoryPreferences(auto_translate=False)


@pytest.fixture
def translator() -> TranslationOrchestrator:
    return TranslationOrchestrator(
        SimulatedTranslationEngine(step_delay=0),
        cache=LRUCache(500, name="translation"),
    )


@pytest.fixture
def controller(repository, translator, preferences) -> FeedController:
    return FeedController(
        repository,
        translator,
        preferences,
        page_size=20,
        search_debounce=0.01,
    )
