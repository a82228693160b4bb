"""Fixtures for translation tests."""

import pytest

from kickfeed.cache.lru import LRUCache
from kickfeed.translation.engine import Language
from kickfeed.translation.orchestrator import TranslationOrchestrator
from tests.fakes import FakeEngine


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine(installed={Language.CHINESE_SIMPLIFIED, Language.ENGLISH})


@pytest.fixture
def orchestrator(engine: FakeEngine) -> TranslationOrchestrator:
    return TranslationOrchestrator(
        engine,
        cache=LRUCache(500, name="translation"),
        target_language=Language.CHINESE_SIMPLIFIED,
    )
