"""Tests for TranslationOrchestrator."""

import asyncio

import pytest

from kickfeed.cache.lru import LRUCache
from kickfeed.translation.engine import Language
from kickfeed.translation.orchestrator import (
    ModelUnavailableError,
    TranslationError,
    TranslationOrchestrator,
)
from tests.factories import make_article
from tests.fakes import FakeEngine


class TestTargetLanguage:
    def test_accepts_codes(self, orchestrator):
        orchestrator.target_language = "es"

        assert orchestrator.target_language is Language.SPANISH

    def test_rejects_auto(self, orchestrator):
        with pytest.raises(ValueError):
            orchestrator.target_language = Language.AUTO


class TestEnsureModel:
    """Tests for model download gating."""

    @pytest.mark.asyncio
    async def test_auto_is_noop(self, orchestrator, engine):
        await orchestrator.ensure_model(Language.AUTO)

        assert engine.download_calls == []

    @pytest.mark.asyncio
    async def test_installed_model_is_noop(self, orchestrator, engine):
        await orchestrator.ensure_model(Language.ENGLISH)

        assert engine.download_calls == []
        assert orchestrator.is_model_installed(Language.ENGLISH)

    @pytest.mark.asyncio
    async def test_downloads_missing_model(self, orchestrator, engine):
        engine.release_download.set()

        await orchestrator.ensure_model(Language.SPANISH)

        assert engine.download_calls == [Language.SPANISH]
        assert orchestrator.is_model_installed(Language.SPANISH)
        assert orchestrator.download_progress(Language.SPANISH) == 1.0
        assert not orchestrator.is_downloading(Language.SPANISH)

    @pytest.mark.asyncio
    async def test_new_request_replaces_running_download(self, orchestrator, engine):
        """A second request cancels the first download; both callers finish."""
        first = asyncio.create_task(orchestrator.ensure_model(Language.SPANISH))
        await engine.download_started.wait()

        second = asyncio.create_task(orchestrator.ensure_model(Language.SPANISH))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        engine.release_download.set()

        await asyncio.gather(first, second)

        assert engine.download_calls == [Language.SPANISH, Language.SPANISH]
        assert engine.cancelled_downloads == 1
        assert orchestrator.is_model_installed(Language.SPANISH)

    @pytest.mark.asyncio
    async def test_progress_is_monotonic(self, engine):
        seen: list[float] = []
        orchestrator = TranslationOrchestrator(
            engine,
            cache=LRUCache(10),
            on_progress=lambda language, value: seen.append(value),
        )
        engine.release_download.set()

        await orchestrator.ensure_model(Language.FRENCH)

        assert seen == sorted(seen)
        assert seen[0] == 0.0
        assert seen[-1] == 1.0

    @pytest.mark.asyncio
    async def test_failed_download_raises_model_unavailable(self, orchestrator, engine):
        engine.download_error = RuntimeError("disk full")
        engine.release_download.set()

        with pytest.raises(ModelUnavailableError):
            await orchestrator.ensure_model(Language.GERMAN)

        assert not orchestrator.is_model_installed(Language.GERMAN)
        assert not orchestrator.is_downloading(Language.GERMAN)

    @pytest.mark.asyncio
    async def test_cancelled_caller_leaves_download_running(self, orchestrator, engine):
        waiter = asyncio.create_task(orchestrator.ensure_model(Language.ITALIAN))
        await engine.download_started.wait()

        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        assert orchestrator.is_downloading(Language.ITALIAN)
        engine.release_download.set()
        await orchestrator.ensure_model(Language.ITALIAN)
        assert orchestrator.is_model_installed(Language.ITALIAN)


class TestTranslate:
    """Tests for text translation and caching."""

    @pytest.mark.asyncio
    async def test_same_language_is_identity(self, orchestrator, engine):
        result = await orchestrator.translate("Goal!", Language.ENGLISH, Language.ENGLISH)

        assert result == "Goal!"
        assert engine.translate_calls == []

    @pytest.mark.asyncio
    async def test_auto_to_target_translates(self, orchestrator, engine):
        result = await orchestrator.translate("Goal!", Language.AUTO, Language.CHINESE_SIMPLIFIED)

        assert result == "zh:Goal!"

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, orchestrator, engine):
        first = await orchestrator.translate("Goal!", "en", "zh")
        second = await orchestrator.translate("Goal!", "en", "zh")

        assert first == second
        assert len(engine.translate_calls) == 1

    @pytest.mark.asyncio
    async def test_cache_keyed_by_language_pair(self, orchestrator, engine):
        await orchestrator.translate("Goal!", "en", "zh")
        await orchestrator.translate("Goal!", "es", "zh")

        assert len(engine.translate_calls) == 2

    @pytest.mark.asyncio
    async def test_defaults_to_target_language(self, orchestrator):
        assert await orchestrator.translate("Goal!", "en") == "zh:Goal!"

    @pytest.mark.asyncio
    async def test_auto_target_rejected(self, orchestrator):
        with pytest.raises(TranslationError):
            await orchestrator.translate("Goal!", "en", Language.AUTO)

    @pytest.mark.asyncio
    async def test_engine_failure_raises_translation_error(self, orchestrator, engine):
        engine.fail_on.add("Goal!")

        with pytest.raises(TranslationError):
            await orchestrator.translate("Goal!", "en", "zh")

        assert len(orchestrator.cache) == 0

    @pytest.mark.asyncio
    async def test_model_failure_surfaces_as_translation_error(self, orchestrator, engine):
        engine.download_error = RuntimeError("no network")
        engine.release_download.set()

        with pytest.raises(TranslationError) as exc_info:
            await orchestrator.translate("Goal!", "en", "ko")

        assert not isinstance(exc_info.value, ModelUnavailableError)
        assert isinstance(exc_info.value.__cause__, ModelUnavailableError)

    @pytest.mark.asyncio
    async def test_clear_cache_keeps_models(self, orchestrator, engine):
        engine.release_download.set()
        await orchestrator.translate("Hola", "es", "ja")
        orchestrator.clear_cache()

        assert len(orchestrator.cache) == 0
        assert orchestrator.is_model_installed(Language.JAPANESE)

        await orchestrator.translate("Hola", "es", "ja")
        assert engine.download_calls == [Language.JAPANESE]


class TestTranslateArticle:
    """Tests for article translation atomicity."""

    @pytest.mark.asyncio
    async def test_translates_title_and_content(self, orchestrator):
        article = make_article("a1", lang="en")

        translated = await orchestrator.translate_article(article)

        assert translated.is_translated is True
        assert translated.translated_title == f"zh:{article.title}"
        assert translated.translated_content == f"zh:{article.raw_content}"
        assert article.is_translated is False

    @pytest.mark.asyncio
    async def test_same_language_short_circuits(self, orchestrator, engine):
        article = make_article("a1", lang="zh")

        result = await orchestrator.translate_article(article)

        assert result.is_translated is False
        assert engine.translate_calls == []

    @pytest.mark.asyncio
    async def test_content_failure_leaves_article_untouched(self, orchestrator, engine):
        """If one half fails, nothing is applied."""
        article = make_article("a1", lang="en")
        engine.fail_on.add(article.raw_content)

        with pytest.raises(TranslationError):
            await orchestrator.translate_article(article)

        assert article.is_translated is False
        assert article.translated_title is None
        assert article.translated_content is None

    @pytest.mark.asyncio
    async def test_title_failure_leaves_article_untouched(self, orchestrator, engine):
        article = make_article("a1", lang="en")
        engine.fail_on.add(article.title)

        with pytest.raises(TranslationError):
            await orchestrator.translate_article(article)

        assert article.is_translated is False

    @pytest.mark.asyncio
    async def test_explicit_target(self, orchestrator):
        translated = await orchestrator.translate_article(make_article("a1", lang="zh"), "en")

        assert translated.translated_title.startswith("en:")


class TestTranslateMany:
    """Tests for batch translation with failure isolation."""

    @pytest.mark.asyncio
    async def test_failure_does_not_abort_batch(self, orchestrator, engine):
        articles = [make_article("a1"), make_article("a2"), make_article("a3")]
        engine.fail_on.add(articles[1].title)

        results = await orchestrator.translate_many(articles)

        assert [a.id for a in results] == ["a1", "a2", "a3"]
        assert [a.is_translated for a in results] == [True, False, True]

    @pytest.mark.asyncio
    async def test_skips_already_translated(self, orchestrator, engine):
        done = make_article("a1").with_translation("t", "c")

        results = await orchestrator.translate_many([done])

        assert results == [done]
        assert results[0].translated_title == "t"
        assert engine.translate_calls == []

    @pytest.mark.asyncio
    async def test_mixed_languages(self, orchestrator):
        results = await orchestrator.translate_many(
            [make_article("a1", lang="en"), make_article("a2", lang="zh")]
        )

        assert results[0].is_translated is True
        assert results[1].is_translated is False

    @pytest.mark.asyncio
    async def test_downloads_target_model_on_demand(self):
        engine = FakeEngine()
        engine.release_download.set()
        orchestrator = TranslationOrchestrator(engine, cache=LRUCache(10), target_language="pt")

        results = await orchestrator.translate_many([make_article("a1")])

        assert results[0].translated_title.startswith("pt:")
        assert engine.download_calls == [Language.PORTUGUESE]
