"""
Translation orchestration on top of a translation engine.

Responsibilities:
- Make sure the target language model is installed before translating,
  with one in-flight download per language (a newer request cancels and
  replaces the running download; every waiter follows the latest one)
- Cache translated strings keyed by (source, target, text)
- Translate an article's title and content concurrently and apply both
  or neither
- Translate a batch of articles with per-item failure isolation
"""

import asyncio
from collections.abc import Callable, Iterable

import structlog

from kickfeed.cache.lru import LRUCache, translation_cache_key
from kickfeed.config.settings import get_settings
from kickfeed.news.schemas import Article
from kickfeed.observability.metrics import get_metrics
from kickfeed.translation.engine import Language, TranslationEngine

logger = structlog.get_logger(__name__)

ProgressListener = Callable[[Language, float], None]


class TranslationError(Exception):
    """Raised when a text or article cannot be translated."""


class ModelUnavailableError(TranslationError):
    """Raised by ensure_model when a language model cannot be installed."""


def _caller_cancelled() -> bool:
    """True if the running task itself has a pending cancellation request."""
    current = asyncio.current_task()
    return current is not None and current.cancelling() > 0


class TranslationOrchestrator:
    """
    Model-gated, cached translation of texts and articles.

    Usage:
        orchestrator = TranslationOrchestrator(SimulatedTranslationEngine())
        article = await orchestrator.translate_article(article, "zh")
    """

    def __init__(
        self,
        engine: TranslationEngine,
        cache: LRUCache[str] | None = None,
        target_language: Language | str | None = None,
        on_progress: ProgressListener | None = None,
    ) -> None:
        settings = get_settings()
        self._engine = engine
        self._cache = cache or LRUCache(settings.translation_cache_capacity, name="translation")
        self._on_progress = on_progress
        self._downloads: dict[Language, asyncio.Task] = {}
        self._progress: dict[Language, float] = {}
        self._installed: set[Language] = {Language.AUTO}
        self._target = Language.CHINESE_SIMPLIFIED
        self.target_language = target_language or settings.default_target_language

    @property
    def target_language(self) -> Language:
        return self._target

    @target_language.setter
    def target_language(self, value: Language | str) -> None:
        language = Language.parse(value)
        if language is Language.AUTO:
            raise ValueError(f"{value!r} is not a valid translation target")
        self._target = language

    @property
    def cache(self) -> LRUCache[str]:
        return self._cache

    def download_progress(self, language: Language | str) -> float:
        """Progress of the current (or last) download for ``language``, 0.0 to 1.0."""
        language = Language.parse(language)
        if language in self._installed:
            return 1.0
        return self._progress.get(language, 0.0)

    def is_model_installed(self, language: Language | str) -> bool:
        return Language.parse(language) in self._installed

    def is_downloading(self, language: Language | str) -> bool:
        task = self._downloads.get(Language.parse(language))
        return task is not None and not task.done()

    # ── Models ──────────────────────────────────────────────────

    async def ensure_model(self, language: Language | str) -> None:
        """
        Make sure the model for ``language`` is installed.

        No-op for the auto-detect pseudo-language and for installed models.
        Otherwise starts a download, cancelling any download already running
        for the same language, and waits for the latest download to finish.

        Raises:
            ModelUnavailableError: If the download fails
        """
        language = Language.parse(language)
        if language is Language.AUTO or language in self._installed:
            return

        if await self._engine.model_available(language):
            self._installed.add(language)
            return

        previous = self._downloads.get(language)
        if previous is not None and not previous.done():
            logger.info("Restarting model download", language=language.value)
            previous.cancel()

        task = asyncio.create_task(
            self._download(language),
            name=f"model-download-{language.value}",
        )
        self._downloads[language] = task
        await self._wait_for_download(language, task)

    async def _wait_for_download(self, language: Language, task: asyncio.Task) -> None:
        while True:
            try:
                await asyncio.shield(task)
                return
            except asyncio.CancelledError:
                if _caller_cancelled() or not task.cancelled():
                    raise
                # Superseded by a newer download: follow the replacement.
                if language in self._installed:
                    return
                latest = self._downloads.get(language)
                if latest is None or latest is task:
                    raise ModelUnavailableError(
                        f"Download of {language.value} model was cancelled"
                    ) from None
                task = latest
            except Exception as e:
                raise ModelUnavailableError(
                    f"Download of {language.value} model failed: {e}"
                ) from e

    async def _download(self, language: Language) -> None:
        me = asyncio.current_task()
        self._progress[language] = 0.0

        def report(value: float) -> None:
            if self._downloads.get(language) is not me:
                return
            value = min(1.0, max(self._progress.get(language, 0.0), value))
            self._progress[language] = value
            if self._on_progress:
                self._on_progress(language, value)

        metrics = get_metrics()
        logger.info("Downloading translation model", language=language.value)
        try:
            await self._engine.download_model(language, progress=report)
        except asyncio.CancelledError:
            metrics.record_model_download(language.value, "cancelled")
            raise
        except Exception as e:
            metrics.record_model_download(language.value, "failed")
            logger.warning("Model download failed", language=language.value, error=str(e))
            raise
        else:
            report(1.0)
            self._installed.add(language)
            metrics.record_model_download(language.value, "success")
            logger.info("Translation model installed", language=language.value)
        finally:
            if self._downloads.get(language) is me:
                del self._downloads[language]

    # ── Text ────────────────────────────────────────────────────

    async def translate(
        self,
        text: str,
        source: Language | str = Language.AUTO,
        target: Language | str | None = None,
    ) -> str:
        """
        Translate ``text`` from ``source`` into ``target``.

        Returns the text unchanged when both languages are the same known
        language. Results are cached per (source, target, text).

        Raises:
            TranslationError: If the model or the engine fails
        """
        source = Language.parse(source)
        target = self._target if target is None else Language.parse(target)

        if source is target and source is not Language.AUTO:
            return text
        if target is Language.AUTO:
            raise TranslationError("auto-detect is not a valid translation target")

        key = translation_cache_key(source.value, target.value, text)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            await self.ensure_model(target)
        except ModelUnavailableError as e:
            raise TranslationError(str(e)) from e

        try:
            translated = await self._engine.translate_text(text, source, target)
        except Exception as e:
            raise TranslationError(
                f"Engine failed translating {source.value}->{target.value}: {e}"
            ) from e

        self._cache.set(key, translated)
        return translated

    # ── Articles ────────────────────────────────────────────────

    async def translate_article(
        self,
        article: Article,
        target: Language | str | None = None,
    ) -> Article:
        """
        Translate an article's title and content concurrently.

        Both translations must succeed for the returned copy to carry the
        translated fields; on any failure the input article is left as is
        and the error propagates.

        Raises:
            TranslationError: If either translation fails
        """
        target = self._target if target is None else Language.parse(target)

        if article.detected_language == target.value:
            return article.without_translation()

        source = Language.parse(article.detected_language)
        title_task = asyncio.create_task(self.translate(article.title, source, target))
        content_task = asyncio.create_task(self.translate(article.raw_content, source, target))

        try:
            title, content = await asyncio.gather(title_task, content_task)
        except BaseException:
            title_task.cancel()
            content_task.cancel()
            raise

        if not title or not content:
            raise TranslationError(f"Empty translation for article {article.id}")

        return article.with_translation(title, content)

    async def translate_many(
        self,
        articles: Iterable[Article],
        target: Language | str | None = None,
    ) -> list[Article]:
        """
        Translate each article in turn, isolating failures.

        Already-translated articles are passed through. An article that
        fails to translate is logged and returned unchanged; the remaining
        articles are still processed.

        Returns:
            Articles in input order, translated where possible
        """
        target = self._target if target is None else Language.parse(target)
        metrics = get_metrics()
        results: list[Article] = []

        for article in articles:
            if article.is_translated:
                results.append(article)
                continue

            try:
                translated = await self.translate_article(article, target)
            except Exception as e:
                metrics.record_translation("failed")
                logger.warning(
                    "Article translation failed",
                    article_id=article.id,
                    target=target.value,
                    error=str(e),
                )
                results.append(article)
                continue

            metrics.record_translation("translated" if translated.is_translated else "skipped")
            results.append(translated)

        return results

    def clear_cache(self) -> None:
        """Drop cached translations. Installed models are kept."""
        self._cache.clear()
