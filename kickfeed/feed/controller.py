"""
Feed controller - coordinates paging, filtering, search and translation.

The controller is the single writer of FeedState. Network and translation
work runs in cancellable asyncio tasks on the same event loop, so state is
only ever mutated between suspension points of one task at a time.

At most one primary fetch (first page, next page or search) is in flight.
Each primary fetch bumps a generation counter and captures the new value;
results are committed only while that value is still current, so a
superseded fetch that resolves late is discarded.
"""

import asyncio
from collections.abc import Coroutine, Iterable
from typing import Any

import structlog

from kickfeed.config.settings import get_settings
from kickfeed.feed.state import FeedState, FeedStatus
from kickfeed.news.repository import NewsRepository
from kickfeed.news.schemas import DEFAULT_FILTERS, Article, FilterKind, NewsFilter, Page
from kickfeed.preferences.store import PreferenceChange, PreferenceField, Preferences
from kickfeed.transport.errors import TransportError
from kickfeed.translation.orchestrator import TranslationOrchestrator

logger = structlog.get_logger(__name__)


def _caller_cancelled() -> bool:
    current = asyncio.current_task()
    return current is not None and current.cancelling() > 0


class FeedController:
    """
    Owner of a paginated, filterable, auto-translated news feed.

    Usage:
        controller = FeedController(repository, orchestrator, preferences)
        await controller.start()
        ...
        controller.load_more_if_needed(visible_article)
        controller.debounce_search("messi")
        ...
        await controller.close()
    """

    def __init__(
        self,
        repository: NewsRepository,
        translator: TranslationOrchestrator,
        preferences: Preferences,
        page_size: int | None = None,
        prefetch_threshold: float | None = None,
        search_debounce: float | None = None,
        available_filters: Iterable[NewsFilter] | None = None,
    ) -> None:
        settings = get_settings()
        self._repository = repository
        self._translator = translator
        self._preferences = preferences
        self._page_size = settings.page_size if page_size is None else page_size
        if self._page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {self._page_size}")
        self._prefetch_threshold = (
            settings.prefetch_threshold if prefetch_threshold is None else prefetch_threshold
        )
        self._search_debounce = (
            settings.search_debounce_seconds if search_debounce is None else search_debounce
        )

        self.state = FeedState()
        self.available_filters: list[NewsFilter] = [
            NewsFilter(id=f.id, name=f.name, kind=f.kind)
            for f in (available_filters or DEFAULT_FILTERS)
        ]

        self._generation = 0
        self._language_epoch = 0
        self._primary_task: asyncio.Task | None = None
        self._search_task: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()
        self._unsubscribe = None

        self._translator.target_language = preferences.preferred_language

    # ── Read-only views ─────────────────────────────────────────

    @property
    def articles(self) -> list[Article]:
        return self.state.articles

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def last_error(self) -> Exception | None:
        return self.state.last_error

    @property
    def status(self) -> FeedStatus:
        return self.state.status

    @property
    def is_empty(self) -> bool:
        return self.state.is_empty

    @property
    def generation(self) -> int:
        return self._generation

    # ── Lifecycle ───────────────────────────────────────────────

    async def start(self) -> None:
        """Subscribe to preference changes and load the first page."""
        if self._unsubscribe is None:
            self._unsubscribe = self._preferences.subscribe(self._on_preference_change)
        await self.load_first_page()

    async def close(self) -> None:
        """Cancel outstanding work and stop listening to preferences."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        self._generation += 1
        pending = [t for t in (self._primary_task, self._search_task) if t is not None]
        pending.extend(self._background)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        self._primary_task = None
        self._search_task = None
        self._background.clear()
        self.state.is_loading = False

    async def join(self) -> None:
        """Wait until spawned background work (refreshes, translations) has settled."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ── Primary fetches ─────────────────────────────────────────

    def _supersede(self) -> int:
        """Cancel the in-flight primary fetch and open a new generation."""
        if self._primary_task is not None and not self._primary_task.done():
            self._primary_task.cancel()
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def _run_primary(self, generation: int, coro: Coroutine[Any, Any, None]) -> None:
        """
        Run a primary fetch as its own task and wait for it.

        Returns quietly if the fetch is superseded. If the caller is
        cancelled, the fetch is cancelled with it.
        """
        task = asyncio.create_task(coro)
        self._primary_task = task
        try:
            await task
        except asyncio.CancelledError:
            if _caller_cancelled():
                task.cancel()
                self._finish(generation, completed=False)
                raise
            logger.debug("Primary fetch superseded")
        finally:
            if self._primary_task is task and task.done():
                self._primary_task = None

    async def load_first_page(self) -> None:
        """
        Replace the feed with a freshly fetched first page.

        Cancels any in-flight fetch, resets paging state, fetches using the
        effective league filter (or the search whose results are showing),
        drops blocked sources and auto-translates the new articles when
        enabled. Text typed into a pending search is not used here.
        """
        await self._start_first_page(self.state.active_query)

    async def _start_first_page(self, query: str) -> None:
        generation = self._supersede()
        self.state.begin_first_page(query)
        await self._run_primary(generation, self._load_first(generation, query))

    async def refresh(self) -> None:
        await self.load_first_page()

    async def retry(self) -> None:
        """Retry after an error by reloading from the first page."""
        await self.refresh()

    async def load_next_page(self) -> None:
        """
        Fetch and append the next page.

        No-op while a fetch is running or when the stream is exhausted.
        Articles already loaded are skipped; only the newly appended ones
        are auto-translated.
        """
        if self.state.is_loading or not self.state.has_more or self.state.cursor is None:
            return

        cursor = self.state.cursor
        query = self.state.active_query
        generation = self._supersede()
        self.state.is_loading = True
        self.state.status = FeedStatus.LOADING
        await self._run_primary(generation, self._load_next(generation, query, cursor))

    def load_more_if_needed(self, item: Article) -> asyncio.Task | None:
        """
        Prefetch the next page once ``item`` is deep enough in the list.

        Triggers when the item's index reaches the prefetch threshold
        (80% of the loaded count by default).

        Returns:
            The scheduled task, or None if nothing was triggered
        """
        threshold = int(len(self.state.articles) * self._prefetch_threshold)
        index = self.state.index_of(item.id)
        if index is None or index < threshold:
            return None
        if not self.state.has_more or self.state.is_loading:
            return None
        return self._spawn(self.load_next_page(), name="feed-next-page")

    async def _fetch_page(self, query: str, cursor: str | None) -> Page:
        if query:
            return await self._repository.search(query, cursor=cursor, limit=self._page_size)
        return await self._repository.fetch_feed(
            self.effective_league_ids(),
            cursor=cursor,
            limit=self._page_size,
        )

    async def _load_first(self, generation: int, query: str) -> None:
        completed = False
        try:
            page = await self._fetch_page(query, cursor=None)
            if not self._is_current(generation):
                logger.debug("Discarding superseded first page", generation=generation)
                return

            self.state.articles = []
            appended = self.state.append_unique(self._visible(page.items))
            self.state.cursor = page.next_cursor
            self.state.has_more = page.has_more
            logger.info(
                "Loaded first page",
                count=len(appended),
                has_more=page.has_more,
                query=query or None,
            )

            if self._preferences.auto_translate:
                await self._translate_loaded(appended, generation=generation)
            completed = True
        except TransportError as e:
            completed = True
            if self._is_current(generation):
                self._record_error(e)
        finally:
            self._finish(generation, completed)

    async def _load_next(self, generation: int, query: str, cursor: str) -> None:
        completed = False
        try:
            page = await self._fetch_page(query, cursor=cursor)
            if not self._is_current(generation):
                logger.debug("Discarding superseded page", generation=generation)
                return

            appended = self.state.append_unique(self._visible(page.items))
            self.state.cursor = page.next_cursor
            self.state.has_more = page.has_more
            self.state.last_error = None
            logger.info(
                "Loaded next page",
                fetched=len(page.items),
                appended=len(appended),
                has_more=page.has_more,
            )

            if self._preferences.auto_translate:
                await self._translate_loaded(appended, generation=generation)
            completed = True
        except TransportError as e:
            completed = True
            if self._is_current(generation):
                self._record_error(e)
        finally:
            self._finish(generation, completed)

    def _record_error(self, error: TransportError) -> None:
        logger.warning("Feed fetch failed", error=str(error), error_type=type(error).__name__)
        self.state.last_error = error
        self.state.status = FeedStatus.ERRORED

    def _finish(self, generation: int, completed: bool) -> None:
        if not self._is_current(generation):
            return
        self.state.is_loading = False
        if self.state.status is FeedStatus.LOADING:
            # A fetch cancelled before any page arrived leaves nothing loaded.
            if completed or self.state.articles:
                self.state.status = FeedStatus.LOADED
            else:
                self.state.status = FeedStatus.IDLE

    # ── Filtering ───────────────────────────────────────────────

    def effective_league_ids(self) -> list[str] | None:
        """
        League ids for the feed query.

        Selected league filters win; otherwise the user's favorite leagues;
        otherwise None, meaning all leagues.
        """
        selected = [f.id for f in self.state.selected_filters if f.kind is FilterKind.LEAGUE]
        if selected:
            return selected
        favorites = [league.id for league in self._preferences.favorite_leagues]
        return favorites or None

    def is_filter_selected(self, news_filter: NewsFilter) -> bool:
        return any(f.id == news_filter.id for f in self.state.selected_filters)

    async def toggle_filter(self, news_filter: NewsFilter) -> None:
        """Select or deselect a filter, then reload the feed."""
        if self.is_filter_selected(news_filter):
            self.state.selected_filters = [
                f for f in self.state.selected_filters if f.id != news_filter.id
            ]
            selected = False
        else:
            self.state.selected_filters = self.state.selected_filters + [news_filter]
            selected = True

        for f in self.available_filters:
            if f.id == news_filter.id:
                f.is_selected = selected

        await self.refresh()

    def _visible(self, articles: Iterable[Article]) -> list[Article]:
        return [a for a in articles if not self._preferences.is_source_blocked(a.source)]

    def _apply_blocked_sources(self) -> None:
        before = len(self.state.articles)
        self.state.articles = self._visible(self.state.articles)
        removed = before - len(self.state.articles)
        if removed:
            logger.info("Removed articles from blocked sources", removed=removed)

    # ── Search ──────────────────────────────────────────────────

    def debounce_search(self, query: str) -> asyncio.Task:
        """
        Schedule a search for ``query`` after a quiet period.

        Every call restarts the wait and discards the previous query,
        including a search that has already started fetching. An empty
        query reloads the regular feed straight away. Until the wait
        elapses, paging and refreshes keep using the query whose results
        are on screen.

        Returns:
            The task that will run the search (or the refresh)
        """
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()

        self.state.search_query = query
        if not query:
            self._search_task = self._spawn(
                self._start_first_page(""), name="feed-search-clear"
            )
        else:
            self._search_task = self._spawn(self._debounced_search(query), name="feed-search")
        return self._search_task

    async def _debounced_search(self, query: str) -> None:
        await asyncio.sleep(self._search_debounce)
        if self.state.search_query != query:
            return
        logger.debug("Running search", query=query)
        await self._start_first_page(query)

    # ── Translation ─────────────────────────────────────────────

    async def _translate_loaded(
        self,
        articles: list[Article],
        generation: int | None = None,
    ) -> None:
        """Translate ``articles`` and merge results into loaded state by id."""
        pending = [a for a in articles if not a.is_translated]
        if not pending:
            return

        target = self._translator.target_language
        epoch = self._language_epoch
        translated = await self._translator.translate_many(pending, target)

        if generation is not None and not self._is_current(generation):
            return
        if epoch != self._language_epoch:
            return
        self._merge_translations(translated)

    def _merge_translations(self, translated: Iterable[Article]) -> None:
        by_id = {a.id: a for a in translated if a.is_translated}
        if not by_id:
            return
        for i, current in enumerate(self.state.articles):
            replacement = by_id.get(current.id)
            if replacement is not None and not current.is_translated:
                self.state.articles[i] = replacement.with_favorite(current.is_favorite)

    async def translate_article(self, article_id: str) -> Article | None:
        """
        Translate one loaded article on demand.

        Failures are logged and leave the article untouched.

        Returns:
            The article as stored after the attempt, or None if not loaded
        """
        index = self.state.index_of(article_id)
        if index is None:
            return None

        article = self.state.articles[index]
        try:
            translated = await self._translator.translate_article(article)
        except Exception as e:
            logger.warning("Article translation failed", article_id=article_id, error=str(e))
            return article

        index = self.state.index_of(article_id)
        if index is None:
            return None
        current = self.state.articles[index]
        self.state.articles[index] = translated.with_favorite(current.is_favorite)
        return self.state.articles[index]

    # ── Favorites ───────────────────────────────────────────────

    def toggle_favorite(self, article_id: str) -> bool | None:
        """
        Flip the local favorite flag of a loaded article.

        Returns:
            The new flag, or None if the article is not loaded
        """
        index = self.state.index_of(article_id)
        if index is None:
            return None
        article = self.state.articles[index]
        self.state.articles[index] = article.with_favorite(not article.is_favorite)
        return not article.is_favorite

    # ── Preference changes ──────────────────────────────────────

    def _on_preference_change(self, change: PreferenceChange) -> None:
        if change.field is PreferenceField.FAVORITE_LEAGUES:
            logger.info("Favorite leagues changed, refreshing feed")
            self._spawn(self.refresh(), name="feed-refresh-favorites")

        elif change.field is PreferenceField.BLOCKED_SOURCES:
            self._apply_blocked_sources()
            if (
                len(self.state.articles) < self._page_size
                and self.state.has_more
                and self.state.cursor is not None
                and not self.state.is_loading
            ):
                logger.info("Feed thinned by blocked sources, fetching next page")
                self._spawn(self.load_next_page(), name="feed-refill")

        elif change.field is PreferenceField.PREFERRED_LANGUAGE:
            logger.info("Preferred language changed", language=str(change.value))
            self._translator.target_language = change.value
            self._language_epoch += 1
            if self._preferences.auto_translate:
                self._spawn(
                    self._translate_loaded(list(self.state.articles)),
                    name="feed-retranslate",
                )

        elif change.field is PreferenceField.AUTO_TRANSLATE and change.value:
            self._spawn(
                self._translate_loaded(list(self.state.articles)),
                name="feed-translate-loaded",
            )

    # ── Task bookkeeping ────────────────────────────────────────

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background feed task failed",
                task=task.get_name(),
                error=str(exc),
                error_type=type(exc).__name__,
            )
