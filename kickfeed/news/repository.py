"""
News repository over the remote API.

Builds query parameters from filter and pagination state, calls the
transport client and caches first-page feed responses per league-filter
combination. Errors from the transport client propagate unchanged; retries
are handled below this layer.
"""

from collections.abc import Collection

import structlog

from kickfeed.cache.lru import LRUCache, feed_cache_key
from kickfeed.config.settings import get_settings
from kickfeed.news.schemas import Article, League, Page
from kickfeed.transport.http_client import TransportClient

logger = structlog.get_logger(__name__)

NEWS_PATH = "/news"
SEARCH_PATH = "/news/search"
LEAGUES_PATH = "/leagues"


class NewsRepository:
    """
    Typed access to feed, detail, league and search endpoints.

    Only cursor-less feed requests with an explicit league set touch the
    cache: a hit returns the cached items with ``next_cursor=None``, and a
    successful network fetch stores the first page under a canonical key
    built from the league ids.
    """

    def __init__(
        self,
        client: TransportClient,
        cache: LRUCache[list[Article]] | None = None,
        page_size: int | None = None,
    ) -> None:
        settings = get_settings()
        self._client = client
        self._cache = cache or LRUCache(settings.feed_cache_capacity, name="feed")
        self._page_size = settings.page_size if page_size is None else page_size
        if self._page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {self._page_size}")

    @property
    def cache(self) -> LRUCache[list[Article]]:
        return self._cache

    async def fetch_feed(
        self,
        league_ids: Collection[str] | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> Page:
        """
        Fetch one page of the news feed.

        Args:
            league_ids: Leagues to restrict to; None (or empty) means all
            cursor: Token from the previous page; None for the first page
            limit: Page size

        Returns:
            Page of articles
        """
        params: dict[str, str | int] = {"limit": self._page_size if limit is None else limit}
        if league_ids:
            params["leagues"] = ",".join(league_ids)
        if cursor is not None:
            params["after"] = cursor

        cache_key = None
        if cursor is None and league_ids is not None:
            cache_key = feed_cache_key(league_ids)
            cached = self._cache.get(cache_key)
            if cached is not None:
                return Page(items=list(cached), next_cursor=None)

        page = await self._client.get(NEWS_PATH, Page, params=params)

        if cache_key is not None:
            self._cache.set(cache_key, list(page.items))

        logger.debug(
            "Fetched feed page",
            leagues=params.get("leagues"),
            cursor=cursor,
            count=len(page.items),
            has_more=page.has_more,
        )
        return page

    async def search(
        self,
        query: str,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> Page:
        """Search articles by free text. Search results are never cached."""
        params: dict[str, str | int] = {
            "q": query,
            "limit": self._page_size if limit is None else limit,
        }
        if cursor is not None:
            params["after"] = cursor
        return await self._client.get(SEARCH_PATH, Page, params=params)

    async def fetch_detail(self, article_id: str) -> Article:
        """Fetch a single article by id (uncached)."""
        return await self._client.get(f"{NEWS_PATH}/{article_id}", Article)

    async def fetch_leagues(self) -> list[League]:
        """Fetch the list of available leagues (uncached)."""
        return await self._client.get(LEAGUES_PATH, list[League])

    def clear_cache(self) -> None:
        """Drop every cached first page."""
        self._cache.clear()
