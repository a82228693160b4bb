"""Feed session state owned by the feed controller."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from kickfeed.news.schemas import Article, NewsFilter


class FeedStatus(str, Enum):
    """Lifecycle of a feed session."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERRORED = "errored"


@dataclass
class FeedState:
    """
    Mutable state of one feed session.

    ``articles`` is append-only between first-page loads and never holds
    two articles with the same id.

    ``search_query`` is the text as typed; ``active_query`` is the query
    that produced the loaded pages and ``cursor``, and is what paging uses.
    """

    articles: list[Article] = field(default_factory=list)
    cursor: str | None = None
    has_more: bool = True
    is_loading: bool = False
    last_error: Exception | None = None
    selected_filters: list[NewsFilter] = field(default_factory=list)
    search_query: str = ""
    active_query: str = ""
    status: FeedStatus = FeedStatus.IDLE

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to show and nothing on the way."""
        return not self.articles and not self.is_loading

    def index_of(self, article_id: str) -> int | None:
        for i, article in enumerate(self.articles):
            if article.id == article_id:
                return i
        return None

    def begin_first_page(self, query: str = "") -> None:
        """Drop loaded pages ahead of a first-page fetch for ``query``."""
        self.active_query = query
        self.articles = []
        self.cursor = None
        self.has_more = True
        self.is_loading = True
        self.last_error = None
        self.status = FeedStatus.LOADING

    def append_unique(self, articles: Iterable[Article]) -> list[Article]:
        """
        Append articles whose ids are not loaded yet, in first-seen order.

        Returns:
            The articles actually appended
        """
        seen = {a.id for a in self.articles}
        appended = []
        for article in articles:
            if article.id in seen:
                continue
            seen.add(article.id)
            appended.append(article)
        self.articles.extend(appended)
        return appended
