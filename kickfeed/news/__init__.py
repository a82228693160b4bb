"""News domain - data model and repository over the remote API."""

from kickfeed.news.repository import NewsRepository
from kickfeed.news.schemas import (
    DEFAULT_FILTERS,
    Article,
    FilterKind,
    League,
    NewsFilter,
    Page,
    Source,
)

__all__ = [
    "DEFAULT_FILTERS",
    "Article",
    "FilterKind",
    "League",
    "NewsFilter",
    "NewsRepository",
    "Page",
    "Source",
]
