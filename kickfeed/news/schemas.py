"""
Data model for the sports news feed.

Wire payloads use the remote API's field names (``content``, ``lang``,
``date``, ``iconURL``...). Models accept either the wire alias or the
Python field name so tests and callers can build them directly.

Article, Source and League compare and hash by ``id`` only: two
snapshots of the same article are equal even if one has been translated.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _IdentityModel(BaseModel):
    """Base for models whose identity is their ``id`` field."""

    model_config = ConfigDict(populate_by_name=True)

    id: str

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))


class Source(_IdentityModel):
    """A news outlet. Many articles reference one source."""

    name: str
    icon_url: str = Field(default="", alias="iconURL")
    reliability_score: int = Field(default=0, ge=0, le=10, alias="reliabilityScore")


class League(_IdentityModel):
    """A football league that can be favorited or used as a feed filter."""

    name: str
    country_code: str = Field(default="", alias="countryCode")
    logo_url: str = Field(default="", alias="logoURL")


class Article(_IdentityModel):
    """
    A news article snapshot decoded from the remote API.

    ``title``, ``raw_content`` and ``summary`` never change after decoding.
    Translation fields are set together by the translation orchestrator
    and ``is_favorite`` is flipped locally by the feed controller; both
    produce new snapshots through the ``with_*`` helpers.
    """

    title: str
    raw_content: str = Field(alias="content")
    summary: str = ""
    source: Source
    detected_language: str = Field(alias="lang")
    publish_date: datetime = Field(alias="date")
    tags: list[str] = Field(default_factory=list)

    translated_title: str | None = Field(default=None, alias="translatedTitle")
    translated_content: str | None = Field(default=None, alias="translatedContent")
    is_translated: bool = Field(default=False, alias="isTranslated")
    is_favorite: bool = Field(default=False, alias="isFavorite")

    @model_validator(mode="after")
    def _check_translation(self) -> "Article":
        if self.is_translated and not (self.translated_title and self.translated_content):
            raise ValueError("translated article requires translated title and content")
        return self

    def with_translation(self, title: str, content: str) -> "Article":
        """Return a copy carrying both translated fields."""
        if not title or not content:
            raise ValueError("translated title and content must be non-empty")
        return self.model_copy(
            update={
                "translated_title": title,
                "translated_content": content,
                "is_translated": True,
            }
        )

    def without_translation(self) -> "Article":
        """Return a copy marked as not translated."""
        return self.model_copy(
            update={
                "translated_title": None,
                "translated_content": None,
                "is_translated": False,
            }
        )

    def with_favorite(self, is_favorite: bool) -> "Article":
        return self.model_copy(update={"is_favorite": is_favorite})


class Page(BaseModel):
    """One page of the feed. A missing cursor marks the end of the stream."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[Article] = Field(default_factory=list, alias="data")
    next_cursor: str | None = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


class FilterKind(str, Enum):
    """What a feed filter narrows on."""

    LEAGUE = "league"
    TEAM = "team"
    PLAYER = "player"
    TAG = "tag"


@dataclass(eq=False)
class NewsFilter:
    """A selectable feed filter chip. Equality and hash use ``id`` only."""

    id: str
    name: str
    kind: FilterKind
    is_selected: bool = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NewsFilter):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


DEFAULT_FILTERS: tuple[NewsFilter, ...] = (
    NewsFilter(id="epl", name="Premier League", kind=FilterKind.LEAGUE),
    NewsFilter(id="laliga", name="La Liga", kind=FilterKind.LEAGUE),
    NewsFilter(id="bundesliga", name="Bundesliga", kind=FilterKind.LEAGUE),
    NewsFilter(id="serieA", name="Serie A", kind=FilterKind.LEAGUE),
    NewsFilter(id="ligue1", name="Ligue 1", kind=FilterKind.LEAGUE),
    NewsFilter(id="csl", name="Chinese Super League", kind=FilterKind.LEAGUE),
    NewsFilter(id="transfer", name="Transfers", kind=FilterKind.TAG),
    NewsFilter(id="injury", name="Injuries", kind=FilterKind.TAG),
    NewsFilter(id="highlight", name="Highlights", kind=FilterKind.TAG),
)
