"""
Observable user preferences.

Persistence of preferences belongs to the host application. The feed
controller only reads the current values and reacts to change events,
which listeners receive synchronously right after the field is written.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import structlog

from kickfeed.news.schemas import League, Source
from kickfeed.translation.engine import Language

logger = structlog.get_logger(__name__)


class PreferenceField(str, Enum):
    """Preference fields that emit change events."""

    FAVORITE_LEAGUES = "favorite_leagues"
    BLOCKED_SOURCES = "blocked_sources"
    PREFERRED_LANGUAGE = "preferred_language"
    AUTO_TRANSLATE = "auto_translate"
    DARK_MODE = "use_dark_mode"


@dataclass(frozen=True)
class PreferenceChange:
    """A single preference write."""

    field: PreferenceField
    value: Any


Listener = Callable[[PreferenceChange], None]
Unsubscribe = Callable[[], None]


class Preferences(Protocol):
    """What the feed controller needs from a preferences store."""

    @property
    def favorite_leagues(self) -> list[League]: ...

    @property
    def blocked_sources(self) -> list[Source]: ...

    @property
    def preferred_language(self) -> Language: ...

    @property
    def auto_translate(self) -> bool: ...

    def is_league_favorite(self, league: League) -> bool: ...

    def is_source_blocked(self, source: Source) -> bool: ...

    def subscribe(self, listener: Listener) -> Unsubscribe: ...


class InMemoryPreferences:
    """
    Event-emitting preferences held in memory.

    Every setter writes the field and then notifies listeners in
    subscription order. Writing a value equal to the current one is
    silent.
    """

    def __init__(
        self,
        favorite_leagues: list[League] | None = None,
        blocked_sources: list[Source] | None = None,
        preferred_language: Language | str = Language.CHINESE_SIMPLIFIED,
        auto_translate: bool = True,
        use_dark_mode: bool = False,
    ) -> None:
        self._favorite_leagues = list(favorite_leagues or [])
        self._blocked_sources = list(blocked_sources or [])
        self._preferred_language = Language.parse(preferred_language)
        self._auto_translate = auto_translate
        self._use_dark_mode = use_dark_mode
        self._listeners: list[Listener] = []

    # ── Observation ─────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Register a listener; call the returned function to remove it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, field: PreferenceField, value: Any) -> None:
        change = PreferenceChange(field=field, value=value)
        for listener in list(self._listeners):
            listener(change)

    # ── Fields ──────────────────────────────────────────────────

    @property
    def favorite_leagues(self) -> list[League]:
        return list(self._favorite_leagues)

    @favorite_leagues.setter
    def favorite_leagues(self, leagues: list[League]) -> None:
        leagues = list(leagues)
        if [lg.id for lg in leagues] == [lg.id for lg in self._favorite_leagues]:
            return
        self._favorite_leagues = leagues
        self._emit(PreferenceField.FAVORITE_LEAGUES, self.favorite_leagues)

    @property
    def blocked_sources(self) -> list[Source]:
        return list(self._blocked_sources)

    @blocked_sources.setter
    def blocked_sources(self, sources: list[Source]) -> None:
        sources = list(sources)
        if [s.id for s in sources] == [s.id for s in self._blocked_sources]:
            return
        self._blocked_sources = sources
        self._emit(PreferenceField.BLOCKED_SOURCES, self.blocked_sources)

    @property
    def preferred_language(self) -> Language:
        return self._preferred_language

    @preferred_language.setter
    def preferred_language(self, language: Language | str) -> None:
        language = Language.parse(language)
        if language is Language.AUTO:
            raise ValueError("auto-detect cannot be a preferred language")
        if language is self._preferred_language:
            return
        self._preferred_language = language
        self._emit(PreferenceField.PREFERRED_LANGUAGE, language)

    @property
    def auto_translate(self) -> bool:
        return self._auto_translate

    @auto_translate.setter
    def auto_translate(self, enabled: bool) -> None:
        if enabled == self._auto_translate:
            return
        self._auto_translate = enabled
        self._emit(PreferenceField.AUTO_TRANSLATE, enabled)

    @property
    def use_dark_mode(self) -> bool:
        return self._use_dark_mode

    @use_dark_mode.setter
    def use_dark_mode(self, enabled: bool) -> None:
        if enabled == self._use_dark_mode:
            return
        self._use_dark_mode = enabled
        self._emit(PreferenceField.DARK_MODE, enabled)

    # ── Operations ──────────────────────────────────────────────

    def toggle_favorite_league(self, league: League) -> None:
        if self.is_league_favorite(league):
            self.favorite_leagues = [lg for lg in self._favorite_leagues if lg.id != league.id]
        else:
            self.favorite_leagues = self._favorite_leagues + [league]

    def toggle_blocked_source(self, source: Source) -> None:
        if self.is_source_blocked(source):
            self.blocked_sources = [s for s in self._blocked_sources if s.id != source.id]
        else:
            self.blocked_sources = self._blocked_sources + [source]

    def is_league_favorite(self, league: League) -> bool:
        return any(lg.id == league.id for lg in self._favorite_leagues)

    def is_source_blocked(self, source: Source) -> bool:
        return any(s.id == source.id for s in self._blocked_sources)

    def reset(self) -> None:
        """Restore defaults, emitting a change for each field that differs."""
        self.favorite_leagues = []
        self.blocked_sources = []
        self.preferred_language = Language.CHINESE_SIMPLIFIED
        self.auto_translate = True
        self.use_dark_mode = False
        logger.info("Preferences reset to defaults")
