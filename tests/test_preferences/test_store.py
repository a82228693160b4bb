"""Tests for InMemoryPreferences."""

import pytest

from kickfeed.preferences.store import InMemoryPreferences, PreferenceChange, PreferenceField
from kickfeed.translation.engine import Language


@pytest.fixture
def preferences() -> InMemoryPreferences:
    return InMemoryPreferences()


@pytest.fixture
def changes(preferences) -> list[PreferenceChange]:
    received: list[PreferenceChange] = []
    preferences.subscribe(received.append)
    return received


class TestDefaults:
    def test_defaults(self, preferences):
        assert preferences.favorite_leagues == []
        assert preferences.blocked_sources == []
        assert preferences.preferred_language is Language.CHINESE_SIMPLIFIED
        assert preferences.auto_translate is True
        assert preferences.use_dark_mode is False


class TestNotifications:
    """Tests for change events."""

    def test_toggle_favorite_league_notifies(self, preferences, changes, epl):
        preferences.toggle_favorite_league(epl)

        assert preferences.is_league_favorite(epl)
        assert changes[-1].field is PreferenceField.FAVORITE_LEAGUES
        assert changes[-1].value == [epl]

    def test_toggle_favorite_league_twice_removes(self, preferences, changes, epl):
        preferences.toggle_favorite_league(epl)
        preferences.toggle_favorite_league(epl)

        assert not preferences.is_league_favorite(epl)
        assert len(changes) == 2

    def test_toggle_blocked_source(self, preferences, changes, tabloid, sky_sports):
        preferences.toggle_blocked_source(tabloid)

        assert preferences.is_source_blocked(tabloid)
        assert not preferences.is_source_blocked(sky_sports)
        assert changes[-1].field is PreferenceField.BLOCKED_SOURCES

    def test_language_change_notifies(self, preferences, changes):
        preferences.preferred_language = "en"

        assert changes == [PreferenceChange(PreferenceField.PREFERRED_LANGUAGE, Language.ENGLISH)]

    def test_auto_language_rejected(self, preferences):
        with pytest.raises(ValueError):
            preferences.preferred_language = Language.AUTO

    def test_equal_value_is_silent(self, preferences, changes):
        preferences.preferred_language = Language.CHINESE_SIMPLIFIED
        preferences.auto_translate = True
        preferences.blocked_sources = []

        assert changes == []

    def test_listener_sees_written_value(self, preferences, epl):
        observed = []
        preferences.subscribe(lambda change: observed.append(preferences.favorite_leagues))

        preferences.toggle_favorite_league(epl)

        assert observed == [[epl]]

    def test_unsubscribe_stops_notifications(self, preferences):
        received = []
        unsubscribe = preferences.subscribe(received.append)

        unsubscribe()
        preferences.use_dark_mode = True

        assert received == []

    def test_reset_restores_defaults(self, preferences, changes, epl):
        preferences.toggle_favorite_league(epl)
        preferences.preferred_language = "es"
        preferences.use_dark_mode = True
        changes.clear()

        preferences.reset()

        assert preferences.favorite_leagues == []
        assert preferences.preferred_language is Language.CHINESE_SIMPLIFIED
        assert preferences.use_dark_mode is False
        assert {c.field for c in changes} == {
            PreferenceField.FAVORITE_LEAGUES,
            PreferenceField.PREFERRED_LANGUAGE,
            PreferenceField.DARK_MODE,
        }
