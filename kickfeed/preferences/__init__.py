"""User preferences - observable store consumed by the feed controller."""

from kickfeed.preferences.store import (
    InMemoryPreferences,
    PreferenceChange,
    PreferenceField,
    Preferences,
)

__all__ = ["InMemoryPreferences", "PreferenceChange", "PreferenceField", "Preferences"]
