#!/usr/bin/env python3
"""
preferences_manager.py
--------------------
Manages the single UserPreferences row.

The row is created together with the schema (ensure_exists) and is never
deleted: reset_to_defaults() restores every field in place.

Usage:
    with db.session_scope():
        db.preferences.update({"theme": "dark", "accent_color": "#FF0000"})
        db.preferences.reset_to_defaults()
"""
from typing import Any, Dict

from sqlalchemy import select

from ncdb.core.exceptions import ValidationError
from ncdb.core.validators import DataValidator
from ncdb.database.decorators import (
    atomic_operation,
    handle_db_errors,
    log_database_operation,
)
from ncdb.database.models import (
    PREFERENCE_DEFAULTS,
    PREFERENCES_ID,
    ExportType,
    NewsScrapeFrequency,
    ThemeMode,
    UserPreferences,
)
from .base_manager import BaseManager
from .tag_manager import normalize_color

PREFERENCE_FIELDS = [
    ("tmdb_api_key_ref", DataValidator.normalize_string, True),
    ("tmdb_language", DataValidator.normalize_string),
    ("theme", lambda v: DataValidator.normalize_enum(ThemeMode, v)),
    ("accent_color", normalize_color),
    ("achievement_notifications", DataValidator.normalize_bool),
    ("news_notifications", DataValidator.normalize_bool),
    ("reminder_notifications", DataValidator.normalize_bool),
    ("default_export_format", lambda v: DataValidator.normalize_enum(ExportType, v)),
    ("include_poster_images", DataValidator.normalize_bool),
    ("include_reviews_in_export", DataValidator.normalize_bool),
    ("share_statistics", DataValidator.normalize_bool),
    ("haptic_feedback_enabled", DataValidator.normalize_bool),
    (
        "news_scrape_frequency",
        lambda v: DataValidator.normalize_enum(NewsScrapeFrequency, v),
    ),
    ("enable_background_news_refresh", DataValidator.normalize_bool),
]


class PreferencesManager(BaseManager):
    """
    Singleton access to UserPreferences.
    """

    def ensure_exists(self) -> UserPreferences:
        """Create the preferences row with defaults if it is missing."""
        preferences = self.session.get(UserPreferences, PREFERENCES_ID)
        if preferences is None:
            preferences = UserPreferences(id=PREFERENCES_ID, **PREFERENCE_DEFAULTS)
            self.session.add(preferences)
            self.session.flush()
            if self.logger:
                self.logger.log_debug("Created default user preferences")
        return preferences

    @handle_db_errors
    @log_database_operation("get_preferences")
    def get(self) -> UserPreferences:
        return self.ensure_exists()

    @handle_db_errors
    @log_database_operation("update_preferences")
    @atomic_operation
    def update(self, metadata: Dict[str, Any]) -> UserPreferences:
        """
        Update preference fields.

        Raises:
            ValidationError: If a key is not a preference or a value is malformed
        """
        unknown = sorted(set(metadata) - set(PREFERENCE_DEFAULTS))
        if unknown:
            raise ValidationError(f"Unknown preference fields: {', '.join(unknown)}")

        preferences = self.ensure_exists()
        self._update_scalar_fields(preferences, metadata, PREFERENCE_FIELDS)
        self.session.flush()
        return preferences

    @handle_db_errors
    @log_database_operation("reset_preferences")
    @atomic_operation
    def reset_to_defaults(self) -> UserPreferences:
        """Restore every preference to its default, keeping the row."""
        preferences = self.ensure_exists()
        for key, value in PREFERENCE_DEFAULTS.items():
            setattr(preferences, key, value)
        self.session.flush()
        return preferences

    def count(self) -> int:
        return len(self.session.scalars(select(UserPreferences.id)).all())
