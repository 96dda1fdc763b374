"""
Database Models Package
------------------------

SQLAlchemy ORM models for the NCDB catalog database.

This package provides a modular organization of database models:
- base: Base class, UUID mixin and time helpers
- associations: Many-to-many relationship tables
- enums: Enumeration types
- production: Production (catalog item)
- production_details: CastMember, WatchEvent, ExternalRating
- entities: CustomTag
- news: NewsArticle
- achievements: Achievement
- settings: UserPreferences, ExportTemplate

Usage:
    from ncdb.database.models import Production, CustomTag, Achievement
"""
# Base classes
from .base import Base, UUIDPrimaryKeyMixin, as_utc, new_uuid, utcnow

# Enumerations
from .enums import (
    AchievementCategory,
    ArticleCategory,
    ExportType,
    NewsScrapeFrequency,
    ProductionType,
    RatingSource,
    ThemeMode,
)

# Association tables
from .associations import production_tags

# Core models
from .production import Production
from .production_details import CastMember, ExternalRating, WatchEvent

# Entity models
from .entities import CustomTag

# News and gamification
from .news import NewsArticle
from .achievements import Achievement

# Settings
from .settings import PREFERENCES_ID, PREFERENCE_DEFAULTS, ExportTemplate, UserPreferences

__all__ = [
    # Base
    "Base",
    "UUIDPrimaryKeyMixin",
    "as_utc",
    "new_uuid",
    "utcnow",
    # Enums
    "AchievementCategory",
    "ArticleCategory",
    "ExportType",
    "NewsScrapeFrequency",
    "ProductionType",
    "RatingSource",
    "ThemeMode",
    # Association tables
    "production_tags",
    # Core
    "Production",
    "CastMember",
    "ExternalRating",
    "WatchEvent",
    # Entities
    "CustomTag",
    # News and gamification
    "NewsArticle",
    "Achievement",
    # Settings
    "PREFERENCES_ID",
    "PREFERENCE_DEFAULTS",
    "ExportTemplate",
    "UserPreferences",
]
