"""
Enumeration Types
------------------

Enum classes for the NCDB database models.

Enums:
    - ProductionType: Kind of production (movie, TV show, ...)
    - RatingSource: Origin of an external rating
    - ArticleCategory: Topic of a news article
    - AchievementCategory: Grouping of achievements
    - ExportType: Export document formats
    - NewsScrapeFrequency: How often collaborators refresh news
    - ThemeMode: Display theme preference

Values match the labels shown to users, so they are stored as-is.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import math
from enum import Enum
from typing import List


class ProductionType(str, Enum):
    """
    Enumeration of production kinds.
    - MOVIE: Theatrical feature film
    - TV_SHOW: Television series
    - TV_MOVIE: Made-for-television film
    - DOCUMENTARY: Documentary film
    """

    MOVIE = "Movie"
    TV_SHOW = "TV Show"
    TV_MOVIE = "TV Movie"
    DOCUMENTARY = "Documentary"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available production type choices."""
        return [kind.value for kind in cls]


class RatingSource(str, Enum):
    """
    Enumeration of external rating sources.

    Each source has its own native scale, reflected in ``default_max_rating``
    and in ExternalRating.display_string.
    """

    IMDB = "IMDb"
    ROTTEN_TOMATOES = "Rotten Tomatoes"
    METACRITIC = "Metacritic"
    LETTERBOXD = "Letterboxd"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available rating source choices."""
        return [source.value for source in cls]

    @property
    def default_max_rating(self) -> float:
        """Native maximum of the source's scale."""
        scale = {
            RatingSource.IMDB: 10.0,
            RatingSource.ROTTEN_TOMATOES: 100.0,
            RatingSource.METACRITIC: 100.0,
            RatingSource.LETTERBOXD: 5.0,
        }
        return scale[self]


class ArticleCategory(str, Enum):
    """Enumeration of news article topics."""

    NEW_MOVIE = "New Movie Announcement"
    CASTING = "Casting News"
    INTERVIEW = "Interview"
    REVIEW = "Review"
    BOX_OFFICE = "Box Office"
    AWARD = "Award News"
    PERSONAL = "Personal Life"
    GENERAL = "General News"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available article category choices."""
        return [category.value for category in cls]


class AchievementCategory(str, Enum):
    """Enumeration of achievement groups."""

    WATCH_MILESTONES = "Watch Milestones"
    RATINGS = "Ratings"
    RANKINGS = "Rankings"
    VARIETY = "Variety"
    SOCIAL = "Social"
    COMPLETIONIST = "Completionist"

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        return self.value

    @property
    def icon(self) -> str:
        """Symbol name used by clients for the category badge."""
        icons = {
            AchievementCategory.WATCH_MILESTONES: "eye.fill",
            AchievementCategory.RATINGS: "star.fill",
            AchievementCategory.RANKINGS: "trophy.fill",
            AchievementCategory.VARIETY: "square.grid.2x2.fill",
            AchievementCategory.SOCIAL: "person.2.fill",
            AchievementCategory.COMPLETIONIST: "checkmark.seal.fill",
        }
        return icons[self]


class ExportType(str, Enum):
    """Enumeration of export document formats."""

    HTML = "HTML"
    JSON = "JSON"
    CSV = "CSV"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available export format choices."""
        return [kind.value for kind in cls]

    @property
    def file_extension(self) -> str:
        """File extension without the dot."""
        return self.value.lower()

    @property
    def mime_type(self) -> str:
        """MIME type declared for documents of this format."""
        mime_types = {
            ExportType.HTML: "text/html",
            ExportType.JSON: "application/json",
            ExportType.CSV: "text/csv",
        }
        return mime_types[self]


class NewsScrapeFrequency(str, Enum):
    """Enumeration of news refresh cadences."""

    MANUAL = "Manual Only"
    DAILY = "Once Daily"
    TWICE_DAILY = "Twice Daily"
    WEEKLY = "Once Weekly"

    @property
    def interval_seconds(self) -> float:
        """Seconds between refreshes; infinite for manual refresh."""
        intervals = {
            NewsScrapeFrequency.MANUAL: math.inf,
            NewsScrapeFrequency.DAILY: 86400.0,
            NewsScrapeFrequency.TWICE_DAILY: 43200.0,
            NewsScrapeFrequency.WEEKLY: 604800.0,
        }
        return intervals[self]


class ThemeMode(str, Enum):
    """Enumeration of display themes."""

    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        return self.value.title()
