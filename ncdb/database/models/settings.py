"""
Settings Models
---------------

User-level configuration persisted alongside the catalog.

Models:
    - UserPreferences: Single-row preferences table
    - ExportTemplate: Saved export layout and options

UserPreferences always holds exactly one row, keyed by the constant
PREFERENCES_ID. The row is created with the schema, refused a second time
and never deleted. The metadata API key itself lives in an external secret
store; only a reference to it is kept here.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDPrimaryKeyMixin, utcnow
from .enums import ExportType, NewsScrapeFrequency, ThemeMode

PREFERENCES_ID = 1

PREFERENCE_DEFAULTS: Dict[str, Any] = {
    "tmdb_api_key_ref": None,
    "tmdb_language": "en-US",
    "theme": ThemeMode.SYSTEM,
    "accent_color": "#FFD700",
    "achievement_notifications": True,
    "news_notifications": True,
    "reminder_notifications": False,
    "default_export_format": ExportType.HTML,
    "include_poster_images": True,
    "include_reviews_in_export": True,
    "share_statistics": True,
    "haptic_feedback_enabled": True,
    "news_scrape_frequency": NewsScrapeFrequency.DAILY,
    "enable_background_news_refresh": True,
}


class UserPreferences(Base):
    """
    Application preferences (exactly one row).

    Attributes:
        id: Always PREFERENCES_ID
        tmdb_api_key_ref: Name of the secret holding the metadata API key
        tmdb_language: Metadata language code
        theme / accent_color: Display
        *_notifications: Notification toggles
        default_export_format / include_poster_images: Export defaults
        include_reviews_in_export / share_statistics: Privacy
        haptic_feedback_enabled: Haptics toggle
        news_scrape_frequency / enable_background_news_refresh: News refresh
    """

    __tablename__ = "user_preferences"
    __table_args__ = (
        CheckConstraint(f"id = {PREFERENCES_ID}", name="ck_preferences_single_row"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=PREFERENCES_ID)

    # ---- Metadata API ----
    tmdb_api_key_ref: Mapped[Optional[str]] = mapped_column(String(255))
    tmdb_language: Mapped[str] = mapped_column(String(20), default="en-US", nullable=False)

    # ---- Display ----
    theme: Mapped[ThemeMode] = mapped_column(
        SQLEnum(ThemeMode, values_callable=lambda x: [e.value for e in x]),
        default=ThemeMode.SYSTEM,
        nullable=False,
    )
    accent_color: Mapped[str] = mapped_column(String(9), default="#FFD700", nullable=False)

    # ---- Notifications ----
    achievement_notifications: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    news_notifications: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    reminder_notifications: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # ---- Export ----
    default_export_format: Mapped[ExportType] = mapped_column(
        SQLEnum(ExportType, values_callable=lambda x: [e.value for e in x]),
        default=ExportType.HTML,
        nullable=False,
    )
    include_poster_images: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # ---- Privacy ----
    include_reviews_in_export: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    share_statistics: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # ---- Haptics ----
    haptic_feedback_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # ---- News ----
    news_scrape_frequency: Mapped[NewsScrapeFrequency] = mapped_column(
        SQLEnum(NewsScrapeFrequency, values_callable=lambda x: [e.value for e in x]),
        default=NewsScrapeFrequency.DAILY,
        nullable=False,
    )
    enable_background_news_refresh: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )

    def __repr__(self) -> str:
        return f"<UserPreferences(theme={self.theme.value}, language={self.tmdb_language})>"


class ExportTemplate(UUIDPrimaryKeyMixin, Base):
    """
    A saved export layout.

    Attributes:
        id: UUID primary key
        name: Display name
        export_type: Document format (enum)
        html_template: Jinja2 template replacing the default HTML layout
        css_styles: CSS replacing the default stylesheet
        include_images / include_ratings / include_reviews: Export options
        date_created: Creation timestamp
    """

    __tablename__ = "export_templates"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    export_type: Mapped[ExportType] = mapped_column(
        SQLEnum(ExportType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    html_template: Mapped[Optional[str]] = mapped_column(Text)
    css_styles: Mapped[Optional[str]] = mapped_column(Text)
    include_images: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    include_ratings: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    include_reviews: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<ExportTemplate(name={self.name}, type={self.export_type.value})>"
