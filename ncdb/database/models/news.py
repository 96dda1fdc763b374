"""
News Models
-----------

Articles gathered by the external news collaborator.

Models:
    - NewsArticle: A news item, deduplicated by URL
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    Float,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDPrimaryKeyMixin, as_utc, utcnow
from .enums import ArticleCategory

RECENT_WINDOW = timedelta(days=7)


class NewsArticle(UUIDPrimaryKeyMixin, Base):
    """
    A news article about the actor.

    Attributes:
        id: UUID primary key
        url: Original article URL (unique)
        title: Headline
        summary / full_content: Article text, when scraped
        image_url: Lead image
        source: Publisher name, e.g. 'Variety'
        author: Byline
        published_date: Publication timestamp
        scraped_date: When the collaborator fetched it
        is_read / is_favorite: Reader flags
        user_notes: Free-form notes
        category: Topic (enum)
        relevance_score: 0-1 relevance estimate
    """

    __tablename__ = "news_articles"
    __table_args__ = (
        CheckConstraint(
            "relevance_score >= 0 AND relevance_score <= 1",
            name="ck_article_relevance_range",
        ),
    )

    url: Mapped[str] = mapped_column(String(1000), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text)
    full_content: Mapped[Optional[str]] = mapped_column(Text)
    image_url: Mapped[Optional[str]] = mapped_column(String(1000))

    source: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[Optional[str]] = mapped_column(String(255))
    published_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    scraped_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    user_notes: Mapped[Optional[str]] = mapped_column(Text)

    category: Mapped[ArticleCategory] = mapped_column(
        SQLEnum(ArticleCategory, values_callable=lambda x: [e.value for e in x]),
        default=ArticleCategory.GENERAL,
        nullable=False,
    )
    relevance_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    @property
    def formatted_date(self) -> str:
        """Publication date as 'Mar 05, 2024'."""
        return as_utc(self.published_date).strftime("%b %d, %Y")

    @property
    def is_recent(self) -> bool:
        """Check if published within the last seven days."""
        return as_utc(self.published_date) > utcnow() - RECENT_WINDOW

    def __repr__(self) -> str:
        return f"<NewsArticle(source={self.source}, title={self.title[:40]})>"
