#!/usr/bin/env python3
"""
article_manager.py
--------------------
Manages NewsArticle entities supplied by the external news scraper.

Articles are deduplicated by URL. The scraper calls
insert_article_if_absent() for every candidate; readers flip the read and
favorite flags, and old articles are purged by cutoff date.

Usage:
    article_mgr = ArticleManager(session, logger)

    article = article_mgr.insert_article_if_absent(url, {
        "title": "Nicolas Cage cast in new thriller",
        "source": "Variety",
        "published_date": "2024-03-05T10:00:00+00:00",
        "category": "Casting News",
        "relevance_score": 0.9,
    })
    if article is None:
        pass  # already stored
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import delete, select

from ncdb.core.validators import DataValidator
from ncdb.database.decorators import (
    atomic_operation,
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from ncdb.database.models import ArticleCategory, NewsArticle
from .base_manager import BaseManager

ArticleRef = Union[NewsArticle, str]

ARTICLE_FIELDS = [
    ("title", DataValidator.normalize_string),
    ("summary", DataValidator.normalize_string, True),
    ("full_content", DataValidator.normalize_string, True),
    ("image_url", DataValidator.normalize_string, True),
    ("source", DataValidator.normalize_string),
    ("author", DataValidator.normalize_string, True),
    ("published_date", DataValidator.normalize_datetime),
    ("scraped_date", DataValidator.normalize_datetime),
    ("is_read", DataValidator.normalize_bool),
    ("is_favorite", DataValidator.normalize_bool),
    ("user_notes", DataValidator.normalize_string, True),
    ("category", lambda v: DataValidator.normalize_enum(ArticleCategory, v)),
    ("relevance_score", DataValidator.normalize_float),
]


class ArticleManager(BaseManager):
    """
    Manages NewsArticle table operations.
    """

    @handle_db_errors
    @log_database_operation("get_article")
    def get(self, url: str) -> Optional[NewsArticle]:
        """Retrieve an article by URL."""
        return self._get_by_field(NewsArticle, "url", url)

    @handle_db_errors
    @log_database_operation("get_all_articles")
    def get_all(
        self,
        unread_only: bool = False,
        favorites_only: bool = False,
        category: Optional[Union[ArticleCategory, str]] = None,
    ) -> List[NewsArticle]:
        """
        Retrieve articles, newest first.

        Args:
            unread_only: Only articles not yet read
            favorites_only: Only favorited articles
            category: Restrict to one category
        """
        stmt = select(NewsArticle)
        if unread_only:
            stmt = stmt.where(NewsArticle.is_read.is_(False))
        if favorites_only:
            stmt = stmt.where(NewsArticle.is_favorite.is_(True))
        if category is not None:
            stmt = stmt.where(
                NewsArticle.category == DataValidator.normalize_enum(ArticleCategory, category)
            )
        stmt = stmt.order_by(NewsArticle.published_date.desc(), NewsArticle.id)
        return list(self.session.scalars(stmt).all())

    @handle_db_errors
    @log_database_operation("create_article")
    @atomic_operation
    @validate_metadata(["url", "title", "source", "published_date"])
    def create(self, metadata: Dict[str, Any]) -> NewsArticle:
        """
        Create a new article.

        Raises:
            ValidationError: If a required field is missing
            DuplicateKeyError: If the URL is already stored
            ConstraintViolationError: If relevance_score is outside [0, 1]
        """
        url = DataValidator.normalize_string(metadata["url"])
        self._assert_unique(NewsArticle, "url", url)

        article = NewsArticle(url=url)
        self._update_scalar_fields(article, metadata, ARTICLE_FIELDS)
        DataValidator.validate_range("relevance_score", article.relevance_score, 0, 1)

        self.session.add(article)
        self.session.flush()
        return article

    @handle_db_errors
    @log_database_operation("insert_article_if_absent")
    @atomic_operation
    def insert_article_if_absent(self, url: str, fields: Dict[str, Any]) -> Optional[NewsArticle]:
        """
        Store an article unless its URL is already known.

        Returns:
            The new NewsArticle, or None when the URL already exists
        """
        if self._exists(NewsArticle, "url", url):
            return None
        return self.create({**fields, "url": url})

    @handle_db_errors
    @log_database_operation("update_article")
    @atomic_operation
    def update(self, article: ArticleRef, metadata: Dict[str, Any]) -> NewsArticle:
        article = self._resolve_article(article)
        self._update_scalar_fields(article, metadata, ARTICLE_FIELDS)
        DataValidator.validate_range("relevance_score", article.relevance_score, 0, 1)
        self.session.flush()
        return article

    def _resolve_article(self, article: ArticleRef) -> NewsArticle:
        if isinstance(article, str):
            by_url = self._get_by_field(NewsArticle, "url", article)
            if by_url is not None:
                return by_url
        return self._resolve_object(article, NewsArticle)

    @handle_db_errors
    @log_database_operation("mark_article_read")
    @atomic_operation
    def mark_read(self, article: ArticleRef, is_read: bool = True) -> NewsArticle:
        article = self._resolve_article(article)
        article.is_read = is_read
        self.session.flush()
        return article

    @handle_db_errors
    @log_database_operation("toggle_article_favorite")
    @atomic_operation
    def toggle_favorite(self, article: ArticleRef) -> bool:
        article = self._resolve_article(article)
        article.is_favorite = not article.is_favorite
        self.session.flush()
        return article.is_favorite

    @handle_db_errors
    @log_database_operation("delete_article")
    @atomic_operation
    def delete(self, article: ArticleRef) -> None:
        article = self._resolve_article(article)
        self.session.delete(article)
        self.session.flush()

    @handle_db_errors
    @log_database_operation("purge_articles")
    @atomic_operation
    def purge_older_than(self, cutoff: datetime, keep_favorites: bool = True) -> int:
        """
        Delete articles published before ``cutoff``.

        Args:
            cutoff: Articles published strictly before this are removed
            keep_favorites: Keep favorited articles regardless of age

        Returns:
            Number of articles deleted
        """
        stmt = select(NewsArticle.id).where(
            NewsArticle.published_date < DataValidator.normalize_datetime(cutoff)
        )
        if keep_favorites:
            stmt = stmt.where(NewsArticle.is_favorite.is_(False))
        stale_ids = list(self.session.scalars(stmt).all())

        if stale_ids:
            self.session.execute(delete(NewsArticle).where(NewsArticle.id.in_(stale_ids)))
        return len(stale_ids)
