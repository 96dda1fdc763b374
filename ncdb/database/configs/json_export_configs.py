#!/usr/bin/env python3
"""
json_export_configs.py
----------------------

Configuration-driven snapshot serialization for exports.

Each EntityExportConfig names the key in the export document, the model to
read and the serializer turning one ORM instance into plain data. The
export snapshot is built from these configs while the write lock is held;
the renderers only ever see the resulting dicts.

Serializers are deterministic: datetimes become ISO 8601 UTC strings, enums
become their values and nested collections are sorted by stable keys.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Type

from ..models import (
    Achievement,
    CastMember,
    CustomTag,
    ExternalRating,
    NewsArticle,
    Production,
    WatchEvent,
    as_utc,
)


@dataclass
class EntityExportConfig:
    """
    Configuration for exporting an entity type.

    Attributes:
        json_key: Key name in the export document (e.g., "productions")
        model: SQLAlchemy model class to query
        serializer: Function that takes an entity instance and returns a dict
        sort_key: Function ordering the serialized records
    """
    json_key: str
    model: Type
    serializer: Callable[[Any], Dict[str, Any]]
    sort_key: Callable[[Dict[str, Any]], Any]


def _iso(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime as an ISO 8601 UTC string."""
    if value is None:
        return None
    return as_utc(value).isoformat()


# ========================================
# Serializer Functions
# ========================================

def _serialize_cast_member(member: CastMember) -> Dict[str, Any]:
    """Serialize CastMember entity."""
    return {
        "id": member.id,
        "name": member.name,
        "character": member.character,
        "billing_order": member.billing_order,
        "profile_path": member.profile_path,
    }


def _serialize_watch_event(event: WatchEvent) -> Dict[str, Any]:
    """Serialize WatchEvent entity."""
    return {
        "id": event.id,
        "watched_date": _iso(event.watched_date),
        "location": event.location,
        "notes": event.notes,
        "mood": event.mood,
    }


def _serialize_external_rating(rating: ExternalRating) -> Dict[str, Any]:
    """Serialize ExternalRating entity."""
    return {
        "id": rating.id,
        "source": rating.source.value,
        "rating": rating.rating,
        "max_rating": rating.max_rating,
        "review_count": rating.review_count,
        "url": rating.url,
        "display": rating.display_string,
    }


def _serialize_production(production: Production) -> Dict[str, Any]:
    """Serialize Production entity with its owned children and tags."""
    return {
        "id": production.id,
        "title": production.title,
        "release_year": production.release_year,
        "external_id": production.external_id,
        "production_type": production.production_type.value,
        "genres": list(production.genres or []),
        "poster_path": production.poster_path,
        "backdrop_path": production.backdrop_path,
        "poster_url": production.poster_url,
        "plot": production.plot,
        "director": production.director,
        "runtime": production.runtime,
        "formatted_runtime": production.formatted_runtime,
        "budget": production.budget,
        "box_office": production.box_office,
        "watched": production.watched,
        "date_watched": _iso(production.date_watched),
        "user_rating": production.user_rating,
        "review": production.review,
        "is_favorite": production.is_favorite,
        "ranking_position": production.ranking_position,
        "watch_count": production.watch_count,
        "last_updated": _iso(production.last_updated),
        "tags": sorted(tag.name for tag in production.tags),
        "cast": sorted(
            (_serialize_cast_member(m) for m in production.cast_members),
            key=lambda m: (m["billing_order"], m["id"]),
        ),
        "watch_events": sorted(
            (_serialize_watch_event(e) for e in production.watch_events),
            key=lambda e: (e["watched_date"], e["id"]),
        ),
        "external_ratings": sorted(
            (_serialize_external_rating(r) for r in production.external_ratings),
            key=lambda r: (r["source"], r["id"]),
        ),
    }


def _serialize_tag(tag: CustomTag) -> Dict[str, Any]:
    """Serialize CustomTag entity."""
    return {
        "id": tag.id,
        "name": tag.name,
        "color_hex": tag.color_hex,
        "icon": tag.icon,
        "date_created": _iso(tag.date_created),
        "production_count": tag.production_count,
    }


def _serialize_news_article(article: NewsArticle) -> Dict[str, Any]:
    """Serialize NewsArticle entity."""
    return {
        "id": article.id,
        "url": article.url,
        "title": article.title,
        "summary": article.summary,
        "source": article.source,
        "author": article.author,
        "published_date": _iso(article.published_date),
        "category": article.category.value,
        "relevance_score": article.relevance_score,
        "is_read": article.is_read,
        "is_favorite": article.is_favorite,
    }


def _serialize_achievement(achievement: Achievement) -> Dict[str, Any]:
    """Serialize Achievement entity."""
    return {
        "id": achievement.id,
        "title": achievement.title,
        "category": achievement.category.value,
        "progress": achievement.progress,
        "requirement": achievement.requirement,
        "is_unlocked": achievement.is_unlocked,
        "unlocked_date": _iso(achievement.unlocked_date),
    }


# ========================================
# Export Configuration Registry
# ========================================

EXPORT_CONFIGS: List[EntityExportConfig] = [
    EntityExportConfig(
        "productions", Production, _serialize_production,
        lambda p: (p["title"], p["id"]),
    ),
    EntityExportConfig(
        "tags", CustomTag, _serialize_tag,
        lambda t: (t["name"].lower(), t["id"]),
    ),
    EntityExportConfig(
        "news_articles", NewsArticle, _serialize_news_article,
        lambda a: (a["published_date"], a["id"]),
    ),
    EntityExportConfig(
        "achievements", Achievement, _serialize_achievement,
        lambda a: a["id"],
    ),
]
