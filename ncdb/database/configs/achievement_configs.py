#!/usr/bin/env python3
"""
achievement_configs.py
----------------------

Predefined achievement catalog and its trigger mapping.

Each definition names the aggregate metric that drives its progress.
Metrics are computed by QueryAnalytics.achievement_metrics():

    watched            - productions marked watched
    rated              - productions with a user rating
    ranked             - productions with a ranking position
    top_genre_watched  - watched productions in the most-watched genre
    complete_decades   - decades in which every production is watched
    shares             - share actions recorded by the client (not derived
                         from the catalog; advanced with increment())

A requirement of None means "the whole catalog": it is resolved to the
current production count (at least 1) while the achievement is locked.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..models import AchievementCategory


@dataclass(frozen=True)
class AchievementDefinition:
    """
    Configuration for one predefined achievement.

    Attributes:
        id: Stable slug
        title: Display title
        description: What the user has to do
        icon: Symbol name
        category: Achievement group
        metric: Metric key driving progress
        requirement: Target value, or None for the catalog size
    """
    id: str
    title: str
    description: str
    icon: str
    category: AchievementCategory
    metric: str
    requirement: Optional[float] = 1.0


CATALOG_SIZE_METRIC = "total"

ACHIEVEMENT_DEFINITIONS: List[AchievementDefinition] = [
    # ---- Watch milestones ----
    AchievementDefinition(
        "first_watch", "First Steps", "Watch your first Nicolas Cage movie",
        "play.circle.fill", AchievementCategory.WATCH_MILESTONES, "watched", 1,
    ),
    AchievementDefinition(
        "ten_watches", "Cage Enthusiast", "Watch 10 Nicolas Cage movies",
        "10.circle.fill", AchievementCategory.WATCH_MILESTONES, "watched", 10,
    ),
    AchievementDefinition(
        "twentyfive_watches", "Cage Devotee", "Watch 25 Nicolas Cage movies",
        "flame.fill", AchievementCategory.WATCH_MILESTONES, "watched", 25,
    ),
    AchievementDefinition(
        "fifty_watches", "Cage Fanatic", "Watch 50 Nicolas Cage movies",
        "star.circle.fill", AchievementCategory.WATCH_MILESTONES, "watched", 50,
    ),
    AchievementDefinition(
        "all_watched", "One True God", "Watch every Nicolas Cage movie",
        "crown.fill", AchievementCategory.WATCH_MILESTONES, "watched", None,
    ),
    # ---- Ratings ----
    AchievementDefinition(
        "first_rating", "Film Critic", "Rate your first movie",
        "star.fill", AchievementCategory.RATINGS, "rated", 1,
    ),
    AchievementDefinition(
        "ten_ratings", "Amateur Critic", "Rate 10 movies",
        "star.leadinghalf.filled", AchievementCategory.RATINGS, "rated", 10,
    ),
    AchievementDefinition(
        "fifty_ratings", "Professional Critic", "Rate 50 movies",
        "star.circle.fill", AchievementCategory.RATINGS, "rated", 50,
    ),
    # ---- Rankings ----
    AchievementDefinition(
        "first_rank", "Ranking Rookie", "Add your first movie to the ranking",
        "list.number", AchievementCategory.RANKINGS, "ranked", 1,
    ),
    AchievementDefinition(
        "ten_ranked", "Ranking Regular", "Rank 10 movies",
        "chart.bar.fill", AchievementCategory.RANKINGS, "ranked", 10,
    ),
    AchievementDefinition(
        "twentyfive_ranked", "Ranking Master", "Rank 25 movies",
        "trophy.fill", AchievementCategory.RANKINGS, "ranked", 25,
    ),
    # ---- Social ----
    AchievementDefinition(
        "first_share", "Sharing is Caring", "Share your first ranking or rating",
        "square.and.arrow.up.fill", AchievementCategory.SOCIAL, "shares", 1,
    ),
    # ---- Completionist ----
    AchievementDefinition(
        "decade_complete", "Decade Explorer", "Watch all movies from a single decade",
        "calendar.badge.checkmark", AchievementCategory.COMPLETIONIST, "complete_decades", 1,
    ),
    AchievementDefinition(
        "genre_master", "Genre Master", "Watch 20 movies of the same genre",
        "film.stack.fill", AchievementCategory.COMPLETIONIST, "top_genre_watched", 20,
    ),
]

DEFINITIONS_BY_ID: Dict[str, AchievementDefinition] = {
    definition.id: definition for definition in ACHIEVEMENT_DEFINITIONS
}


def get_definition(achievement_id: str) -> Optional[AchievementDefinition]:
    """Look up a predefined achievement by slug."""
    return DEFINITIONS_BY_ID.get(achievement_id)


def resolve_requirement(definition: AchievementDefinition, metrics: Dict[str, float]) -> float:
    """
    Concrete requirement for a definition given current metrics.

    Catalog-sized requirements resolve to the production count, never
    below 1.
    """
    if definition.requirement is not None:
        return float(definition.requirement)
    return float(max(1, metrics.get(CATALOG_SIZE_METRIC, 0)))
