#!/usr/bin/env python3
"""
query_analytics.py
------------------
Aggregate statistics and breakdowns over the catalog.

ProductionStats can be computed from the live store (production_stats) or
from exported production records (ProductionStats.from_records); both use
the same definitions, so statistics re-derived from a JSON export equal the
live ones.
"""
from collections import Counter
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ncdb.core.logging_manager import NCDBLogger
from .decorators import handle_db_errors, log_database_operation
from .models import Production

MINUTES_PER_DAY = 24 * 60


def format_total_runtime(minutes: int) -> str:
    """Total runtime as '3d 4h' or '7h'."""
    days, rest = divmod(minutes, MINUTES_PER_DAY)
    hours = rest // 60
    if days > 0:
        return f"{days}d {hours}h"
    return f"{hours}h"


@dataclass
class ProductionStats:
    """
    Aggregate statistics over the Production set.

    Attributes:
        total: Number of productions
        watched / unwatched: Split by the watched flag
        rated: Productions with a user rating
        favorites: Productions marked favorite
        ranked: Productions with a ranking position
        total_runtime_minutes: Runtime sum of watched productions
        average_rating: Mean user rating, None when nothing is rated
    """
    total: int = 0
    watched: int = 0
    unwatched: int = 0
    rated: int = 0
    favorites: int = 0
    ranked: int = 0
    total_runtime_minutes: int = 0
    average_rating: Optional[float] = None

    @property
    def completion_percentage(self) -> float:
        """Watched share of the catalog, 0-100."""
        if self.total == 0:
            return 0.0
        return self.watched / self.total * 100

    @property
    def formatted_runtime(self) -> str:
        return format_total_runtime(self.total_runtime_minutes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["completion_percentage"] = self.completion_percentage
        data["formatted_runtime"] = self.formatted_runtime
        return data

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "ProductionStats":
        """
        Compute statistics from serialized production records.

        Args:
            records: Dicts with watched, runtime, user_rating, is_favorite
                and ranking_position keys (the JSON export layout)
        """
        records = list(records)
        watched = [r for r in records if r.get("watched")]
        ratings = [r["user_rating"] for r in records if r.get("user_rating") is not None]

        return cls(
            total=len(records),
            watched=len(watched),
            unwatched=len(records) - len(watched),
            rated=len(ratings),
            favorites=sum(1 for r in records if r.get("is_favorite")),
            ranked=sum(1 for r in records if r.get("ranking_position") is not None),
            total_runtime_minutes=sum(r.get("runtime") or 0 for r in watched),
            average_rating=sum(ratings) / len(ratings) if ratings else None,
        )


class QueryAnalytics:
    """
    Handles aggregate queries and catalog analytics.
    """

    def __init__(self, logger: Optional[NCDBLogger] = None) -> None:
        """
        Initialize query analytics.

        Args:
            logger: Optional logger for query operations
        """
        self.logger = logger

    @handle_db_errors
    @log_database_operation("production_stats")
    def production_stats(self, session: Session) -> ProductionStats:
        """
        Compute aggregate statistics with SQL aggregates.

        Args:
            session: SQLAlchemy session

        Returns:
            ProductionStats for the committed catalog
        """
        total = session.scalar(select(func.count(Production.id))) or 0
        watched = session.scalar(
            select(func.count(Production.id)).where(Production.watched.is_(True))
        ) or 0
        rated = session.scalar(
            select(func.count(Production.id)).where(Production.user_rating.is_not(None))
        ) or 0
        favorites = session.scalar(
            select(func.count(Production.id)).where(Production.is_favorite.is_(True))
        ) or 0
        ranked = session.scalar(
            select(func.count(Production.id)).where(Production.ranking_position.is_not(None))
        ) or 0
        runtime = session.scalar(
            select(func.coalesce(func.sum(Production.runtime), 0)).where(
                Production.watched.is_(True)
            )
        ) or 0
        # AVG over an empty set is NULL, which is the "no data" value
        average = session.scalar(select(func.avg(Production.user_rating)))

        return ProductionStats(
            total=total,
            watched=watched,
            unwatched=total - watched,
            rated=rated,
            favorites=favorites,
            ranked=ranked,
            total_runtime_minutes=int(runtime),
            average_rating=float(average) if average is not None else None,
        )

    def _watched(self, session: Session) -> List[Production]:
        return list(
            session.scalars(
                select(Production).where(Production.watched.is_(True))
            ).all()
        )

    @handle_db_errors
    @log_database_operation("genre_breakdown")
    def genre_breakdown(self, session: Session) -> Dict[str, int]:
        """
        Watched productions per genre, most common first.

        Ties are ordered alphabetically.
        """
        counts = Counter(g for p in self._watched(session) for g in (p.genres or []))
        return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))

    @handle_db_errors
    @log_database_operation("decade_breakdown")
    def decade_breakdown(self, session: Session) -> Dict[int, int]:
        """Watched productions per release decade, oldest first."""
        counts = Counter(p.decade for p in self._watched(session))
        return dict(sorted(counts.items()))

    @handle_db_errors
    @log_database_operation("achievement_metrics")
    def achievement_metrics(self, session: Session) -> Dict[str, float]:
        """
        Metrics feeding the achievement catalog.

        Returns:
            Dictionary with keys total, watched, rated, ranked,
            top_genre_watched and complete_decades
        """
        stats = self.production_stats(session)
        genres = self.genre_breakdown(session)

        per_decade: Dict[int, List[bool]] = {}
        for production in session.scalars(select(Production)).all():
            per_decade.setdefault(production.decade, []).append(production.watched)

        return {
            "total": stats.total,
            "watched": stats.watched,
            "rated": stats.rated,
            "ranked": stats.ranked,
            "top_genre_watched": max(genres.values(), default=0),
            "complete_decades": sum(1 for flags in per_decade.values() if all(flags)),
        }
