#!/usr/bin/env python3
"""
ranking_manager.py
--------------------
Maintains the dense personal ranking over Productions.

Every ranked production holds a distinct ranking_position, and the set of
positions is always exactly {1, ..., N} where N is the number of ranked
productions. All operations compute the full target order first and then
rewrite positions in two flushes: changed rows are parked at
RANK_OFFSET + position, then moved to their final value. No intermediate
flush ever holds a duplicate or out-of-range value, so the unique and
check constraints stay satisfied throughout.

Key Features:
    - insert_at_rank / remove_from_rank / reorder
    - swap, move_to_top, move_to_bottom, move_up, move_down, clear_all
    - Ranking statistics and a shareable plain-text list
    - Density verified after every operation

Usage:
    with db.session_scope():
        db.rankings.insert_at_rank(face_off, 1)
        db.rankings.reorder(con_air, 1)
        db.rankings.remove_from_rank(face_off)

Production arguments accept either a Production instance or its id.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from sqlalchemy import func, select

from ncdb.core.exceptions import ConstraintViolationError, InvalidPositionError
from ncdb.database.decorators import (
    atomic_operation,
    handle_db_errors,
    log_database_operation,
)
from ncdb.database.models import Production
from .base_manager import BaseManager

RANK_OFFSET = 1_000_000

ProductionRef = Union[Production, str]


@dataclass
class RankingStats:
    """
    Summary of the current ranking.

    Attributes:
        total_ranked: Number of ranked productions
        average_rating: Mean user rating of rated ranked productions, or None
        top_decade: Decade with most ranked productions
        top_genre: Genre with most ranked productions
        oldest: Earliest-released ranked production title
        newest: Latest-released ranked production title
    """
    total_ranked: int = 0
    average_rating: Optional[float] = None
    top_decade: Optional[int] = None
    top_genre: Optional[str] = None
    oldest: Optional[str] = None
    newest: Optional[str] = None

    @property
    def formatted_top_decade(self) -> Optional[str]:
        if self.top_decade is None:
            return None
        return f"{self.top_decade}s"


class RankingManager(BaseManager):
    """
    Ranking engine over Production.ranking_position.

    Operations that change positions touch last_updated on every production
    whose position changed.
    """

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _ranked(self) -> List[Production]:
        stmt = (
            select(Production)
            .where(Production.ranking_position.is_not(None))
            .order_by(Production.ranking_position, Production.id)
        )
        return list(self.session.scalars(stmt).all())

    def _apply_order(
        self, ordered: List[Production], unranked: Iterable[Production] = ()
    ) -> None:
        """
        Rewrite ranking positions so ``ordered`` holds 1..N.

        Args:
            ordered: Productions in their new ranking order
            unranked: Productions leaving the ranking
        """
        changed = [
            (production, index)
            for index, production in enumerate(ordered, start=1)
            if production.ranking_position != index
        ]
        leaving = [p for p in unranked if p.ranking_position is not None]

        if changed or leaving:
            for production in leaving:
                production.ranking_position = None
                self._touch(production)
            for production, index in changed:
                production.ranking_position = RANK_OFFSET + index
            self.session.flush()

            for production, index in changed:
                production.ranking_position = index
                self._touch(production)
            self.session.flush()

        self.verify()

    def verify(self) -> None:
        """
        Check that ranking positions are exactly 1..N.

        Raises:
            ConstraintViolationError: If positions have gaps or duplicates
        """
        positions = sorted(
            self.session.scalars(
                select(Production.ranking_position).where(
                    Production.ranking_position.is_not(None)
                )
            ).all()
        )
        expected = list(range(1, len(positions) + 1))
        if positions != expected:
            raise ConstraintViolationError(
                f"Ranking positions must be 1..{len(positions)}, got {positions}"
            )

    def validate_position(self, position: int, appending: bool = False) -> None:
        """
        Check a target position against the current ranking size.

        Args:
            position: 1-based target
            appending: True when the production is not ranked yet, which
                makes N + 1 a valid target

        Raises:
            InvalidPositionError: If position is outside 1..N (or 1..N + 1)
        """
        upper = self.count() + (1 if appending else 0)
        if position < 1 or position > upper:
            raise InvalidPositionError(f"Position {position} outside 1..{upper}")

    # -------------------------------------------------------------------------
    # Core ranking operations
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("insert_at_rank")
    @atomic_operation
    def insert_at_rank(
        self, production: ProductionRef, position: Optional[int] = None
    ) -> Production:
        """
        Place a production at ``position``, shifting lower entries down.

        Args:
            production: Production or id
            position: 1-based target, or None to append at the end

        Returns:
            The ranked production

        Raises:
            InvalidPositionError: If position < 1 or position > N + 1
            NotFoundError: If the production does not exist

        Notes:
            A production that is already ranked is moved (see reorder()).
        """
        target = self._resolve_object(production, Production)
        if target.is_ranked:
            return self.reorder(target, position if position is not None else self.count())

        ranked = self._ranked()
        if position is None:
            position = len(ranked) + 1
        self.validate_position(position, appending=True)

        ranked.insert(position - 1, target)
        self._apply_order(ranked)
        return target

    @handle_db_errors
    @log_database_operation("remove_from_rank")
    @atomic_operation
    def remove_from_rank(self, production: ProductionRef) -> bool:
        """
        Clear a production's position and close the gap.

        Returns:
            True if the production was ranked, False if it was not
        """
        target = self._resolve_object(production, Production)
        if not target.is_ranked:
            return False

        ranked = [p for p in self._ranked() if p.id != target.id]
        self._apply_order(ranked, unranked=[target])
        return True

    @handle_db_errors
    @log_database_operation("reorder_rank")
    @atomic_operation
    def reorder(self, production: ProductionRef, new_position: int) -> Production:
        """
        Move a ranked production to ``new_position`` in one step.

        Unranked productions are inserted instead.

        Raises:
            InvalidPositionError: If new_position is outside 1..N
        """
        target = self._resolve_object(production, Production)
        if not target.is_ranked:
            return self.insert_at_rank(target, new_position)

        self.validate_position(new_position)
        ranked = self._ranked()

        ordered = [p for p in ranked if p.id != target.id]
        ordered.insert(new_position - 1, target)
        self._apply_order(ordered)
        return target

    # -------------------------------------------------------------------------
    # Convenience operations
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("swap_ranks")
    @atomic_operation
    def swap(self, first: ProductionRef, second: ProductionRef) -> None:
        """
        Exchange the positions of two ranked productions.

        Raises:
            InvalidPositionError: If either production is unranked
        """
        a = self._resolve_object(first, Production)
        b = self._resolve_object(second, Production)
        if not (a.is_ranked and b.is_ranked):
            raise InvalidPositionError("Both productions must be ranked to swap")

        ordered = self._ranked()
        i, j = ordered.index(a), ordered.index(b)
        ordered[i], ordered[j] = ordered[j], ordered[i]
        self._apply_order(ordered)

    def move_to_top(self, production: ProductionRef) -> Production:
        return self.reorder(production, 1)

    def move_to_bottom(self, production: ProductionRef) -> Production:
        target = self._resolve_object(production, Production)
        if not target.is_ranked:
            return self.insert_at_rank(target)
        return self.reorder(target, self.count())

    def move_up(self, production: ProductionRef) -> Production:
        """Move one place toward #1; no-op at the top or when unranked."""
        target = self._resolve_object(production, Production)
        if target.is_ranked and target.ranking_position > 1:
            return self.reorder(target, target.ranking_position - 1)
        return target

    def move_down(self, production: ProductionRef) -> Production:
        """Move one place away from #1; no-op at the bottom or when unranked."""
        target = self._resolve_object(production, Production)
        if target.is_ranked and target.ranking_position < self.count():
            return self.reorder(target, target.ranking_position + 1)
        return target

    @handle_db_errors
    @log_database_operation("clear_rankings")
    @atomic_operation
    def clear_all(self) -> int:
        """
        Remove every production from the ranking.

        Returns:
            Number of productions unranked
        """
        ranked = self._ranked()
        self._apply_order([], unranked=ranked)
        return len(ranked)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("get_ranked")
    def get_ranked(self, limit: Optional[int] = None) -> List[Production]:
        """Ranked productions ordered by position."""
        ranked = self._ranked()
        return ranked[:limit] if limit is not None else ranked

    def get_unranked(self) -> List[Production]:
        """Unranked productions ordered by title."""
        stmt = (
            select(Production)
            .where(Production.ranking_position.is_(None))
            .order_by(Production.title, Production.id)
        )
        return list(self.session.scalars(stmt).all())

    def count(self) -> int:
        """Number of ranked productions."""
        stmt = (
            select(func.count())
            .select_from(Production)
            .where(Production.ranking_position.is_not(None))
        )
        return self.session.scalar(stmt) or 0

    @handle_db_errors
    @log_database_operation("ranking_stats")
    def stats(self) -> RankingStats:
        """Compute summary statistics over the ranked productions."""
        ranked = self._ranked()
        if not ranked:
            return RankingStats()

        ratings = [p.user_rating for p in ranked if p.user_rating is not None]
        decades = Counter(p.decade for p in ranked)
        genres = Counter(g for p in ranked for g in (p.genres or []))

        # Ties resolve to the smallest decade / alphabetically first genre
        top_decade = min(decades, key=lambda d: (-decades[d], d))
        top_genre = min(genres, key=lambda g: (-genres[g], g)) if genres else None

        by_year = sorted(ranked, key=lambda p: (p.release_year, p.title, p.id))

        return RankingStats(
            total_ranked=len(ranked),
            average_rating=sum(ratings) / len(ratings) if ratings else None,
            top_decade=top_decade,
            top_genre=top_genre,
            oldest=str(by_year[0]),
            newest=str(by_year[-1]),
        )

    def shareable_text(self, top_n: Optional[int] = None) -> str:
        """
        Plain-text ranking for sharing.

        Example:
            My Nicolas Cage Movie Ranking

            #1 Face/Off (1997) - 5.0/5
            #2 Con Air (1997)

            #NicolasCage #NCDB
        """
        lines = ["My Nicolas Cage Movie Ranking", ""]
        for production in self.get_ranked(limit=top_n):
            rating = (
                f" - {production.user_rating:.1f}/5"
                if production.user_rating is not None
                else ""
            )
            lines.append(
                f"#{production.ranking_position} {production.title} "
                f"({production.release_year}){rating}"
            )
        lines.extend(["", "#NicolasCage #NCDB"])
        return "\n".join(lines)
