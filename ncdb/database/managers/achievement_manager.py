#!/usr/bin/env python3
"""
achievement_manager.py
--------------------
Manages Achievement entities and their progress.

Progress is monotonic: a lower value never replaces a higher one. The first
time progress reaches the requirement the achievement unlocks and records
its unlock date; unlocking is irreversible and happens exactly once.

Key Features:
    - Idempotent seeding of the predefined achievement catalog
    - update_progress / increment with one-time unlock
    - evaluate() over aggregate metrics (see configs/achievement_configs.py)

Usage:
    with db.session_scope():
        db.achievements.seed()
        metrics = db.query_analytics.achievement_metrics(session)
        for achievement in db.achievements.evaluate(metrics):
            print(f"Unlocked: {achievement.title}")
"""
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select

from ncdb.core.exceptions import ValidationError
from ncdb.core.validators import DataValidator
from ncdb.database.configs.achievement_configs import (
    ACHIEVEMENT_DEFINITIONS,
    CATALOG_SIZE_METRIC,
    get_definition,
    resolve_requirement,
)
from ncdb.database.decorators import (
    atomic_operation,
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from ncdb.database.models import Achievement, AchievementCategory, Production, utcnow
from .base_manager import BaseManager

AchievementRef = Union[Achievement, str]


class AchievementManager(BaseManager):
    """
    Manages Achievement table operations.
    """

    # -------------------------------------------------------------------------
    # Core CRUD Operations
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("get_achievement")
    def get(self, achievement_id: str) -> Optional[Achievement]:
        return self._get_by_id(Achievement, achievement_id)

    @handle_db_errors
    @log_database_operation("get_all_achievements")
    def get_all(
        self,
        category: Optional[Union[AchievementCategory, str]] = None,
        unlocked: Optional[bool] = None,
    ) -> List[Achievement]:
        """
        Retrieve achievements ordered by category then id.

        Args:
            category: Restrict to one category
            unlocked: True for unlocked only, False for locked only
        """
        stmt = select(Achievement)
        if category is not None:
            stmt = stmt.where(
                Achievement.category
                == DataValidator.normalize_enum(AchievementCategory, category)
            )
        if unlocked is not None:
            stmt = stmt.where(Achievement.is_unlocked.is_(unlocked))
        stmt = stmt.order_by(Achievement.category, Achievement.id)
        return list(self.session.scalars(stmt).all())

    @handle_db_errors
    @log_database_operation("create_achievement")
    @atomic_operation
    @validate_metadata(["id", "title", "category"])
    def create(self, metadata: Dict[str, Any]) -> Achievement:
        """
        Create a custom achievement.

        Args:
            metadata: Dictionary with keys:
                - id: Slug (required, unique)
                - title: Display title (required)
                - category: AchievementCategory or its value (required)
                - description, icon: Optional display text
                - requirement: Target value > 0 (default 1)
                - progress: Starting progress (default 0)

        Raises:
            DuplicateKeyError: If the id is taken
            ConstraintViolationError: If requirement <= 0 or progress < 0
        """
        achievement_id = DataValidator.normalize_string(metadata["id"])
        self._assert_unique(Achievement, "id", achievement_id)

        requirement = DataValidator.normalize_float(metadata.get("requirement"))
        requirement = 1.0 if requirement is None else requirement
        DataValidator.validate_range(
            "requirement", requirement, minimum=0, exclusive_minimum=True
        )

        progress = DataValidator.normalize_float(metadata.get("progress")) or 0.0
        DataValidator.validate_range("progress", progress, minimum=0)

        achievement = Achievement(
            id=achievement_id,
            title=DataValidator.normalize_string(metadata["title"]),
            description=DataValidator.normalize_string(metadata.get("description")) or "",
            icon=DataValidator.normalize_string(metadata.get("icon")) or "",
            category=DataValidator.normalize_enum(AchievementCategory, metadata["category"]),
            requirement=requirement,
            progress=0.0,
            is_unlocked=False,
        )
        self.session.add(achievement)
        self._advance(achievement, progress)
        self.session.flush()
        return achievement

    @handle_db_errors
    @log_database_operation("delete_achievement")
    @atomic_operation
    def delete(self, achievement: AchievementRef) -> None:
        achievement = self._resolve_object(achievement, Achievement)
        self.session.delete(achievement)
        self.session.flush()

    # -------------------------------------------------------------------------
    # Predefined catalog
    # -------------------------------------------------------------------------

    def _catalog_size(self) -> int:
        return self._count(Production)

    @handle_db_errors
    @log_database_operation("seed_achievements")
    @atomic_operation
    def seed(self) -> int:
        """
        Insert every predefined achievement that is not stored yet.

        Existing rows keep their progress and unlock state, so seeding is
        idempotent.

        Returns:
            Number of achievements inserted
        """
        existing = set(self.session.scalars(select(Achievement.id)).all())
        metrics = {CATALOG_SIZE_METRIC: self._catalog_size()}

        inserted = 0
        for definition in ACHIEVEMENT_DEFINITIONS:
            if definition.id in existing:
                continue
            self.session.add(
                Achievement(
                    id=definition.id,
                    title=definition.title,
                    description=definition.description,
                    icon=definition.icon,
                    category=definition.category,
                    requirement=resolve_requirement(definition, metrics),
                    progress=0.0,
                    is_unlocked=False,
                )
            )
            inserted += 1

        self.session.flush()

        if self.logger and inserted:
            self.logger.log_info(f"Seeded {inserted} achievements")

        return inserted

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    def _advance(self, achievement: Achievement, value: float) -> bool:
        """
        Raise progress to ``value`` and unlock when the requirement is met.

        Returns:
            True if this call unlocked the achievement
        """
        if value > achievement.progress:
            achievement.progress = value

        if not achievement.is_unlocked and achievement.progress >= achievement.requirement:
            achievement.is_unlocked = True
            achievement.unlocked_date = utcnow()
            if self.logger:
                self.logger.log_info(
                    f"Achievement unlocked: {achievement.title}",
                    {"achievement_id": achievement.id},
                )
            return True
        return False

    def _sync_requirement(self, achievement: Achievement, metrics: Dict[str, float]) -> None:
        """Re-resolve catalog-sized requirements while still locked."""
        definition = get_definition(achievement.id)
        if definition is None or definition.requirement is not None:
            return
        if not achievement.is_unlocked:
            achievement.requirement = resolve_requirement(definition, metrics)

    @handle_db_errors
    @log_database_operation("update_achievement_progress")
    @atomic_operation
    def update_progress(self, achievement: AchievementRef, value: float) -> bool:
        """
        Set progress, never lowering it.

        Args:
            achievement: Achievement or its id
            value: New progress value

        Returns:
            True if this update unlocked the achievement

        Raises:
            NotFoundError: If the achievement does not exist
            ValidationError: If value is missing
            ConstraintViolationError: If value is negative
        """
        achievement = self._resolve_object(achievement, Achievement)
        value = DataValidator.normalize_float(value)
        if value is None:
            raise ValidationError("Achievement progress value is required")
        DataValidator.validate_range("progress", value, minimum=0)

        self._sync_requirement(achievement, {CATALOG_SIZE_METRIC: self._catalog_size()})
        unlocked = self._advance(achievement, value)
        self.session.flush()
        return unlocked

    @handle_db_errors
    @log_database_operation("increment_achievement")
    @atomic_operation
    def increment(self, achievement: AchievementRef, amount: float = 1) -> bool:
        """
        Add ``amount`` to current progress.

        Returns:
            True if this increment unlocked the achievement
        """
        achievement = self._resolve_object(achievement, Achievement)
        DataValidator.validate_range("amount", amount, minimum=0)
        return self.update_progress(achievement, achievement.progress + amount)

    @handle_db_errors
    @log_database_operation("evaluate_achievements")
    @atomic_operation
    def evaluate(self, metrics: Dict[str, float]) -> List[Achievement]:
        """
        Apply aggregate metrics to every stored predefined achievement.

        Definitions whose metric is absent from ``metrics`` are skipped,
        which leaves client-driven achievements (shares) untouched.

        Args:
            metrics: Output of QueryAnalytics.achievement_metrics()

        Returns:
            Achievements unlocked by this evaluation, in catalog order
        """
        newly_unlocked = []
        for definition in ACHIEVEMENT_DEFINITIONS:
            if definition.metric not in metrics:
                continue
            achievement = self.session.get(Achievement, definition.id)
            if achievement is None:
                continue

            self._sync_requirement(achievement, metrics)
            if self._advance(achievement, float(metrics[definition.metric])):
                newly_unlocked.append(achievement)

        self.session.flush()
        return newly_unlocked

