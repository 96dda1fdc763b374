#!/usr/bin/env python3
"""
store_manager.py
--------------------
Generic persistence contract over every catalog entity.

Operations:
    - create(entity) -> id
    - get(model, id) -> entity | None
    - update(model, id, mutation) -> entity
    - delete(model, id) -> CascadeResult
    - query(model, filters, order_by) -> list of entities

Deletion follows the ownership table in configs/cascade_configs.py: owned
children are deleted and join-table memberships removed by explicit
statements in the same transaction as the parent row. Any failure rolls the
enclosing session_scope back, so a cascade is all-or-nothing.

Each mutation also runs in its own savepoint: a failed create, update or
delete leaves the session exactly as it was, even when the caller catches
the error and commits. The store keeps derived columns itself:
Production.watch_count follows the watch events, and achievement progress
only moves forward and unlocks once (see MAINTAINED_FIELDS).

Usage:
    with db.session_scope():
        production_id = db.store.create(Production(title="Mandy", release_year=2018))
        result = db.store.delete(Production, production_id)
        print(result.deleted)   # {"CastMember": 0, "WatchEvent": 0, ...}
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, Union

from sqlalchemy import delete, select
from sqlalchemy.orm import ColumnProperty, InstrumentedAttribute

from ncdb.core.exceptions import (
    ConstraintViolationError,
    DuplicateKeyError,
    NotFoundError,
    ValidationError,
)
from ncdb.database.configs.cascade_configs import (
    UNIQUE_FIELDS,
    get_dependents,
    get_detach_rules,
)
from ncdb.database.decorators import (
    atomic_operation,
    handle_db_errors,
    log_database_operation,
)
from ncdb.database.models import Achievement, CustomTag, Production, UserPreferences
from .achievement_manager import AchievementManager
from .base_manager import BaseManager
from .ranking_manager import RankingManager

Mutation = Union[Dict[str, Any], Callable[[Any], None]]

# Columns the store derives itself; a dict mutation may not set them
MAINTAINED_FIELDS = {
    Production: ("watch_count", "last_updated"),
    Achievement: ("is_unlocked", "unlocked_date"),
}


@dataclass
class CascadeResult:
    """
    Outcome of a delete.

    Attributes:
        model: Name of the deleted entity type
        entity_id: Key of the deleted row
        deleted: Dependent rows deleted, per model name
        detached: Join-table rows removed
    """
    model: str
    entity_id: Any
    deleted: Dict[str, int] = field(default_factory=dict)
    detached: int = 0

    @property
    def total_deleted(self) -> int:
        """Dependent rows deleted plus the entity itself."""
        return sum(self.deleted.values()) + 1


class StoreManager(BaseManager):
    """
    Entity-agnostic create/get/update/delete/query.

    Entity-specific managers (productions, tags, ...) add validation and
    normalization on top; this manager enforces the invariants every
    entity shares: uniqueness, dense ranking, cascade ownership and
    last_updated bookkeeping.
    """

    def _rankings(self) -> RankingManager:
        return RankingManager(self.session, self.logger)

    def _achievements(self) -> AchievementManager:
        return AchievementManager(self.session, self.logger)

    def _check_unique_fields(self, entity: Any, exclude_id: Optional[Any] = None) -> None:
        model = type(entity)
        if model is UserPreferences:
            if self._count(UserPreferences) > 0:
                raise DuplicateKeyError("UserPreferences already exists")
            return
        for field_name in UNIQUE_FIELDS.get(model, []):
            self._assert_unique(model, field_name, getattr(entity, field_name), exclude_id)

    def _prepare_achievement(self, achievement: Achievement) -> None:
        """
        Derive the unlock state of a new achievement from its progress.

        Raises:
            ValidationError: If is_unlocked or unlocked_date is set by the caller
        """
        if achievement.is_unlocked or achievement.unlocked_date is not None:
            raise ValidationError(
                "Achievement unlock state is derived from progress and cannot be set"
            )
        progress = achievement.progress or 0.0
        if achievement.requirement is None:
            achievement.requirement = 1.0
        achievement.progress = 0.0
        achievement.is_unlocked = False
        self._achievements()._advance(achievement, progress)

    def _settle_achievement(self, achievement: Achievement, before: Dict[str, Any]) -> None:
        """
        Re-apply progress through the one-time unlock after a mutation.

        Progress never decreases; a requirement is fixed once unlocked.

        Raises:
            ValidationError: If the mutation changed the unlock state directly
                or the requirement of an unlocked achievement
        """
        if (
            achievement.is_unlocked != before["is_unlocked"]
            or achievement.unlocked_date != before["unlocked_date"]
        ):
            raise ValidationError(
                "Achievement unlock state is derived from progress and cannot be set"
            )
        if before["is_unlocked"] and achievement.requirement != before["requirement"]:
            raise ValidationError(
                f"Requirement of unlocked achievement {achievement.id} cannot change"
            )

        progress = achievement.progress
        achievement.progress = before["progress"]
        self._achievements()._advance(achievement, progress)

    def _check_rank_target(self, production: Production, position: Any) -> None:
        """
        Refuse a ranking position before any field is written.

        Raises:
            InvalidPositionError: If position is outside the reachable range
        """
        if position is not None:
            self._rankings().validate_position(position, appending=not production.is_ranked)

    # -------------------------------------------------------------------------
    # Contract
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("store_create")
    @atomic_operation
    def create(self, entity: Any) -> Any:
        """
        Persist a new entity.

        A Production constructed with a ranking_position is inserted into
        the ranking at that position.

        Returns:
            Primary key of the new row

        Raises:
            DuplicateKeyError: On a uniqueness violation
            ConstraintViolationError: If a field breaks a check constraint
            InvalidPositionError: If the ranking_position is out of range
            ValidationError: If a store-maintained field is set
        """
        self._check_unique_fields(entity)

        position = None
        if isinstance(entity, Production):
            if entity.watch_count:
                raise ValidationError(
                    "watch_count is derived from watch events and cannot be set"
                )
            if entity.ranking_position is not None:
                position, entity.ranking_position = entity.ranking_position, None
                self._check_rank_target(entity, position)
        elif isinstance(entity, Achievement):
            self._prepare_achievement(entity)

        self.session.add(entity)
        self.session.flush()

        if position is not None:
            self._rankings().insert_at_rank(entity, position)

        self._refresh_parent(type(entity), self._parent_id(entity))
        return entity.id

    @handle_db_errors
    @log_database_operation("store_get")
    def get(self, model: Type, entity_id: Any) -> Optional[Any]:
        return self._get_by_id(model, entity_id)

    @handle_db_errors
    @log_database_operation("store_update")
    @atomic_operation
    def update(self, model: Type, entity_id: Any, mutation: Mutation) -> Any:
        """
        Apply a mutation to an existing entity.

        Args:
            model: Entity type
            entity_id: Primary key
            mutation: Dict of field -> value, or a callable receiving the entity

        Returns:
            The updated entity

        Raises:
            NotFoundError: If no row has entity_id
            ValidationError: If the dict names an unknown column
            DuplicateKeyError: If a unique field collides with another row
            InvalidPositionError: If ranking_position is out of range

        Notes:
            Production.watch_count, Production.last_updated and the
            Achievement unlock fields are maintained by the store. A dict
            naming them is refused; after a callable mutation watch_count
            is recounted and achievement progress goes through the
            one-time unlock.
        """
        entity = self._get_by_id(model, entity_id)
        if entity is None:
            raise NotFoundError(f"{model.__name__} not found with id: {entity_id}")

        old_parent = self._parent_id(entity)
        before = None
        if isinstance(entity, Achievement):
            before = {
                "progress": entity.progress,
                "requirement": entity.requirement,
                "is_unlocked": entity.is_unlocked,
                "unlocked_date": entity.unlocked_date,
            }

        if callable(mutation):
            mutation(entity)
        else:
            mutation = dict(mutation)
            for key in mutation:
                if key == "id":
                    raise ValidationError(f"{model.__name__}.id cannot be changed")
                if key in MAINTAINED_FIELDS.get(model, ()):
                    raise ValidationError(
                        f"{model.__name__}.{key} is maintained by the store"
                    )
                self._column(model, key)
            for field_name in UNIQUE_FIELDS.get(model, []):
                if field_name in mutation:
                    self._assert_unique(model, field_name, mutation[field_name], entity.id)

            rank_change = model is Production and "ranking_position" in mutation
            new_position = mutation.pop("ranking_position", None)
            if rank_change and new_position != entity.ranking_position:
                self._check_rank_target(entity, new_position)
            for key, value in mutation.items():
                setattr(entity, key, value)

            if rank_change and new_position != entity.ranking_position:
                if new_position is None:
                    self._rankings().remove_from_rank(entity)
                else:
                    self._rankings().reorder(entity, new_position)

        if before is not None:
            self._settle_achievement(entity, before)

        self.session.flush()

        if isinstance(entity, Production):
            self._sync_watch_count(entity)
            self._touch(entity)
            self.session.flush()
            self._rankings().verify()
        else:
            self._refresh_parent(model, old_parent)
            new_parent = self._parent_id(entity)
            if new_parent != old_parent:
                self._refresh_parent(model, new_parent)

        return entity

    @handle_db_errors
    @log_database_operation("store_delete")
    @atomic_operation
    def delete(self, model: Type, entity_id: Any) -> CascadeResult:
        """
        Delete an entity together with everything it owns.

        Raises:
            NotFoundError: If no row has entity_id
            ConstraintViolationError: For the UserPreferences row
        """
        if model is UserPreferences:
            raise ConstraintViolationError("UserPreferences cannot be deleted; reset it instead")

        entity = self._get_by_id(model, entity_id)
        if entity is None:
            raise NotFoundError(f"{model.__name__} not found with id: {entity_id}")

        result = CascadeResult(model=model.__name__, entity_id=entity_id)
        parent_id = self._parent_id(entity)

        if isinstance(entity, Production) and entity.is_ranked:
            self._rankings().remove_from_rank(entity)

        for rule in get_dependents(model):
            outcome = self.session.execute(
                delete(rule.model).where(getattr(rule.model, rule.foreign_key) == entity_id)
            )
            result.deleted[rule.model.__name__] = outcome.rowcount

        for rule in get_detach_rules(model):
            outcome = self.session.execute(
                delete(rule.table).where(rule.table.c[rule.column] == entity_id)
            )
            result.detached += outcome.rowcount

        self.session.execute(delete(model).where(model.id == entity_id))

        if model in (Production, CustomTag):
            self._expire_tag_views()
        self._refresh_parent(model, parent_id)

        if self.logger:
            self.logger.log_debug(
                f"Deleted {model.__name__} {entity_id}",
                {"deleted": result.deleted, "detached": result.detached},
            )

        return result

    @handle_db_errors
    @log_database_operation("store_query")
    def query(
        self,
        model: Type,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[Union[str, Sequence[str]]] = None,
        conditions: Sequence[Any] = (),
        limit: Optional[int] = None,
    ) -> List[Any]:
        """
        Query entities with filters and a stable order.

        Args:
            model: Entity type
            filters: field -> value equality filters; a list or tuple
                value matches any member, None matches NULL
            order_by: Column name or names; prefix with '-' for descending
            conditions: Additional SQLAlchemy boolean expressions
            limit: Maximum number of rows

        Returns:
            Matching entities; equal sort keys are ordered by id

        Raises:
            ValidationError: If a filter or sort names an unknown column
        """
        stmt = select(model)

        for key, value in (filters or {}).items():
            column = self._column(model, key)
            if value is None:
                stmt = stmt.where(column.is_(None))
            elif isinstance(value, (list, tuple, set)):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)

        for condition in conditions:
            stmt = stmt.where(condition)

        if isinstance(order_by, str):
            order_by = [order_by]
        for key in order_by or []:
            descending = key.startswith("-")
            column = self._column(model, key.lstrip("-"))
            stmt = stmt.order_by(column.desc() if descending else column.asc())

        stmt = stmt.order_by(model.id)
        if limit is not None:
            stmt = stmt.limit(limit)

        return list(self.session.scalars(stmt).all())

    @staticmethod
    def _column(model: Type, name: str) -> InstrumentedAttribute:
        attr = getattr(model, name, None)
        if not (
            isinstance(attr, InstrumentedAttribute)
            and isinstance(attr.property, ColumnProperty)
        ):
            raise ValidationError(f"Unknown column for {model.__name__}: {name}")
        return attr

    def count(self, model: Type, **filters: Any) -> int:
        return self._count(model, **filters)

