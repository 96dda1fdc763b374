#!/usr/bin/env python3
"""
base_manager.py
--------------------
Base manager providing common CRUD operations and utilities.
All entity managers should inherit from this class.

Key Features:
    - Abstract base class with common CRUD scaffolding
    - Object resolution helpers (instance or UUID string)
    - Uniqueness pre-checks raising DuplicateKeyError
    - Parent bookkeeping: last_updated and watch_count refresh
    - Scalar field updates driven by (field, normalizer) configs

Usage:
    Subclass BaseManager for each entity type:

    class TagManager(BaseManager):
        def create(self, metadata: Dict[str, Any]) -> CustomTag:
            DataValidator.validate_required_fields(metadata, ["name"])
            ...

All managers share the session of the enclosing NCDB.session_scope(), so
every change made through them commits or rolls back together.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from abc import ABC
from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar, Union

# --- Third party imports ---
from sqlalchemy import func, select
from sqlalchemy.orm import Mapped, Session

# --- Local imports ---
from ncdb.core.exceptions import DuplicateKeyError, NotFoundError
from ncdb.core.logging_manager import NCDBLogger
from ncdb.core.validators import DataValidator
from ncdb.database.configs.cascade_configs import PARENT_LINKS, is_case_insensitive
from ncdb.database.models import CustomTag, Production, WatchEvent, utcnow


class HasId(Protocol):
    """Protocol for objects that have an id attribute."""

    id: Mapped[Any]


T = TypeVar("T", bound=HasId)


class BaseManager(ABC):
    """
    Abstract base manager providing common CRUD operations and utilities.

    Attributes:
        session: SQLAlchemy session for database operations
        logger: Optional logger for operation tracking
    """

    def __init__(self, session: Session, logger: Optional[NCDBLogger] = None):
        """
        Initialize the base manager.

        Args:
            session: SQLAlchemy session
            logger: Optional logger for operation tracking
        """
        self.session = session
        self.logger = logger

    # -------------------------------------------------------------------------
    # Core Helper Methods
    # -------------------------------------------------------------------------

    def _resolve_object(self, item: Union[T, str, int], model_class: Type[T]) -> T:
        """
        Resolve an item to an ORM object.

        Args:
            item: Object instance or primary key
            model_class: Target model class

        Returns:
            Resolved ORM object

        Raises:
            NotFoundError: If no row has the given key
            TypeError: If item type is invalid
        """
        if isinstance(item, model_class):
            return item
        if isinstance(item, (str, int)) and not isinstance(item, bool):
            obj = self.session.get(model_class, item)
            if obj is None:
                raise NotFoundError(f"{model_class.__name__} not found with id: {item}")
            return obj
        raise TypeError(
            f"Expected {model_class.__name__} instance or id, got {type(item).__name__}"
        )

    def _assert_unique(
        self,
        model_class: Type[T],
        field_name: str,
        value: Any,
        exclude_id: Optional[Any] = None,
    ) -> None:
        """
        Refuse a value already held by another row.

        Raises:
            DuplicateKeyError: If another row holds ``value``
        """
        if value is None:
            return

        column = getattr(model_class, field_name)
        if is_case_insensitive(model_class, field_name) and isinstance(value, str):
            condition = func.lower(column) == value.lower()
        else:
            condition = column == value

        stmt = select(model_class.id).where(condition)
        if exclude_id is not None:
            stmt = stmt.where(model_class.id != exclude_id)

        if self.session.scalars(stmt.limit(1)).first() is not None:
            raise DuplicateKeyError(
                f"{model_class.__name__} already exists with {field_name}: {value}"
            )

    def _touch(self, production: Production) -> None:
        """Refresh a production's last_updated timestamp."""
        production.last_updated = utcnow()

    def _refresh_parent(self, child_model: Type, production_id: Optional[str]) -> None:
        """
        Update the owning production after a child mutation.

        Touches last_updated and reloads the affected collection; for watch
        events also recounts watch_count.

        Args:
            child_model: CastMember, WatchEvent or ExternalRating
            production_id: Id of the owning production
        """
        link = PARENT_LINKS.get(child_model)
        if link is None or production_id is None:
            return

        production = self.session.get(Production, production_id)
        if production is None:
            return

        self._touch(production)
        self.session.flush()
        self.session.expire(production, [link.collection])
        if child_model is WatchEvent:
            self._sync_watch_count(production)

    def _parent_id(self, child: Any) -> Optional[str]:
        """Production id a child row belongs to, or None for non-children."""
        link = PARENT_LINKS.get(type(child))
        if link is None:
            return None
        return getattr(child, link.foreign_key)

    def _expire_tag_views(self) -> None:
        """Reload the read-only tag views of every loaded production and tag."""
        for obj in list(self.session.identity_map.values()):
            if isinstance(obj, Production):
                self.session.expire(obj, ["tags"])
            elif isinstance(obj, CustomTag):
                self.session.expire(obj, ["productions"])

    def _sync_watch_count(self, production: Production) -> None:
        """Set watch_count to the number of stored watch events."""
        self.session.flush()
        production.watch_count = self.session.scalar(
            select(func.count(WatchEvent.id)).where(
                WatchEvent.production_id == production.id
            )
        )

    # -------------------------------------------------------------------------
    # Generic CRUD Helpers
    # -------------------------------------------------------------------------

    def _exists(
        self,
        model_class: Type[T],
        field_name: str,
        value: Any,
        normalize: bool = True,
    ) -> bool:
        """
        Generic existence check for any entity.

        Args:
            model_class: ORM model class to query
            field_name: Field name to filter by
            value: Value to check for
            normalize: Whether to normalize string values

        Returns:
            True if entity exists, False otherwise
        """
        return self._get_by_field(model_class, field_name, value, normalize) is not None

    def _get_by_id(self, model_class: Type[T], entity_id: Any) -> Optional[T]:
        """
        Get entity by primary key.

        Returns:
            Entity if found, None otherwise
        """
        if entity_id is None:
            return None
        return self.session.get(model_class, entity_id)

    def _get_by_field(
        self,
        model_class: Type[T],
        field_name: str,
        value: Any,
        normalize: bool = True,
    ) -> Optional[T]:
        """
        Get entity by a specific field value.

        Args:
            model_class: ORM model class
            field_name: Field name to filter by
            value: Value to look up
            normalize: Whether to normalize string values

        Returns:
            Entity if found, None otherwise
        """
        if value is None:
            return None

        if normalize and isinstance(value, str):
            value = DataValidator.normalize_string(value)
            if not value:
                return None

        column = getattr(model_class, field_name)
        if is_case_insensitive(model_class, field_name) and isinstance(value, str):
            condition = func.lower(column) == value.lower()
        else:
            condition = column == value

        return self.session.scalars(select(model_class).where(condition).limit(1)).first()

    def _get_all(
        self,
        model_class: Type[T],
        order_by: Optional[str] = None,
        **filters: Any,
    ) -> List[T]:
        """
        Get all entities of a type with optional filtering and ordering.

        Args:
            model_class: ORM model class
            order_by: Column name to order by (optional); id breaks ties
            **filters: Equality filter conditions

        Returns:
            List of entities
        """
        stmt = select(model_class).filter_by(**filters)

        if order_by and hasattr(model_class, order_by):
            attr = getattr(model_class, order_by)
            # Python properties cannot be ordered in SQL
            if hasattr(attr, "__clause_element__"):
                stmt = stmt.order_by(attr)

        stmt = stmt.order_by(model_class.id)
        return list(self.session.scalars(stmt).all())

    def _count(self, model_class: Type[T], **filters: Any) -> int:
        """
        Count entities with optional equality filtering.

        Returns:
            Count of matching entities
        """
        stmt = select(func.count()).select_from(model_class).filter_by(**filters)
        return self.session.scalar(stmt) or 0

    # -------------------------------------------------------------------------
    # Scalar Field Update Helpers
    # -------------------------------------------------------------------------

    def _update_scalar_fields(
        self,
        entity: Any,
        metadata: Dict[str, Any],
        field_configs: List[tuple],
    ) -> None:
        """
        Update multiple scalar fields from metadata using normalizers.

        Args:
            entity: Entity to update
            metadata: Dictionary containing field values
            field_configs: List of tuples:
                - (field_name, normalizer) for required fields
                - (field_name, normalizer, allow_none) for optional fields

        Example:
            self._update_scalar_fields(article, metadata, [
                ("title", DataValidator.normalize_string),
                ("author", DataValidator.normalize_string, True),
            ])
        """
        for config in field_configs:
            field_name = config[0]
            normalizer = config[1]
            allow_none = config[2] if len(config) > 2 else False

            if field_name not in metadata:
                continue

            value = normalizer(metadata[field_name])
            if value is not None or allow_none:
                setattr(entity, field_name, value)
