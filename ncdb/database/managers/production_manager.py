#!/usr/bin/env python3
"""
production_manager.py
--------------------
Manages Production entities and the child records they own.

Productions are populated by the external metadata fetcher through
upsert_production() and mutated by user actions (watching, rating,
favoriting). Every mutation of a production or one of its children
refreshes the production's last_updated timestamp.

Key Features:
    - CRUD operations with field normalization
    - Upsert keyed by the provider's external id
    - Cast and external rating replacement on sync
    - Watch history with watch_count kept equal to the number of events
    - Rating, review, favorite and bulk watched toggles

Usage:
    prod_mgr = ProductionManager(session, logger)

    # Sync from the metadata provider
    face_off = prod_mgr.upsert_production(754, {
        "title": "Face/Off",
        "release_year": 1997,
        "genres": ["Action", "Thriller"],
        "cast": [{"name": "Nicolas Cage", "character": "Castor Troy"}],
        "external_ratings": [{"source": "IMDb", "rating": 7.3}],
    })

    # User actions
    prod_mgr.add_watch_event(face_off, {"location": "Home"})
    prod_mgr.set_user_rating(face_off, 4.5)
    prod_mgr.toggle_favorite(face_off)
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from sqlalchemy import delete, func, or_, select

from ncdb.core.exceptions import ValidationError
from ncdb.core.validators import DataValidator
from ncdb.database.decorators import (
    atomic_operation,
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from ncdb.database.models import (
    CastMember,
    ExternalRating,
    Production,
    ProductionType,
    RatingSource,
    WatchEvent,
    as_utc,
    utcnow,
)
from .base_manager import BaseManager
from .ranking_manager import RankingManager
from .store_manager import CascadeResult, StoreManager

ProductionRef = Union[Production, str]

PRODUCTION_FIELDS = [
    ("title", DataValidator.normalize_string),
    ("release_year", DataValidator.normalize_int),
    ("external_id", DataValidator.normalize_int, True),
    ("production_type", lambda v: DataValidator.normalize_enum(ProductionType, v)),
    ("genres", DataValidator.normalize_string_list),
    ("poster_path", DataValidator.normalize_string, True),
    ("backdrop_path", DataValidator.normalize_string, True),
    ("plot", DataValidator.normalize_string, True),
    ("director", DataValidator.normalize_string, True),
    ("runtime", DataValidator.normalize_int, True),
    ("budget", DataValidator.normalize_int, True),
    ("box_office", DataValidator.normalize_int, True),
    ("watched", DataValidator.normalize_bool),
    ("date_watched", DataValidator.normalize_datetime, True),
    ("user_rating", DataValidator.normalize_float, True),
    ("review", DataValidator.normalize_string, True),
    ("is_favorite", DataValidator.normalize_bool),
    ("metadata_fetched", DataValidator.normalize_bool),
    ("details_cached", DataValidator.normalize_bool),
]

USER_RATING_MAX = 5.0


class ProductionManager(BaseManager):
    """
    Manages Production table operations and owned child collections.
    """

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate_ranges(production: Production) -> None:
        DataValidator.validate_range("user_rating", production.user_rating, 0, USER_RATING_MAX)
        DataValidator.validate_range("runtime", production.runtime, 0)
        if not production.title:
            raise ValidationError("Production title cannot be empty")

    def _apply_fields(self, production: Production, metadata: Dict[str, Any]) -> None:
        self._update_scalar_fields(production, metadata, PRODUCTION_FIELDS)
        self._validate_ranges(production)

    # -------------------------------------------------------------------------
    # Core CRUD Operations
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("production_exists")
    def exists(self, production_id: Optional[str] = None, external_id: Optional[int] = None) -> bool:
        return self.get(production_id=production_id, external_id=external_id) is not None

    @handle_db_errors
    @log_database_operation("get_production")
    def get(
        self,
        production_id: Optional[str] = None,
        external_id: Optional[int] = None,
    ) -> Optional[Production]:
        """
        Retrieve a production by id or by provider id.

        Returns:
            Production if found, None otherwise
        """
        if production_id is not None:
            return self._get_by_id(Production, production_id)
        if external_id is not None:
            return self._get_by_field(Production, "external_id", external_id)
        return None

    @handle_db_errors
    @log_database_operation("get_all_productions")
    def get_all(self, order_by: str = "title", **filters: Any) -> List[Production]:
        """
        Retrieve all productions, optionally filtered by equality.

        Examples:
            >>> prod_mgr.get_all(watched=True)
            >>> prod_mgr.get_all(order_by="release_year", is_favorite=True)
        """
        return self._get_all(Production, order_by=order_by, **filters)

    @handle_db_errors
    @log_database_operation("search_productions")
    def search(self, text: str) -> List[Production]:
        """Case-insensitive title, director or plot search."""
        needle = DataValidator.normalize_string(text)
        if not needle:
            return []
        pattern = f"%{needle.lower()}%"
        stmt = (
            select(Production)
            .where(
                or_(
                    func.lower(Production.title).like(pattern),
                    func.lower(Production.director).like(pattern),
                    func.lower(Production.plot).like(pattern),
                )
            )
            .order_by(Production.title, Production.id)
        )
        return list(self.session.scalars(stmt).all())

    @handle_db_errors
    @log_database_operation("create_production")
    @atomic_operation
    @validate_metadata(["title", "release_year"])
    def create(self, metadata: Dict[str, Any]) -> Production:
        """
        Create a new production.

        Args:
            metadata: Production fields. Optional extra keys:
                - cast: list of cast member dicts
                - external_ratings: list of external rating dicts
                - ranking_position: place in the ranking

        Returns:
            Created Production

        Raises:
            ValidationError: If title or release_year is missing
            DuplicateKeyError: If external_id is already in the catalog
            ConstraintViolationError: If a value is out of range
            InvalidPositionError: If ranking_position is out of range
        """
        external_id = DataValidator.normalize_int(metadata.get("external_id"))
        self._assert_unique(Production, "external_id", external_id)

        position = DataValidator.normalize_int(metadata.get("ranking_position"))
        rankings = RankingManager(self.session, self.logger)
        if position is not None:
            rankings.validate_position(position, appending=True)

        production = Production(
            title=DataValidator.normalize_string(metadata["title"]),
            release_year=DataValidator.normalize_int(metadata["release_year"]),
        )
        self._apply_fields(production, metadata)
        self.session.add(production)
        self.session.flush()

        self._apply_children(production, metadata)

        if position is not None:
            rankings.insert_at_rank(production, position)

        if self.logger:
            self.logger.log_debug(
                f"Created production: {production}", {"production_id": production.id}
            )
        return production

    @handle_db_errors
    @log_database_operation("update_production")
    @atomic_operation
    def update(self, production: ProductionRef, metadata: Dict[str, Any]) -> Production:
        """
        Update an existing production.

        Only keys present in metadata are changed. ``cast`` and
        ``external_ratings`` replace the owned collections when present.

        Raises:
            NotFoundError: If the production does not exist
            DuplicateKeyError: If external_id collides with another production
            InvalidPositionError: If ranking_position is out of range
        """
        production = self._resolve_object(production, Production)

        if "external_id" in metadata:
            self._assert_unique(
                Production,
                "external_id",
                DataValidator.normalize_int(metadata["external_id"]),
                exclude_id=production.id,
            )

        rankings = RankingManager(self.session, self.logger)
        position = DataValidator.normalize_int(metadata.get("ranking_position"))
        if position is not None:
            rankings.validate_position(position, appending=not production.is_ranked)

        self._apply_fields(production, metadata)
        self._apply_children(production, metadata)

        if "ranking_position" in metadata:
            if position is None:
                rankings.remove_from_rank(production)
            else:
                rankings.reorder(production, position)

        self._touch(production)
        self.session.flush()
        return production

    @handle_db_errors
    @log_database_operation("upsert_production")
    @atomic_operation
    def upsert_production(self, external_id: int, fields: Dict[str, Any]) -> Production:
        """
        Create or update the production with a provider id.

        Args:
            external_id: Provider catalog id
            fields: Production fields (see create())

        Returns:
            The created or updated Production
        """
        external_id = DataValidator.normalize_int(external_id)
        if external_id is None:
            raise ValidationError("external_id is required for upsert")

        existing = self._get_by_field(Production, "external_id", external_id)
        if existing is not None:
            return self.update(existing, {**fields, "external_id": external_id})
        return self.create({**fields, "external_id": external_id})

    @handle_db_errors
    @log_database_operation("delete_production")
    @atomic_operation
    def delete(self, production: ProductionRef) -> CascadeResult:
        """
        Delete a production with its cast, watch events and external ratings.

        Tag memberships are removed; the tags themselves are kept.
        """
        production = self._resolve_object(production, Production)
        return StoreManager(self.session, self.logger).delete(Production, production.id)

    # -------------------------------------------------------------------------
    # Owned collections
    # -------------------------------------------------------------------------

    def _apply_children(self, production: Production, metadata: Dict[str, Any]) -> None:
        if "cast" in metadata:
            self.replace_cast(production, metadata["cast"] or [])
        if "external_ratings" in metadata:
            self.replace_external_ratings(production, metadata["external_ratings"] or [])

    def _build_cast_member(
        self, production: Production, data: Dict[str, Any], default_order: int
    ) -> CastMember:
        DataValidator.validate_required_fields(data, ["name"])
        order = DataValidator.normalize_int(data.get("billing_order"))
        order = default_order if order is None else order
        DataValidator.validate_range("billing_order", order, 0)
        return CastMember(
            production_id=production.id,
            name=DataValidator.normalize_string(data["name"]),
            character=DataValidator.normalize_string(data.get("character")) or "",
            billing_order=order,
            profile_path=DataValidator.normalize_string(data.get("profile_path")),
        )

    def _build_external_rating(
        self, production: Production, data: Dict[str, Any]
    ) -> ExternalRating:
        DataValidator.validate_required_fields(data, ["source", "rating"])
        source = DataValidator.normalize_enum(RatingSource, data["source"])
        rating = DataValidator.normalize_float(data["rating"])
        max_rating = DataValidator.normalize_float(data.get("max_rating"))
        if max_rating is None:
            max_rating = source.default_max_rating

        DataValidator.validate_range("max_rating", max_rating, 0, exclusive_minimum=True)
        DataValidator.validate_range("rating", rating, 0, max_rating)

        return ExternalRating(
            production_id=production.id,
            source=source,
            rating=rating,
            max_rating=max_rating,
            review_count=DataValidator.normalize_int(data.get("review_count")),
            url=DataValidator.normalize_string(data.get("url")),
        )

    @handle_db_errors
    @log_database_operation("replace_cast")
    @atomic_operation
    def replace_cast(self, production: ProductionRef, cast: List[Dict[str, Any]]) -> List[CastMember]:
        """
        Replace the cast list of a production.

        Billing order defaults to the position in ``cast``.
        """
        production = self._resolve_object(production, Production)
        members = [
            self._build_cast_member(production, data, index)
            for index, data in enumerate(cast)
        ]

        self.session.execute(delete(CastMember).where(CastMember.production_id == production.id))
        self.session.add_all(members)
        self._refresh_parent(CastMember, production.id)
        return members

    @handle_db_errors
    @log_database_operation("replace_external_ratings")
    @atomic_operation
    def replace_external_ratings(
        self, production: ProductionRef, ratings: List[Dict[str, Any]]
    ) -> List[ExternalRating]:
        """Replace the external ratings of a production."""
        production = self._resolve_object(production, Production)
        records = [self._build_external_rating(production, data) for data in ratings]

        self.session.execute(
            delete(ExternalRating).where(ExternalRating.production_id == production.id)
        )
        self.session.add_all(records)
        self._refresh_parent(ExternalRating, production.id)
        return records

    @handle_db_errors
    @log_database_operation("add_cast_member")
    @atomic_operation
    def add_cast_member(self, production: ProductionRef, metadata: Dict[str, Any]) -> CastMember:
        """Append a cast member; billing order defaults to the end of the list."""
        production = self._resolve_object(production, Production)
        next_order = self._count(CastMember, production_id=production.id)
        member = self._build_cast_member(production, metadata, next_order)
        self.session.add(member)
        self._refresh_parent(CastMember, production.id)
        return member

    @handle_db_errors
    @log_database_operation("add_external_rating")
    @atomic_operation
    def add_external_rating(
        self, production: ProductionRef, metadata: Dict[str, Any]
    ) -> ExternalRating:
        """
        Add an external rating.

        Raises:
            ConstraintViolationError: If rating is outside [0, max_rating]
                or max_rating is not positive
        """
        production = self._resolve_object(production, Production)
        rating = self._build_external_rating(production, metadata)
        self.session.add(rating)
        self._refresh_parent(ExternalRating, production.id)
        return rating

    # -------------------------------------------------------------------------
    # Watch history
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("add_watch_event")
    @atomic_operation
    def add_watch_event(
        self, production: ProductionRef, metadata: Optional[Dict[str, Any]] = None
    ) -> WatchEvent:
        """
        Record a viewing.

        Marks the production watched, moves date_watched forward to the
        event date when it is later, and recounts watch_count.

        Args:
            production: Production or id
            metadata: Optional watched_date, location, notes, mood
        """
        production = self._resolve_object(production, Production)
        metadata = metadata or {}

        watched_date = DataValidator.normalize_datetime(metadata.get("watched_date")) or utcnow()
        event = WatchEvent(
            production_id=production.id,
            watched_date=watched_date,
            location=DataValidator.normalize_string(metadata.get("location")),
            notes=DataValidator.normalize_string(metadata.get("notes")),
            mood=DataValidator.normalize_string(metadata.get("mood")),
        )
        self.session.add(event)

        production.watched = True
        if production.date_watched is None or as_utc(production.date_watched) < watched_date:
            production.date_watched = watched_date

        self._refresh_parent(WatchEvent, production.id)
        return event

    @handle_db_errors
    @log_database_operation("remove_watch_event")
    @atomic_operation
    def remove_watch_event(self, event: Union[WatchEvent, str]) -> None:
        """
        Delete a viewing and recount the production's watch history.

        date_watched falls back to the latest remaining event (or None);
        the watched flag is left as the user set it.
        """
        event = self._resolve_object(event, WatchEvent)
        production_id = event.production_id

        self.session.delete(event)
        self._refresh_parent(WatchEvent, production_id)

        production = self.session.get(Production, production_id)
        production.date_watched = self.session.scalar(
            select(func.max(WatchEvent.watched_date)).where(
                WatchEvent.production_id == production_id
            )
        )

    @handle_db_errors
    @log_database_operation("get_watch_history")
    def get_watch_history(self, limit: Optional[int] = None) -> List[WatchEvent]:
        """All watch events, most recent first."""
        stmt = select(WatchEvent).order_by(WatchEvent.watched_date.desc(), WatchEvent.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.scalars(stmt).all())

    @handle_db_errors
    @log_database_operation("mark_as_watched")
    @atomic_operation
    def mark_as_watched(self, productions: List[ProductionRef], watched: bool = True) -> int:
        """
        Bulk-set the watched flag.

        Marking watched fills date_watched when missing; marking unwatched
        clears it. Watch events are not created or removed.

        Returns:
            Number of productions whose flag changed
        """
        changed = 0
        now = utcnow()
        for item in productions:
            production = self._resolve_object(item, Production)
            if production.watched == watched:
                continue
            production.watched = watched
            if watched and production.date_watched is None:
                production.date_watched = now
            if not watched:
                production.date_watched = None
            self._touch(production)
            changed += 1

        self.session.flush()
        return changed

    # -------------------------------------------------------------------------
    # User data
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("set_user_rating")
    @atomic_operation
    def set_user_rating(self, production: ProductionRef, rating: Optional[float]) -> Production:
        """
        Set or clear the personal 0-5 rating.

        Raises:
            ConstraintViolationError: If rating is outside [0, 5]
        """
        production = self._resolve_object(production, Production)
        value = DataValidator.normalize_float(rating)
        DataValidator.validate_range("user_rating", value, 0, USER_RATING_MAX)

        production.user_rating = value
        self._touch(production)
        self.session.flush()
        return production

    @handle_db_errors
    @log_database_operation("set_review")
    @atomic_operation
    def set_review(self, production: ProductionRef, review: Optional[str]) -> Production:
        production = self._resolve_object(production, Production)
        production.review = DataValidator.normalize_string(review)
        self._touch(production)
        self.session.flush()
        return production

    @handle_db_errors
    @log_database_operation("toggle_favorite")
    @atomic_operation
    def toggle_favorite(self, production: ProductionRef) -> bool:
        """
        Flip the favorite flag.

        Returns:
            The new value of is_favorite
        """
        production = self._resolve_object(production, Production)
        production.is_favorite = not production.is_favorite
        self._touch(production)
        self.session.flush()
        return production.is_favorite
