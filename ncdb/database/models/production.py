"""
Production Model
----------------

Central model of the catalog: a tracked movie or show.

Models:
    - Production: Catalog item with user data and owned child collections

A Production owns its cast list, watch history and external ratings.
Ownership is enforced by the store's cascade rules (see
configs/cascade_configs.py), not by ORM cascades, so child rows are removed
by explicit statements inside the delete transaction.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    Float,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .associations import production_tags
from .base import Base, UUIDPrimaryKeyMixin, utcnow
from .enums import ProductionType

if TYPE_CHECKING:
    from .entities import CustomTag
    from .production_details import CastMember, ExternalRating, WatchEvent


TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p"


class Production(UUIDPrimaryKeyMixin, Base):
    """
    A movie, TV show or documentary in the catalog.

    Attributes:
        id: UUID primary key
        title: Display title
        release_year: Year of first release
        external_id: Catalog id from the metadata provider (unique, optional)
        production_type: Kind of production (enum)
        genres: Genre labels, in provider order
        poster_path / backdrop_path: Provider-relative image paths
        plot, director, runtime, budget, box_office: Provider metadata
        watched: Whether the user has seen it
        date_watched: Date of the most recent watch
        user_rating: Personal rating on a 0-5 scale
        review: Personal review text
        is_favorite: Favorite flag
        ranking_position: 1-based position in the personal ranking
        watch_count: Number of WatchEvent rows for this production
        metadata_fetched / details_cached: Sync bookkeeping
        last_updated: Refreshed by every mutation of this production
            or its children

    Relationships:
        cast_members: One-to-many with CastMember (owned)
        watch_events: One-to-many with WatchEvent (owned)
        external_ratings: One-to-many with ExternalRating (owned)
        tags: Read-only view over production_tags
    """

    __tablename__ = "productions"
    __table_args__ = (
        CheckConstraint("title != ''", name="ck_production_non_empty_title"),
        CheckConstraint(
            "user_rating IS NULL OR (user_rating >= 0 AND user_rating <= 5)",
            name="ck_production_user_rating_range",
        ),
        CheckConstraint(
            "ranking_position IS NULL OR ranking_position >= 1",
            name="ck_production_positive_ranking",
        ),
        CheckConstraint("watch_count >= 0", name="ck_production_watch_count"),
        CheckConstraint(
            "runtime IS NULL OR runtime >= 0", name="ck_production_runtime"
        ),
    )

    # ---- Identity ----
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    release_year: Mapped[int] = mapped_column(Integer, nullable=False)
    external_id: Mapped[Optional[int]] = mapped_column(
        Integer, unique=True, nullable=True
    )

    # ---- Classification ----
    production_type: Mapped[ProductionType] = mapped_column(
        SQLEnum(ProductionType, values_callable=lambda x: [e.value for e in x]),
        default=ProductionType.MOVIE,
        nullable=False,
    )
    genres: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)

    # ---- Visual assets ----
    poster_path: Mapped[Optional[str]] = mapped_column(String(255))
    backdrop_path: Mapped[Optional[str]] = mapped_column(String(255))

    # ---- Metadata ----
    plot: Mapped[Optional[str]] = mapped_column(Text)
    director: Mapped[Optional[str]] = mapped_column(String(255))
    runtime: Mapped[Optional[int]] = mapped_column(Integer)
    budget: Mapped[Optional[int]] = mapped_column(Integer)
    box_office: Mapped[Optional[int]] = mapped_column(Integer)

    # ---- User data ----
    watched: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    date_watched: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    user_rating: Mapped[Optional[float]] = mapped_column(Float)
    review: Mapped[Optional[str]] = mapped_column(Text)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    ranking_position: Mapped[Optional[int]] = mapped_column(
        Integer, unique=True, nullable=True, index=True
    )
    watch_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # ---- Sync & cache ----
    metadata_fetched: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    details_cached: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # ---- Owned collections ----
    cast_members: Mapped[List["CastMember"]] = relationship(
        "CastMember",
        back_populates="production",
        order_by="[CastMember.billing_order, CastMember.id]",
        passive_deletes=True,
    )
    watch_events: Mapped[List["WatchEvent"]] = relationship(
        "WatchEvent",
        back_populates="production",
        order_by="[WatchEvent.watched_date, WatchEvent.id]",
        passive_deletes=True,
    )
    external_ratings: Mapped[List["ExternalRating"]] = relationship(
        "ExternalRating",
        back_populates="production",
        order_by="[ExternalRating.source, ExternalRating.id]",
        passive_deletes=True,
    )

    # ---- Tag view ----
    tags: Mapped[List["CustomTag"]] = relationship(
        "CustomTag",
        secondary=production_tags,
        viewonly=True,
        order_by="CustomTag.name",
    )

    # ---- Computed properties ----
    @property
    def is_ranked(self) -> bool:
        """Check if this production has a ranking position."""
        return self.ranking_position is not None

    @property
    def formatted_runtime(self) -> Optional[str]:
        """Runtime as '2h 18m' or '45m'; None when unknown."""
        if self.runtime is None:
            return None
        hours, minutes = divmod(self.runtime, 60)
        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"

    @property
    def decade(self) -> int:
        """First year of the release decade (1997 -> 1990)."""
        return (self.release_year // 10) * 10

    @property
    def poster_url(self) -> Optional[str]:
        """Full poster URL at the medium size."""
        if not self.poster_path:
            return None
        return f"{TMDB_IMAGE_BASE_URL}/w342{self.poster_path}"

    @property
    def backdrop_url(self) -> Optional[str]:
        """Full backdrop URL at the medium size."""
        if not self.backdrop_path:
            return None
        return f"{TMDB_IMAGE_BASE_URL}/w780{self.backdrop_path}"

    @property
    def tag_names(self) -> List[str]:
        """Names of the tags attached to this production."""
        return [tag.name for tag in self.tags]

    def has_genre(self, genre: str) -> bool:
        """Check if the production carries a genre (case-insensitive)."""
        target = genre.strip().lower()
        return any(g.lower() == target for g in self.genres or [])

    def __repr__(self) -> str:
        return f"<Production(id={self.id}, title={self.title}, year={self.release_year})>"

    def __str__(self) -> str:
        return f"{self.title} ({self.release_year})"
