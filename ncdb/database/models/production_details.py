"""
Production Detail Models
------------------------

Child records owned by a single Production.

Models:
    - CastMember: An actor credited in a production
    - WatchEvent: One viewing of a production
    - ExternalRating: A score from an outside ratings source

Each row belongs to exactly one Production (non-null foreign key) and is
removed when that production is deleted.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, UUIDPrimaryKeyMixin, as_utc, utcnow
from .enums import RatingSource

if TYPE_CHECKING:
    from .production import Production


CAGE_NAME_VARIANTS = ("nicolas cage", "nick cage", "nic cage")


class CastMember(UUIDPrimaryKeyMixin, Base):
    """
    An actor credited in a production.

    Attributes:
        id: UUID primary key
        production_id: Owning production
        name: Actor name
        character: Character played
        billing_order: 0-based credit order
        profile_path: Provider-relative profile image path
    """

    __tablename__ = "cast_members"
    __table_args__ = (
        CheckConstraint("billing_order >= 0", name="ck_cast_billing_order"),
    )

    production_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("productions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    character: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    billing_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    profile_path: Mapped[Optional[str]] = mapped_column(String(255))

    production: Mapped["Production"] = relationship(
        "Production", back_populates="cast_members"
    )

    @property
    def is_nicolas_cage(self) -> bool:
        """Check if this credit belongs to the catalog's actor."""
        lowered = self.name.lower()
        return any(variant in lowered for variant in CAGE_NAME_VARIANTS)

    def __repr__(self) -> str:
        return f"<CastMember(name={self.name}, character={self.character}, order={self.billing_order})>"


class WatchEvent(UUIDPrimaryKeyMixin, Base):
    """
    One viewing of a production.

    Attributes:
        id: UUID primary key
        production_id: Owning production
        watched_date: When the viewing happened
        location: Free-form place ("Home", "Cinema")
        notes: Free-form notes
        mood: How the viewer felt
    """

    __tablename__ = "watch_events"

    production_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("productions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    watched_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    location: Mapped[Optional[str]] = mapped_column(String(255))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    mood: Mapped[Optional[str]] = mapped_column(String(100))

    production: Mapped["Production"] = relationship(
        "Production", back_populates="watch_events"
    )

    @property
    def formatted_date(self) -> str:
        """Date as 'Mar 05, 2024'."""
        return as_utc(self.watched_date).strftime("%b %d, %Y")

    @property
    def is_today(self) -> bool:
        """Check if the viewing happened today (UTC)."""
        return as_utc(self.watched_date).date() == utcnow().date()

    @property
    def is_this_week(self) -> bool:
        """Check if the viewing happened in the current ISO week (UTC)."""
        return as_utc(self.watched_date).isocalendar()[:2] == utcnow().isocalendar()[:2]

    def __repr__(self) -> str:
        return f"<WatchEvent(production_id={self.production_id}, date={self.watched_date})>"


class ExternalRating(UUIDPrimaryKeyMixin, Base):
    """
    A score for a production from an outside source.

    Attributes:
        id: UUID primary key
        production_id: Owning production
        source: Ratings source (enum)
        rating: Score on the source's native scale
        max_rating: Top of the source's scale (> 0)
        review_count: Number of reviews behind the score
        url: Link to the source page

    Computed Properties:
        normalized_rating: Score on a 0-10 scale
        normalized_to_five_stars: Score on a 0-5 scale
        display_string: Score formatted the way the source shows it
    """

    __tablename__ = "external_ratings"
    __table_args__ = (
        CheckConstraint("max_rating > 0", name="ck_rating_positive_max"),
        CheckConstraint(
            "rating >= 0 AND rating <= max_rating", name="ck_rating_within_scale"
        ),
    )

    production_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("productions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source: Mapped[RatingSource] = mapped_column(
        SQLEnum(RatingSource, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    rating: Mapped[float] = mapped_column(Float, nullable=False)
    max_rating: Mapped[float] = mapped_column(Float, nullable=False)
    review_count: Mapped[Optional[int]] = mapped_column(Integer)
    url: Mapped[Optional[str]] = mapped_column(String(500))

    production: Mapped["Production"] = relationship(
        "Production", back_populates="external_ratings"
    )

    @property
    def normalized_rating(self) -> float:
        """Score on a 0-10 scale."""
        return self.rating / self.max_rating * 10

    @property
    def normalized_to_five_stars(self) -> float:
        """Score on a 0-5 scale, comparable with user ratings."""
        return self.rating / self.max_rating * 5

    @property
    def display_string(self) -> str:
        """Score formatted in the source's own convention."""
        if self.source == RatingSource.IMDB:
            return f"{self.rating:.1f}/10"
        if self.source == RatingSource.ROTTEN_TOMATOES:
            return f"{int(self.rating)}%"
        if self.source == RatingSource.METACRITIC:
            return f"{int(self.rating)}/100"
        return f"{self.rating:.1f}/5"

    def __repr__(self) -> str:
        return f"<ExternalRating(source={self.source.value}, rating={self.rating}/{self.max_rating})>"
