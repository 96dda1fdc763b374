"""
Entity Models
-------------

User-created organizational entities.

Models:
    - CustomTag: Named, colored label attachable to many productions

Tag membership lives in the production_tags join table. Neither side owns
it: deleting a tag removes its memberships only, and deleting a production
removes that production's memberships only.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .associations import production_tags
from .base import Base, UUIDPrimaryKeyMixin, utcnow

if TYPE_CHECKING:
    from .production import Production


DEFAULT_TAG_COLOR = "#FFD700"


class CustomTag(UUIDPrimaryKeyMixin, Base):
    """
    A user-defined label for grouping productions.

    Attributes:
        id: UUID primary key
        name: Display name (unique, compared case-insensitively)
        color_hex: Hex color code such as '#FFD700'
        icon: Optional symbol name
        date_created: Creation timestamp

    Relationships:
        productions: Read-only view over production_tags

    Notes:
        The unique index is on lower(name), so 'Classics' and 'classics'
        cannot coexist.
    """

    __tablename__ = "custom_tags"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color_hex: Mapped[str] = mapped_column(
        String(9), default=DEFAULT_TAG_COLOR, nullable=False
    )
    icon: Mapped[Optional[str]] = mapped_column(String(100))
    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    productions: Mapped[List["Production"]] = relationship(
        "Production",
        secondary=production_tags,
        viewonly=True,
        order_by="[Production.title, Production.id]",
    )

    @property
    def production_count(self) -> int:
        """Number of productions carrying this tag."""
        return len(self.productions)

    def __repr__(self) -> str:
        return f"<CustomTag(name={self.name}, color={self.color_hex})>"

    def __str__(self) -> str:
        return self.name


Index("ux_custom_tags_name_lower", func.lower(CustomTag.name), unique=True)
