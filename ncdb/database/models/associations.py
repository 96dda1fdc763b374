"""
Association Tables
-------------------

Many-to-many relationship tables for the NCDB database.

production_tags links productions with custom tags. Neither entity owns
the link: memberships are written by TagManager and both sides expose
read-only views over this table. Deleting either side removes its rows
here, never the entity on the other side.
"""
# --- Third party imports ---
from sqlalchemy import Column, DateTime, ForeignKey, String, Table

# --- Local imports ---
from .base import Base, utcnow

production_tags = Table(
    "production_tags",
    Base.metadata,
    Column(
        "production_id",
        String(36),
        ForeignKey("productions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        String(36),
        ForeignKey("custom_tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("tagged_at", DateTime(timezone=True), default=utcnow, nullable=False),
)
