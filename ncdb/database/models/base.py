"""
Base Classes and Helpers
------------------------

Foundational ORM classes for the NCDB database.

Classes:
    - Base: Declarative base for all SQLAlchemy models
    - UUIDPrimaryKeyMixin: String UUID primary key

Functions:
    - utcnow: Current aware UTC datetime
    - as_utc: Re-attach UTC to datetimes read back from SQLite
    - new_uuid: Fresh UUID4 string
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import uuid
from datetime import datetime, timezone
from typing import Optional

# --- Third party ---
from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Return ``value`` as an aware UTC datetime.

    SQLite stores datetimes without offset, so values read back are naive
    even when the column is declared timezone-aware.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def new_uuid() -> str:
    """Return a new random UUID as a string."""
    return str(uuid.uuid4())


# --- Base ORM class ---
class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Serves as the declarative base for SQLAlchemy models and provides
    access to the metadata object for table creation.
    """

    pass


class UUIDPrimaryKeyMixin:
    """
    Mixin providing a process-unique UUID string primary key.

    The id is assigned at construction time so it is known before the
    row is flushed.
    """

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=new_uuid, doc="UUID primary key"
    )

    def __init__(self, **kwargs) -> None:
        kwargs.setdefault("id", new_uuid())
        super().__init__(**kwargs)
