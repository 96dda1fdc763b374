"""
Achievement Models
------------------

Gamified milestones tracked against catalog activity.

Models:
    - Achievement: A milestone with monotonic progress and a one-time unlock

Achievements are keyed by a stable slug (e.g. 'first_watch') rather than a
UUID, so seeding the predefined catalog is idempotent.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    Float,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .enums import AchievementCategory

NEARLY_COMPLETE_PERCENT = 80.0


class Achievement(Base):
    """
    A milestone with progress toward a requirement.

    Attributes:
        id: Stable slug primary key
        title: Display title
        description: What the user has to do
        icon: Symbol name
        category: Grouping (enum)
        progress: Current progress (never decreases)
        requirement: Target value (> 0)
        is_unlocked: True once progress first reached requirement
        unlocked_date: When the unlock happened

    Computed Properties:
        progress_percentage: 0-100, capped
        remaining: Whole units left before unlock
        is_nearly_complete: At least 80% and still locked
    """

    __tablename__ = "achievements"
    __table_args__ = (
        CheckConstraint("requirement > 0", name="ck_achievement_positive_requirement"),
        CheckConstraint("progress >= 0", name="ck_achievement_progress"),
    )

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    icon: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    category: Mapped[AchievementCategory] = mapped_column(
        SQLEnum(AchievementCategory, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    progress: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    requirement: Mapped[float] = mapped_column(Float, default=1.0, nullable=False)
    is_unlocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    unlocked_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    @property
    def progress_percentage(self) -> float:
        return min(self.progress / self.requirement * 100, 100.0)

    @property
    def remaining(self) -> int:
        return max(0, int(self.requirement) - int(self.progress))

    @property
    def is_nearly_complete(self) -> bool:
        return self.progress_percentage >= NEARLY_COMPLETE_PERCENT and not self.is_unlocked

    def __repr__(self) -> str:
        state = "unlocked" if self.is_unlocked else f"{self.progress}/{self.requirement}"
        return f"<Achievement(id={self.id}, {state})>"
