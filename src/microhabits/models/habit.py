"""Habit tracking data structures."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

DEFAULT_HABIT_COLOR = "#4F46E5"
DEFAULT_REMINDER_TIME = "08:00"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TargetFrequency(str, Enum):
    """How often a habit is meant to be performed."""

    DAILY = "daily"
    WEEKLY = "weekly"


class Habit(SQLModel, table=True):
    """A user-defined micro-habit."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=100, index=True)
    description: Optional[str] = Field(default=None, max_length=500)
    target_frequency: TargetFrequency = Field(default=TargetFrequency.DAILY, nullable=False)
    color: str = Field(default=DEFAULT_HABIT_COLOR, max_length=7)
    reminder_enabled: bool = Field(default=False, nullable=False)
    reminder_time: str = Field(default=DEFAULT_REMINDER_TIME, max_length=5)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)

    def as_dict(self) -> dict:
        """Serialise the habit row for JSON responses."""

        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "target_frequency": TargetFrequency(self.target_frequency).value,
            "color": self.color,
            "reminder_enabled": self.reminder_enabled,
            "reminder_time": self.reminder_time,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class HabitCompletion(SQLModel, table=True):
    """A moment at which a habit was performed.

    ``completed_at`` is an instant, not a calendar date; the owner's local day
    is derived from it when statistics are computed.
    """

    __tablename__: ClassVar[str] = "habit_completion"

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    completed_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
