"""SQLModel table exports."""

from .habit import Habit, HabitCompletion, TargetFrequency
from .user import User

__all__ = [
    "Habit",
    "HabitCompletion",
    "TargetFrequency",
    "User",
]
