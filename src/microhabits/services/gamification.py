"""XP, levels and achievements derived from habit statistics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .habits import HabitWithStats

XP_PER_COMPLETION = 10
XP_PER_STREAK_DAY = 5
XP_TODAY_BONUS = 15
XP_PER_LEVEL = 100


@dataclass(frozen=True)
class XPSummary:
    total_xp: int
    level: int
    xp_to_next_level: int
    progress_percent: float


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    unlocked: bool


def habit_xp(item: HabitWithStats) -> int:
    """XP earned by a single habit."""

    stats = item.stats
    bonus = XP_TODAY_BONUS if stats.is_completed_today else 0
    return (
        stats.total_completions * XP_PER_COMPLETION
        + stats.current_streak * XP_PER_STREAK_DAY
        + bonus
    )


def calculate_xp(habits: Sequence[HabitWithStats]) -> XPSummary:
    """Total XP and level progress across all habits."""

    total = sum(habit_xp(item) for item in habits)
    if total == 0:
        return XPSummary(total_xp=0, level=1, xp_to_next_level=XP_PER_LEVEL, progress_percent=0.0)

    into_level = total % XP_PER_LEVEL
    return XPSummary(
        total_xp=total,
        level=total // XP_PER_LEVEL + 1,
        xp_to_next_level=XP_PER_LEVEL - into_level,
        progress_percent=into_level / XP_PER_LEVEL * 100,
    )


# (id, name, description, minimum longest streak); None means "any habit exists"
_ACHIEVEMENTS: tuple[tuple[str, str, str, int | None], ...] = (
    ("first-habit", "First Steps", "Create your first habit", None),
    ("week-streak", "Week Warrior", "7-day streak on any habit", 7),
    ("month-streak", "Month Master", "30-day streak on any habit", 30),
    ("legend", "Legend", "100-day streak on any habit", 100),
)


def get_achievements(habits: Sequence[HabitWithStats]) -> list[Achievement]:
    best = max((item.stats.longest_streak for item in habits), default=0)
    achievements = []
    for achievement_id, name, description, threshold in _ACHIEVEMENTS:
        unlocked = bool(habits) if threshold is None else best >= threshold
        achievements.append(
            Achievement(id=achievement_id, name=name, description=description, unlocked=unlocked)
        )
    return achievements


__all__ = ["Achievement", "XPSummary", "calculate_xp", "get_achievements", "habit_xp"]
