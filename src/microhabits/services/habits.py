"""Habit statistics: streaks, completion rate and today's status."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Sequence

from ..models.habit import Habit, HabitCompletion, TargetFrequency
from .days import ONE_DAY, DayBoundary, distinct_days

COMPLETION_WINDOW = timedelta(days=30)
# Nominal targets inside the 30-day window for each frequency.
WINDOW_TARGETS = {
    TargetFrequency.DAILY: 30,
    TargetFrequency.WEEKLY: 4,
}


@dataclass(frozen=True)
class HabitStats:
    """Read-only projection derived from a habit's completions."""

    current_streak: int = 0
    longest_streak: int = 0
    completion_rate: float = 0.0
    total_completions: int = 0
    is_completed_today: bool = False


@dataclass(frozen=True)
class HabitWithStats:
    """A habit paired with the statistics computed for it."""

    habit: Habit
    stats: HabitStats

    @property
    def id(self) -> int | None:
        return self.habit.id

    def as_dict(self) -> dict[str, Any]:
        payload = self.habit.as_dict()
        payload.update(asdict(self.stats))
        return payload


def current_streak(days: Iterable[date], today: date) -> int:
    """Count consecutive days ending today; a missing today means no streak."""

    ordered = sorted({d for d in days if d <= today}, reverse=True)
    if not ordered or ordered[0] != today:
        return 0

    streak = 0
    cursor = today
    for day in ordered:
        if day != cursor:
            break
        streak += 1
        cursor -= ONE_DAY
    return streak


def longest_streak(days: Iterable[date]) -> int:
    """Return the longest run of consecutive days ever observed."""

    longest = 0
    run = 0
    last_day: date | None = None
    for day in sorted(set(days)):
        if last_day is not None and day == last_day + ONE_DAY:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        last_day = day
    return longest


def completion_rate(
    frequency: TargetFrequency | str,
    completions: Sequence[datetime],
    now: datetime,
    boundary: DayBoundary,
) -> float:
    """Percentage of the 30-day target met, capped at 100."""

    local_now = boundary.localize(now)
    window_start = local_now - COMPLETION_WINDOW
    recent = sum(
        1 for ts in completions if window_start <= boundary.localize(ts) <= local_now
    )
    target = WINDOW_TARGETS[TargetFrequency(frequency)]
    return min(recent / target * 100, 100.0)


def compute_stats(
    habit: Any,
    completions: Iterable[datetime],
    now: datetime,
    *,
    boundary: DayBoundary | None = None,
) -> HabitStats:
    """Derive the statistics for one habit.

    Only ``habit.target_frequency`` is read. ``completions`` are the raw
    completion instants in any order; ``now`` is injected so the result is
    deterministic.
    """

    boundary = boundary or DayBoundary()
    timestamps = list(completions)
    if not timestamps:
        return HabitStats()

    today = boundary.day_of(now)
    days = distinct_days(timestamps, boundary)
    day_start, day_end = boundary.start_of_day(now), boundary.end_of_day(now)

    return HabitStats(
        current_streak=current_streak(days, today),
        longest_streak=longest_streak(days),
        completion_rate=completion_rate(habit.target_frequency, timestamps, now, boundary),
        total_completions=len(timestamps),
        is_completed_today=any(
            day_start <= boundary.localize(ts) <= day_end for ts in timestamps
        ),
    )


def compute_all(
    habits: Iterable[Habit],
    completions: Iterable[HabitCompletion],
    now: datetime,
    *,
    boundary: DayBoundary | None = None,
) -> list[HabitWithStats]:
    """Compute stats for every habit from one snapshot of completions.

    Habit order is preserved. Completions for habits not in ``habits`` are
    ignored.
    """

    boundary = boundary or DayBoundary()
    by_habit: dict[int, list[datetime]] = defaultdict(list)
    for completion in completions:
        by_habit[completion.habit_id].append(completion.completed_at)

    return [
        HabitWithStats(
            habit=habit,
            stats=compute_stats(habit, by_habit.get(habit.id, []), now, boundary=boundary),
        )
        for habit in habits
    ]


__all__ = [
    "COMPLETION_WINDOW",
    "HabitStats",
    "HabitWithStats",
    "completion_rate",
    "compute_all",
    "compute_stats",
    "current_streak",
    "longest_streak",
]
