"""Dashboard aggregates: overview cards, distribution, heatmap and filtering."""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Sequence

from ..errors import InvalidInputError
from ..models.habit import TargetFrequency
from .days import ONE_DAY, DayBoundary
from .habits import HabitWithStats

FILTERS = ("all", "completed", "pending", "daily", "weekly")
HEATMAP_MONTHS = 12


@dataclass(frozen=True)
class Overview:
    total_habits: int
    completed_today: int
    longest_streak: int
    average_completion: int


@dataclass(frozen=True)
class HeatmapCell:
    day: date
    count: int
    intensity: int

    def as_dict(self) -> dict:
        return {"date": self.day.isoformat(), "count": self.count, "intensity": self.intensity}


def overview(habits: Sequence[HabitWithStats]) -> Overview:
    total = len(habits)
    average = 0
    if total:
        mean = sum(item.stats.completion_rate for item in habits) / total
        average = math.floor(mean + 0.5)
    return Overview(
        total_habits=total,
        completed_today=sum(1 for item in habits if item.stats.is_completed_today),
        longest_streak=max((item.stats.longest_streak for item in habits), default=0),
        average_completion=average,
    )


def frequency_distribution(habits: Sequence[HabitWithStats]) -> dict[str, int]:
    counts = Counter(TargetFrequency(item.habit.target_frequency) for item in habits)
    return {frequency.value: counts.get(frequency, 0) for frequency in TargetFrequency}


def _matches_filter(item: HabitWithStats, filter_by: str) -> bool:
    if filter_by == "all":
        return True
    if filter_by == "completed":
        return item.stats.is_completed_today
    if filter_by == "pending":
        return not item.stats.is_completed_today
    return TargetFrequency(item.habit.target_frequency).value == filter_by


def filter_habits(
    habits: Sequence[HabitWithStats],
    *,
    search: str = "",
    filter_by: str = "all",
) -> list[HabitWithStats]:
    """Apply the dashboard search box and status/frequency filter."""

    filter_by = (filter_by or "all").strip().lower()
    if filter_by not in FILTERS:
        raise InvalidInputError(
            f"Unknown filter: {filter_by}", {"filter": [f"Expected one of {', '.join(FILTERS)}"]}
        )
    needle = (search or "").strip().lower()

    result = []
    for item in habits:
        if needle:
            haystacks = (item.habit.name or "", item.habit.description or "")
            if not any(needle in text.lower() for text in haystacks):
                continue
        if _matches_filter(item, filter_by):
            result.append(item)
    return result


def intensity(count: int) -> int:
    """Bucket a day's completion count into heatmap levels 0-4."""

    if count == 0:
        return 0
    if count <= 2:
        return 1
    if count <= 4:
        return 2
    if count <= 6:
        return 3
    return 4


def _months_back(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) - months
    return date(index // 12, index % 12 + 1, 1)


def activity_heatmap(
    completions: Iterable[datetime],
    now: datetime,
    *,
    boundary: DayBoundary | None = None,
    months: int = HEATMAP_MONTHS,
) -> list[HeatmapCell]:
    """One cell per local day from the first of the month ``months - 1`` back to today."""

    boundary = boundary or DayBoundary()
    today = boundary.day_of(now)
    start = _months_back(today, months - 1)
    counts = Counter(boundary.day_of(ts) for ts in completions)

    cells = []
    cursor = start
    while cursor <= today:
        count = counts.get(cursor, 0)
        cells.append(HeatmapCell(day=cursor, count=count, intensity=intensity(count)))
        cursor += ONE_DAY
    return cells


__all__ = [
    "FILTERS",
    "HeatmapCell",
    "Overview",
    "activity_heatmap",
    "filter_habits",
    "frequency_distribution",
    "intensity",
    "overview",
]
