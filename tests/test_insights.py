"""Tests for dashboard aggregates, filtering and the activity heatmap."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from microhabits.errors import InvalidInputError
from microhabits.models import Habit, TargetFrequency
from microhabits.services.days import DayBoundary
from microhabits.services.habits import HabitStats, HabitWithStats
from microhabits.services.insights import (
    activity_heatmap,
    filter_habits,
    frequency_distribution,
    intensity,
    overview,
)

NOW = datetime(2024, 6, 15, 14, 0, tzinfo=timezone.utc)


@pytest.fixture
def habits() -> list[HabitWithStats]:
    return [
        HabitWithStats(
            Habit(id=1, user_id=1, name="Morning run", description="5k around the park"),
            HabitStats(current_streak=3, longest_streak=9, completion_rate=10.0, is_completed_today=True),
        ),
        HabitWithStats(
            Habit(id=2, user_id=1, name="Journal", target_frequency=TargetFrequency.WEEKLY),
            HabitStats(longest_streak=2, completion_rate=25.0),
        ),
        HabitWithStats(
            Habit(id=3, user_id=1, name="Floss", description="Evening routine"),
            HabitStats(completion_rate=20.0),
        ),
    ]


class TestOverview:
    def test_overview_counts(self, habits):
        result = overview(habits)

        assert result.total_habits == 3
        assert result.completed_today == 1
        assert result.longest_streak == 9
        assert result.average_completion == 18  # 55 / 3 = 18.33

    def test_average_rounds_half_up(self):
        items = [
            HabitWithStats(Habit(id=1, user_id=1, name="a"), HabitStats(completion_rate=12.5)),
            HabitWithStats(Habit(id=2, user_id=1, name="b"), HabitStats(completion_rate=12.5)),
        ]

        assert overview(items).average_completion == 13

    def test_empty_overview(self):
        result = overview([])

        assert (result.total_habits, result.longest_streak, result.average_completion) == (0, 0, 0)

    def test_distribution(self, habits):
        assert frequency_distribution(habits) == {"daily": 2, "weekly": 1}


class TestFilterHabits:
    def test_search_matches_name_and_description(self, habits):
        assert [i.id for i in filter_habits(habits, search="RUN")] == [1]
        assert [i.id for i in filter_habits(habits, search="evening")] == [3]

    @pytest.mark.parametrize(
        ("filter_by", "expected"),
        [
            ("all", [1, 2, 3]),
            ("completed", [1]),
            ("pending", [2, 3]),
            ("daily", [1, 3]),
            ("weekly", [2]),
        ],
    )
    def test_filters(self, habits, filter_by, expected):
        assert [i.id for i in filter_habits(habits, filter_by=filter_by)] == expected

    def test_search_and_filter_combine(self, habits):
        assert filter_habits(habits, search="o", filter_by="pending")[0].id == 2

    def test_unknown_filter(self, habits):
        with pytest.raises(InvalidInputError):
            filter_habits(habits, filter_by="monthly")


class TestHeatmap:
    @pytest.mark.parametrize(
        ("count", "level"), [(0, 0), (1, 1), (2, 1), (3, 2), (4, 2), (5, 3), (6, 3), (7, 4), (30, 4)]
    )
    def test_intensity_buckets(self, count, level):
        assert intensity(count) == level

    def test_range_starts_eleven_months_back(self):
        cells = activity_heatmap([], NOW)

        assert cells[0].day == date(2023, 7, 1)
        assert cells[-1].day == date(2024, 6, 15)
        assert all(cell.count == 0 for cell in cells)

    def test_counts_per_local_day(self):
        completions = [NOW, NOW - timedelta(hours=1), NOW - timedelta(days=1)]
        cells = {cell.day: cell for cell in activity_heatmap(completions, NOW)}

        assert cells[date(2024, 6, 15)].count == 2
        assert cells[date(2024, 6, 14)].count == 1

    def test_uses_owner_timezone(self):
        boundary = DayBoundary(ZoneInfo("Asia/Tokyo"))
        late_utc = datetime(2024, 6, 14, 20, 0, tzinfo=timezone.utc)
        cells = activity_heatmap([late_utc], NOW, boundary=boundary)

        assert cells[-1].as_dict() == {"date": "2024-06-15", "count": 1, "intensity": 1}
