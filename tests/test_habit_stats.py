"""Tests for per-habit statistics.

Covers current and longest streaks, the 30-day completion rate, totals and the
"completed today" flag, including:
- Empty completion lists
- Gaps and same-day duplicates
- Future-dated completions
- Owner timezones that disagree with UTC about the date
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from microhabits.models import Habit, HabitCompletion, TargetFrequency
from microhabits.services.days import DayBoundary
from microhabits.services.habits import (
    HabitStats,
    compute_all,
    compute_stats,
    current_streak,
    longest_streak,
)

NOW = datetime(2024, 6, 15, 14, 0, tzinfo=timezone.utc)
DAILY = Habit(id=1, user_id=1, name="Read", target_frequency=TargetFrequency.DAILY)
WEEKLY = Habit(id=2, user_id=1, name="Long run", target_frequency=TargetFrequency.WEEKLY)


def days_ago(*offsets: int, base: datetime = NOW) -> list[datetime]:
    return [base - timedelta(days=offset) for offset in offsets]


class TestEmptyInput:
    def test_no_completions_yields_zeroed_stats(self):
        """No completions means every statistic is zero or false."""
        assert compute_stats(DAILY, [], NOW) == HabitStats(
            current_streak=0,
            longest_streak=0,
            completion_rate=0.0,
            total_completions=0,
            is_completed_today=False,
        )

    def test_empty_for_weekly_habit_too(self):
        """Frequency does not matter when nothing was completed."""
        assert compute_stats(WEEKLY, [], NOW) == HabitStats()


class TestCurrentStreak:
    """Tests for the run of consecutive days ending today."""

    def test_single_completion_now(self):
        """One completion at ``now`` starts a streak of one."""
        stats = compute_stats(DAILY, [NOW], NOW)

        assert stats.current_streak == 1
        assert stats.is_completed_today is True
        assert stats.total_completions == 1

    def test_gap_breaks_streak(self):
        """Today, yesterday and the day before count; the older day does not."""
        stats = compute_stats(DAILY, days_ago(0, 1, 2, 10), NOW)

        assert stats.current_streak == 3
        assert stats.longest_streak >= 3

    def test_missing_today_means_no_streak(self):
        """Yesterday alone does not keep a streak alive."""
        stats = compute_stats(DAILY, days_ago(1, 2, 3), NOW)

        assert stats.current_streak == 0
        assert stats.longest_streak == 3
        assert stats.is_completed_today is False

    def test_future_completions_are_ignored(self):
        """Days after today neither extend nor break the current streak."""
        stats = compute_stats(DAILY, days_ago(-2, -1, 0, 1), NOW)

        assert stats.current_streak == 2

    def test_only_future_completions(self):
        assert current_streak([date(2024, 6, 20)], date(2024, 6, 15)) == 0


class TestLongestStreak:
    def test_finished_run_is_remembered(self):
        """Six consecutive days that ended two weeks ago."""
        stats = compute_stats(DAILY, days_ago(20, 19, 18, 17, 16, 15), NOW)

        assert stats.current_streak == 0
        assert stats.longest_streak == 6

    def test_longest_of_several_runs(self):
        days = [date(2024, 1, d) for d in (1, 2, 5, 6, 7, 8, 20)]
        assert longest_streak(days) == 4

    def test_unordered_input(self):
        days = [date(2024, 3, 3), date(2024, 3, 1), date(2024, 3, 2)]
        assert longest_streak(days) == 3

    def test_empty(self):
        assert longest_streak([]) == 0


class TestCompletionRate:
    """Tests for the rolling 30-day window."""

    def test_daily_rate_is_clamped(self):
        """40 completions against a daily target of 30 caps at 100."""
        completions = [NOW - timedelta(hours=12 * i) for i in range(40)]
        assert all(ts >= NOW - timedelta(days=30) for ts in completions)

        stats = compute_stats(DAILY, completions, NOW)

        assert stats.completion_rate == 100
        assert stats.total_completions == 40

    def test_weekly_rate(self):
        """Two completions against a weekly target of four is 50%."""
        stats = compute_stats(WEEKLY, days_ago(3, 10), NOW)

        assert stats.completion_rate == 50

    def test_daily_partial_rate(self):
        stats = compute_stats(DAILY, days_ago(0, 1, 2), NOW)

        assert stats.completion_rate == pytest.approx(10.0)

    def test_old_completions_fall_outside_window(self):
        """Completions older than 30 days still count toward the total only."""
        stats = compute_stats(WEEKLY, days_ago(31, 45, 60), NOW)

        assert stats.completion_rate == 0
        assert stats.total_completions == 3

    def test_window_edge_is_inclusive(self):
        stats = compute_stats(WEEKLY, [NOW - timedelta(days=30)], NOW)

        assert stats.completion_rate == 25

    def test_future_completion_excluded_from_rate(self):
        """Tomorrow's completion neither counts toward the rate nor starts a streak."""
        stats = compute_stats(WEEKLY, [NOW + timedelta(days=1)], NOW)

        assert stats.completion_rate == 0
        assert stats.current_streak == 0
        assert stats.is_completed_today is False

    def test_later_today_counts_as_today_but_not_toward_rate(self):
        """An instant later on the current day still marks today done."""
        stats = compute_stats(WEEKLY, [NOW + timedelta(hours=1)], NOW)

        assert stats.completion_rate == 0
        assert stats.current_streak == 1
        assert stats.is_completed_today is True

    def test_frequency_given_as_string(self):
        habit = Habit(id=3, user_id=1, name="Stretch", target_frequency="weekly")

        assert compute_stats(habit, [NOW], NOW).completion_rate == 25


class TestDuplicatesAndDeterminism:
    def test_same_day_completions(self):
        """Two completions on one day are one streak day but two completions."""
        morning = NOW.replace(hour=7)
        stats = compute_stats(DAILY, [morning, NOW], NOW)

        assert stats.current_streak == 1
        assert stats.longest_streak == 1
        assert stats.total_completions == 2

    def test_repeated_calls_are_identical(self):
        completions = days_ago(0, 1, 2, 5, 6)

        assert compute_stats(DAILY, completions, NOW) == compute_stats(DAILY, completions, NOW)

    def test_adding_a_consecutive_day_never_decreases(self):
        base = days_ago(1, 2, 3)
        before = compute_stats(DAILY, base, NOW)
        after = compute_stats(DAILY, base + [NOW], NOW)

        assert after.current_streak >= before.current_streak
        assert after.longest_streak >= before.longest_streak
        assert after.total_completions > before.total_completions


class TestOwnerTimezone:
    """Day boundaries follow the owner's timezone, not UTC."""

    def test_local_midnight_splits_same_utc_date(self):
        """23:30 and 00:30 local are consecutive days though both are on one UTC date."""
        boundary = DayBoundary(ZoneInfo("America/New_York"))
        # 23:30 EDT on June 14 and 00:30 EDT on June 15, both June 15 in UTC.
        late = datetime(2024, 6, 15, 3, 30, tzinfo=timezone.utc)
        early = datetime(2024, 6, 15, 4, 30, tzinfo=timezone.utc)
        now = datetime(2024, 6, 15, 16, 0, tzinfo=timezone.utc)

        stats = compute_stats(DAILY, [late, early], now, boundary=boundary)

        assert stats.current_streak == 2
        assert stats.longest_streak == 2

    def test_same_instants_are_one_day_in_utc(self):
        late = datetime(2024, 6, 15, 3, 30, tzinfo=timezone.utc)
        early = datetime(2024, 6, 15, 4, 30, tzinfo=timezone.utc)
        now = datetime(2024, 6, 15, 16, 0, tzinfo=timezone.utc)

        stats = compute_stats(DAILY, [late, early], now, boundary=DayBoundary.for_timezone("UTC"))

        assert stats.current_streak == 1

    def test_completed_today_uses_local_day(self):
        """A completion late in the UTC day can already be tomorrow in Tokyo."""
        boundary = DayBoundary(ZoneInfo("Asia/Tokyo"))
        completion = datetime(2024, 6, 14, 16, 0, tzinfo=timezone.utc)  # June 15 01:00 JST

        stats = compute_stats(DAILY, [completion], NOW, boundary=boundary)

        assert stats.is_completed_today is True
        assert stats.current_streak == 1

    def test_naive_instants_without_timezone(self):
        naive_now = datetime(2024, 6, 15, 9, 0)
        stats = compute_stats(DAILY, [naive_now - timedelta(days=1), naive_now], naive_now)

        assert stats.current_streak == 2


class TestComputeAll:
    def test_groups_completions_by_habit_and_keeps_order(self):
        completions = [
            HabitCompletion(id=1, habit_id=2, completed_at=NOW),
            HabitCompletion(id=2, habit_id=1, completed_at=NOW),
            HabitCompletion(id=3, habit_id=1, completed_at=NOW - timedelta(days=1)),
            HabitCompletion(id=4, habit_id=99, completed_at=NOW),
        ]

        result = compute_all([WEEKLY, DAILY], completions, NOW)

        assert [item.id for item in result] == [2, 1]
        assert result[0].stats.total_completions == 1
        assert result[1].stats.current_streak == 2

    def test_habit_without_completions(self):
        result = compute_all([DAILY], [], NOW)

        assert result[0].stats == HabitStats()

    def test_as_dict_merges_habit_and_stats(self):
        item = compute_all([DAILY], [HabitCompletion(habit_id=1, completed_at=NOW)], NOW)[0]
        payload = item.as_dict()

        assert payload["name"] == "Read"
        assert payload["target_frequency"] == "daily"
        assert payload["current_streak"] == 1
        assert payload["is_completed_today"] is True
