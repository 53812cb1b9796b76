"""Refetch-and-recompute orchestration for one owner's habits.

The tracker is what a presentation layer holds on to: it owns the last good
list of habits with stats, a single error string, and the mutation commands
that go back to the store. Every successful mutation triggers a full refetch
so statistics are always computed from one consistent snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Generic, Mapping, Optional, TypeVar

from ..domain.repositories import HabitRepository
from ..errors import InvalidInputError, StoreError
from ..logging_config import get_logger
from ..models.habit import Habit, HabitCompletion
from .days import Clock, DayBoundary, system_clock
from .habits import HabitWithStats, compute_all
from .validation import HabitForm, HabitPatch, ReminderForm, validate

logger = get_logger("tracker")

T = TypeVar("T")


@dataclass(frozen=True)
class ActionResult(Generic[T]):
    """Outcome of a mutation: ``data`` on success, ``error`` message otherwise."""

    data: Optional[T] = None
    error: Optional[str] = None
    exception: Optional[Exception] = field(default=None, repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Optional[T]:
        """Return ``data`` or re-raise the exception that caused the failure."""

        if self.exception is not None:
            raise self.exception
        return self.data


class HabitTracker:
    """Holds one owner's habits with stats and applies mutations to the store."""

    def __init__(
        self,
        repository: HabitRepository,
        *,
        user_id: int,
        boundary: DayBoundary | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self.repository = repository
        self.user_id = user_id
        self.boundary = boundary or DayBoundary()
        self._clock = clock
        self.habits: list[HabitWithStats] = []
        self.completions: list[HabitCompletion] = []
        self.error: Optional[str] = None
        self.loading = False

    def refresh(self) -> list[HabitWithStats]:
        """Reload every habit and its completions, then recompute stats.

        On a store failure the previous list is kept and ``error`` is set.
        """

        self.loading = True
        try:
            habits = self.repository.list_habits(user_id=self.user_id)
            completions = self.repository.list_completions([habit.id for habit in habits])
            self.habits = compute_all(habits, completions, self.now(), boundary=self.boundary)
            self.completions = completions
            self.error = None
        except StoreError as exc:
            self.error = str(exc) or "Failed to fetch habits"
            logger.error("Habit refresh failed", extra={"user_id": self.user_id, "error": self.error})
        finally:
            self.loading = False
        return self.habits

    def now(self) -> datetime:
        """Current instant from the injected clock."""

        return self._clock()

    def find(self, habit_id: int) -> Optional[HabitWithStats]:
        return next((item for item in self.habits if item.habit.id == habit_id), None)

    def _run(self, action: str, operation: Callable[[], T]) -> ActionResult[T]:
        try:
            data = operation()
        except (InvalidInputError, StoreError) as exc:
            message = str(exc) or f"Failed to {action}"
            logger.warning(
                "Habit %s rejected", action, extra={"user_id": self.user_id, "error": message}
            )
            return ActionResult(error=message, exception=exc)
        self.refresh()
        return ActionResult(data=data)

    def create_habit(self, data: Mapping[str, Any]) -> ActionResult[Habit]:
        def operation() -> Habit:
            form = validate(HabitForm, data)
            habit = Habit(
                user_id=self.user_id,
                name=form.name,
                description=form.description,
                target_frequency=form.target_frequency,
                color=form.color,
            )
            return self.repository.create_habit(habit, user_id=self.user_id)

        return self._run("create habit", operation)

    def update_habit(self, habit_id: int, data: Mapping[str, Any]) -> ActionResult[Habit]:
        def operation() -> Habit:
            patch = validate(HabitPatch, data).changes()
            if not patch:
                return self.repository.get_habit(habit_id, user_id=self.user_id)
            return self.repository.update_habit(habit_id, patch, user_id=self.user_id)

        return self._run("update habit", operation)

    def update_reminder(
        self, habit_id: int, enabled: bool, time: Optional[str] = None
    ) -> ActionResult[Habit]:
        def operation() -> Habit:
            form = validate(ReminderForm, {"enabled": enabled, "time": time})
            return self.repository.update_reminder(
                habit_id, enabled=form.enabled, time=form.time, user_id=self.user_id
            )

        return self._run("update reminder", operation)

    def delete_habit(self, habit_id: int) -> ActionResult[None]:
        return self._run(
            "delete habit",
            lambda: self.repository.delete_habit(habit_id, user_id=self.user_id),
        )

    def toggle_completion(self, habit_id: int) -> ActionResult[bool]:
        """Mark the habit done for today, or undo today's completion."""

        def operation() -> bool:
            now = self.now()
            return self.repository.toggle_completion(
                habit_id,
                self.boundary.day_of(now),
                user_id=self.user_id,
                boundary=self.boundary,
                completed_at=now,
            )

        return self._run("toggle habit", operation)


__all__ = ["ActionResult", "HabitTracker"]
