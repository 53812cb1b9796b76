"""Habit store protocol."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Mapping, Optional, Protocol, Sequence

from ...models.habit import Habit, HabitCompletion

if TYPE_CHECKING:  # pragma: no cover
    from ...services.days import DayBoundary


class HabitRepository(Protocol):
    """Read/write contract for habits and their completions.

    Statistics are never stored here; callers read habits and completions and
    hand them to ``services.habits.compute_all``.
    """

    def list_habits(self, *, user_id: int) -> list[Habit]:
        """List the owner's habits, newest first."""
        ...

    def list_completions(self, habit_ids: Sequence[int]) -> list[HabitCompletion]:
        """Fetch completions for all given habits in one consistent read."""
        ...

    def get_habit(self, habit_id: int, *, user_id: int) -> Habit:
        """Return one habit or raise ``HabitNotFoundError``."""
        ...

    def create_habit(self, habit: Habit, *, user_id: int) -> Habit:
        ...

    def update_habit(self, habit_id: int, patch: Mapping[str, Any], *, user_id: int) -> Habit:
        """Apply the changed fields and bump ``updated_at``."""
        ...

    def update_reminder(
        self, habit_id: int, *, enabled: bool, time: Optional[str] = None, user_id: int
    ) -> Habit:
        ...

    def delete_habit(self, habit_id: int, *, user_id: int) -> None:
        """Delete a habit together with all of its completions."""
        ...

    def toggle_completion(
        self,
        habit_id: int,
        day: date,
        *,
        user_id: int,
        boundary: DayBoundary,
        completed_at: Optional[datetime] = None,
    ) -> bool:
        """Insert a completion for ``day`` or remove the existing ones.

        Returns True when the habit is completed for ``day`` afterwards.
        """
        ...
