"""SQLModel implementation of the habit store."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Iterator, Mapping, Optional, Sequence

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from ...errors import HabitNotFoundError, InvalidInputError, StoreError
from ...logging_config import get_logger
from ...models.habit import DEFAULT_REMINDER_TIME, Habit, HabitCompletion, TargetFrequency, utcnow
from ...services.days import DayBoundary, as_utc
from ..database import SessionFactory

logger = get_logger("store")

_EDITABLE_FIELDS = {
    "name",
    "description",
    "target_frequency",
    "color",
    "reminder_enabled",
    "reminder_time",
}


def _to_db(value: datetime) -> datetime:
    """Instants are written as aware UTC; naive input is taken as UTC."""

    return as_utc(value)


def _habit_out(habit: Habit) -> Habit:
    habit.created_at = as_utc(habit.created_at)
    habit.updated_at = as_utc(habit.updated_at)
    habit.target_frequency = TargetFrequency(habit.target_frequency)
    return habit


def _completion_out(completion: HabitCompletion) -> HabitCompletion:
    completion.completed_at = as_utc(completion.completed_at)
    completion.created_at = as_utc(completion.created_at)
    return completion


class SQLModelHabitRepository:
    """SQLModel-based habit store.

    Every public method runs in its own session; database failures surface as
    :class:`StoreError` and habits owned by someone else behave as missing.
    """

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        try:
            with self.session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("Habit store failed to %s", action, exc_info=True, extra={"action": action})
            raise StoreError(f"Failed to {action}") from exc

    @staticmethod
    def _owned(session: Session, habit_id: int, user_id: int) -> Habit:
        habit = session.exec(
            select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
        ).first()
        if habit is None:
            raise HabitNotFoundError(habit_id)
        return habit

    def list_habits(self, *, user_id: int) -> list[Habit]:
        """List the owner's habits, newest first."""
        with self._session("list habits") as session:
            statement = (
                select(Habit)
                .where(Habit.user_id == user_id)
                .order_by(col(Habit.created_at).desc(), col(Habit.id).desc())
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return [_habit_out(row) for row in rows]

    def list_completions(self, habit_ids: Sequence[int]) -> list[HabitCompletion]:
        """Fetch completions for all given habits, newest first."""
        ids = [habit_id for habit_id in habit_ids if habit_id is not None]
        if not ids:
            return []
        with self._session("list completions") as session:
            statement = (
                select(HabitCompletion)
                .where(col(HabitCompletion.habit_id).in_(ids))
                .order_by(col(HabitCompletion.completed_at).desc())
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return [_completion_out(row) for row in rows]

    def get_habit(self, habit_id: int, *, user_id: int) -> Habit:
        with self._session("load habit") as session:
            habit = self._owned(session, habit_id, user_id)
            session.expunge(habit)
            return _habit_out(habit)

    def create_habit(self, habit: Habit, *, user_id: int) -> Habit:
        with self._session("create habit") as session:
            now = _to_db(utcnow())
            habit.user_id = user_id
            habit.created_at = now
            habit.updated_at = now
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
        logger.info("Habit created", extra={"habit_id": habit.id, "user_id": user_id})
        return _habit_out(habit)

    def update_habit(self, habit_id: int, patch: Mapping[str, Any], *, user_id: int) -> Habit:
        unknown = set(patch) - _EDITABLE_FIELDS
        if unknown:
            raise InvalidInputError(
                f"Cannot update fields: {', '.join(sorted(unknown))}",
                {name: ["Field is not editable"] for name in sorted(unknown)},
            )
        with self._session("update habit") as session:
            habit = self._owned(session, habit_id, user_id)
            for name, value in patch.items():
                setattr(habit, name, value)
            habit.updated_at = _to_db(utcnow())
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
        logger.info(
            "Habit updated",
            extra={"habit_id": habit_id, "user_id": user_id, "fields": sorted(patch)},
        )
        return _habit_out(habit)

    def update_reminder(
        self, habit_id: int, *, enabled: bool, time: Optional[str] = None, user_id: int
    ) -> Habit:
        return self.update_habit(
            habit_id,
            {"reminder_enabled": enabled, "reminder_time": time or DEFAULT_REMINDER_TIME},
            user_id=user_id,
        )

    def delete_habit(self, habit_id: int, *, user_id: int) -> None:
        """Delete a habit and, first, all of its completions."""
        with self._session("delete habit") as session:
            habit = self._owned(session, habit_id, user_id)
            session.execute(delete(HabitCompletion).where(col(HabitCompletion.habit_id) == habit_id))
            session.delete(habit)
            session.commit()
        logger.info("Habit deleted", extra={"habit_id": habit_id, "user_id": user_id})

    def toggle_completion(
        self,
        habit_id: int,
        day: date,
        *,
        user_id: int,
        boundary: DayBoundary,
        completed_at: Optional[datetime] = None,
    ) -> bool:
        """Insert a completion for ``day`` or remove every completion on it."""
        start, end = boundary.utc_range(day)
        with self._session("toggle completion") as session:
            self._owned(session, habit_id, user_id)
            existing = list(
                session.exec(
                    select(HabitCompletion)
                    .where(HabitCompletion.habit_id == habit_id)
                    .where(col(HabitCompletion.completed_at) >= _to_db(start))
                    .where(col(HabitCompletion.completed_at) < _to_db(end))
                ).all()
            )
            if existing:
                for completion in existing:
                    session.delete(completion)
                completed = False
            else:
                moment = completed_at or boundary.noon_of(day)
                session.add(
                    HabitCompletion(
                        habit_id=habit_id,
                        completed_at=_to_db(moment),
                        created_at=_to_db(utcnow()),
                    )
                )
                completed = True
            session.commit()
        logger.info(
            "Habit completion toggled",
            extra={
                "habit_id": habit_id,
                "user_id": user_id,
                "day": day.isoformat(),
                "completed": completed,
            },
        )
        return completed
