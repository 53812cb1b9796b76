"""Exception hierarchy shared by services, repositories and routes."""

from __future__ import annotations


class MicroHabitsError(Exception):
    """Base class for application errors."""


class StoreError(MicroHabitsError):
    """The habit store could not complete a read or write."""


class HabitNotFoundError(StoreError):
    """The habit does not exist or belongs to another owner."""

    def __init__(self, habit_id: int) -> None:
        super().__init__(f"Habit {habit_id} not found")
        self.habit_id = habit_id


class InvalidInputError(MicroHabitsError, ValueError):
    """Input rejected at the boundary before reaching the store or engine."""

    def __init__(self, message: str, fields: dict[str, list[str]] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or {}


class AuthError(MicroHabitsError):
    """Authentication failure carrying an HTTP-style status code."""

    def __init__(self, message: str, status: int = 401) -> None:
        super().__init__(message)
        self.status = status


class RateLimitedError(AuthError):
    """Too many attempts for one key within the lockout window."""

    def __init__(self, message: str, wait_seconds: int) -> None:
        super().__init__(message, status=429)
        self.wait_seconds = wait_seconds


__all__ = [
    "AuthError",
    "HabitNotFoundError",
    "InvalidInputError",
    "MicroHabitsError",
    "RateLimitedError",
    "StoreError",
]
