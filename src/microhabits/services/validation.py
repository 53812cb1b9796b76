"""Input forms validated before anything reaches the store or the engine."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import InvalidInputError
from ..models.habit import DEFAULT_HABIT_COLOR, DEFAULT_REMINDER_TIME, TargetFrequency

COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

FormT = TypeVar("FormT", bound=BaseModel)


class HabitForm(BaseModel):
    """Payload for creating a habit."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(min_length=1, max_length=100, description="Short label for the habit")
    description: Optional[str] = Field(default=None, max_length=500)
    target_frequency: TargetFrequency = Field(default=TargetFrequency.DAILY)
    color: str = Field(default=DEFAULT_HABIT_COLOR, pattern=COLOR_PATTERN)

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class HabitPatch(BaseModel):
    """Partial update for a habit; only fields present in the payload change."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    target_frequency: Optional[TargetFrequency] = None
    color: Optional[str] = Field(default=None, pattern=COLOR_PATTERN)

    @field_validator("name", "target_frequency", "color")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("This field cannot be cleared.")
        return value

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller actually sent."""

        return self.model_dump(exclude_unset=True)


class ReminderForm(BaseModel):
    """Reminder preference update."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    enabled: bool
    time: str = Field(default=DEFAULT_REMINDER_TIME, pattern=TIME_PATTERN)

    @field_validator("time", mode="before")
    @classmethod
    def default_time(cls, value: Any) -> Any:
        return value or DEFAULT_REMINDER_TIME


class AuthForm(BaseModel):
    """Email and password submitted to sign up or sign in."""

    model_config = ConfigDict(extra="ignore")

    email: str = Field(max_length=254)
    password: str = Field(min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not re.match(EMAIL_PATTERN, value):
            raise ValueError("Please enter a valid email address")
        return value

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if not (
            any(ch.islower() for ch in value)
            and any(ch.isupper() for ch in value)
            and any(ch.isdigit() for ch in value)
        ):
            raise ValueError(
                "Password must contain at least one uppercase letter, "
                "one lowercase letter, and one number"
            )
        return value


def validation_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Flatten a pydantic error into ``{field: [messages]}``."""

    structured: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        loc = error.get("loc", ())
        key = str(loc[0]) if loc else "__root__"
        structured.setdefault(key, []).append(error.get("msg", "Invalid value"))
    return structured


def validate(form_cls: type[FormT], payload: Mapping[str, Any] | None) -> FormT:
    """Validate ``payload`` against ``form_cls`` or raise :class:`InvalidInputError`."""

    try:
        return form_cls.model_validate(dict(payload or {}))
    except ValidationError as exc:
        fields = validation_errors(exc)
        first_field, messages = next(iter(fields.items()))
        raise InvalidInputError(f"{first_field}: {messages[0]}", fields) from exc


__all__ = [
    "AuthForm",
    "HabitForm",
    "HabitPatch",
    "ReminderForm",
    "validate",
    "validation_errors",
]
