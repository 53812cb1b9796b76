"""Service module exports."""

from . import (
    auth,
    days,
    gamification,
    habits,
    insights,
    rate_limit,
    tracker,
    validation,
)

__all__ = [
    "auth",
    "days",
    "gamification",
    "habits",
    "insights",
    "rate_limit",
    "tracker",
    "validation",
]
