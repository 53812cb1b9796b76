"""Database, rate limiter and session wiring for the Flask app."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from functools import wraps
from typing import Callable, Optional, TypeVar

from flask import Flask, current_app, g, jsonify, session
from sqlalchemy.engine import Engine

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import SQLModelHabitRepository
from .models.user import User
from .services import auth
from .services.days import Clock, DayBoundary, system_clock
from .services.rate_limit import RateLimiter
from .services.tracker import HabitTracker

EXTENSION_KEY = "microhabits"

F = TypeVar("F", bound=Callable)


@dataclass
class AppServices:
    """Long-lived collaborators shared by every request."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory
    habit_repo: SQLModelHabitRepository
    limiter: RateLimiter
    clock: Clock = field(default=system_clock)


def init_db(app: Flask) -> AppServices:
    """Create the engine, schema, repository and rate limiter for ``app``."""

    config: BaseConfig = app.config["MICROHABITS_CONFIG"]
    engine, session_factory = bootstrap_database(config)
    limiter = RateLimiter(
        max_attempts=config.AUTH_MAX_ATTEMPTS,
        lockout=timedelta(seconds=config.AUTH_LOCKOUT_SECONDS),
        storage_uri=config.RATE_LIMIT_STORAGE_URI,
    )
    services = AppServices(
        config=config,
        engine=engine,
        session_factory=session_factory,
        habit_repo=SQLModelHabitRepository(session_factory),
        limiter=limiter,
    )
    app.extensions[EXTENSION_KEY] = services

    @app.teardown_appcontext
    def _forget_user(exception: Exception | None) -> None:  # pragma: no cover
        g.pop("current_user", None)

    return services


def get_services() -> AppServices:
    """Return the collaborators registered on the current app."""

    try:
        return current_app.extensions[EXTENSION_KEY]
    except KeyError as exc:  # pragma: no cover - exercised only on misconfiguration
        raise RuntimeError("Database engine not initialized") from exc


def current_user() -> Optional[User]:
    """Return the signed-in user for this request, if any."""

    if "current_user" not in g:
        user_id = session.get("user_id")
        user = None
        if user_id is not None:
            user = auth.get_user(user_id, session_factory=get_services().session_factory)
            if user is None:
                session.pop("user_id", None)
        g.current_user = user
    return g.current_user


def login_required(view: F) -> F:
    """Reject the request with 401 unless a user is signed in."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_user() is None:
            return jsonify({"error": "Authentication required"}), 401
        return view(*args, **kwargs)

    return wrapped  # type: ignore[return-value]


def tracker_for(user: User) -> HabitTracker:
    """Build a tracker bound to ``user``'s timezone and the app clock."""

    services = get_services()
    return HabitTracker(
        services.habit_repo,
        user_id=user.id,
        boundary=DayBoundary.for_timezone(user.timezone),
        clock=services.clock,
    )
