"""Pytest configuration and shared fixtures for MicroHabits tests.

This module provides database fixtures, test data factories and a Flask test
client, so domain logic, repositories and routes can be exercised without
touching a real data directory.
"""

from __future__ import annotations

import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlmodel import SQLModel, create_engine

from microhabits import create_app
from microhabits.config import TestConfig
from microhabits.extensions import EXTENSION_KEY
from microhabits.infra.database import create_session_factory
from microhabits.infra.repositories import SQLModelHabitRepository
from microhabits.models import Habit, HabitCompletion, TargetFrequency, User
from microhabits.services.days import as_utc

# Fixed instant used wherever a test needs "now".
NOW = datetime(2024, 6, 15, 14, 0, tzinfo=timezone.utc)


class FrozenTime:
    """Stands in for ``time.time`` so expiring counters can be stepped forward."""

    def __init__(self, start: float):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def frozen_time(monkeypatch) -> FrozenTime:
    """Freeze wall-clock time at ``NOW`` for code that reads ``time.time()``."""

    clock = FrozenTime(NOW.timestamp())
    monkeypatch.setattr(time, "time", clock)
    return clock


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine with every table created
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory with the same commit/rollback semantics as the app."""

    return create_session_factory(db_engine)


@pytest.fixture
def repo(session_factory) -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user_factory(session_factory):
    """Factory for persisted users."""

    def _create_user(email: str = "owner@example.com", tz: str = "UTC") -> User:
        with session_factory() as session:
            row = User(email=email, password_hash="dummy-hash", timezone=tz)
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            return row

    return _create_user


@pytest.fixture
def user(user_factory) -> User:
    """Default owner for scoping habits."""

    return user_factory()


@pytest.fixture
def habit_factory(session_factory, user):
    """Factory for persisted habits.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        name: str = "Drink water",
        target_frequency: TargetFrequency = TargetFrequency.DAILY,
        description: str | None = None,
        owner: User | None = None,
        created_at: datetime | None = None,
    ) -> Habit:
        owner = owner or user
        with session_factory() as session:
            habit = Habit(
                user_id=owner.id,
                name=name,
                description=description,
                target_frequency=target_frequency,
            )
            if created_at is not None:
                habit.created_at = as_utc(created_at)
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    return _create_habit


@pytest.fixture
def completion_factory(session_factory):
    """Factory for persisted completions; naive instants are taken as UTC."""

    def _create_completion(habit: Habit, completed_at: datetime) -> HabitCompletion:
        with session_factory() as session:
            row = HabitCompletion(habit_id=habit.id, completed_at=as_utc(completed_at))
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            return row

    return _create_completion


# =============================================================================
# Flask Fixtures
# =============================================================================


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Application wired to a throwaway data directory and a frozen clock."""

    monkeypatch.delenv("MICROHABITS_DATABASE_URL", raising=False)
    monkeypatch.setenv("MICROHABITS_DEV_MODE", "true")
    application = create_app(config=TestConfig(data_dir=tmp_path))
    application.extensions[EXTENSION_KEY].clock = lambda: NOW
    yield application
    application.extensions[EXTENSION_KEY].engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def signed_in_client(client):
    """Client with a freshly registered account already signed in."""

    response = client.post(
        "/auth/signup",
        json={"email": "owner@example.com", "password": "Secret123"},
    )
    assert response.status_code == 201
    return client
