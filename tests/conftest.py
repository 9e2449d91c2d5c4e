"""Pytest configuration and shared fixtures for HabitStreak tests.

Provides an isolated SQLite database per test, a session factory matching the
repository contract, and factories for habits and completions.
"""

from __future__ import annotations

import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine

# Import all models to ensure they're registered with SQLModel metadata
from habitstreak.infra.events import ChangeFeed
from habitstreak.infra.repositories import SQLModelHabitRepository
from habitstreak.models import Habit, HabitCompletion

TEST_USER_ID = "user-tester"
OTHER_USER_ID = "user-other"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for a single test."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory for repositories that expect Callable[[], Session]."""

    def factory():
        return Session(db_engine, expire_on_commit=False)

    return factory


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def repo(session_factory, feed):
    return SQLModelHabitRepository(session_factory, feed)


@pytest.fixture
def user_id() -> str:
    return TEST_USER_ID


@pytest.fixture
def now() -> datetime:
    """A fixed mid-day reference time so day arithmetic is deterministic."""
    return datetime(2025, 3, 15, 12, 0, 0)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def habit_factory(db_session):
    """Factory for creating persisted test habits."""

    def _create_habit(
        title: str = "Test Habit",
        description: str = "Test habit description",
        frequency: str = "daily",
        streak_count: int = 0,
        last_completed: datetime | None = None,
        user_id: str = TEST_USER_ID,
        created_at: datetime | None = None,
    ) -> Habit:
        habit = Habit(
            user_id=user_id,
            title=title,
            description=description,
            frequency=frequency,
            streak_count=streak_count,
            last_completed=last_completed,
        )
        if created_at is not None:
            habit.created_at = created_at
        db_session.add(habit)
        db_session.commit()
        db_session.refresh(habit)
        return habit

    return _create_habit


@pytest.fixture
def completion_factory(db_session):
    """Factory for creating persisted completions a number of days before ``at``."""

    def _create_completion(
        habit: Habit,
        at: datetime,
        days_ago: int = 0,
        user_id: str | None = None,
    ) -> HabitCompletion:
        completion = HabitCompletion(
            habit_id=habit.id,
            user_id=user_id or habit.user_id,
            completed_at=at - timedelta(days=days_ago),
        )
        db_session.add(completion)
        db_session.commit()
        db_session.refresh(completion)
        return completion

    return _create_completion
