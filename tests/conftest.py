"""Pytest configuration and shared fixtures for PocketFocus tests.

This module provides database fixtures, data factories and fakes for the timer
collaborators (clock, notification scheduler, countdown, metronome, settings
store) so domain logic can be tested without threads or wall-clock waits.
"""

from __future__ import annotations

import logging
import tempfile
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine, select

# Import all models to ensure they're registered with SQLModel metadata
from pocketfocus.models import Habit, HabitEntry, User
from pocketfocus.infra.repositories import SQLModelHabitRepository, SQLModelTaskRepository
from pocketfocus.logging_config import ROOT_LOGGER_NAME
from pocketfocus.services.habits import StreakEngine
from pocketfocus.services.pomodoro import PomodoroTimer
from pocketfocus.services.pomodoro_settings import PomodoroSettingsManager
from pocketfocus.services.streak_cache import StreakCache

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

    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the Callable[[], Session] repositories expect.

    A default user is bootstrapped and exposed as ``factory.user``.
    """

    def factory():
        return Session(db_engine, expire_on_commit=False)

    with factory() as session:
        existing = session.exec(select(User).where(User.username == "tester")).first()
        if existing is None:
            existing = User(username="tester")
            session.add(existing)
            session.commit()
            session.refresh(existing)
        session.expunge(existing)
        factory.user = existing  # type: ignore[attr-defined]

    return factory


@pytest.fixture
def user(session_factory) -> User:
    """The default user records are scoped to."""

    return session_factory.user


@pytest.fixture
def other_user(session_factory) -> User:
    with session_factory() as session:
        intruder = User(username="someone-else")
        session.add(intruder)
        session.commit()
        session.refresh(intruder)
        session.expunge(intruder)
        return intruder


@pytest.fixture
def habit_repo(session_factory) -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


@pytest.fixture
def task_repo(session_factory) -> SQLModelTaskRepository:
    return SQLModelTaskRepository(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def habit_factory(session_factory, user):
    """Factory for creating habits with completion entries on given days.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        title: str = "Exercise",
        days: tuple[date, ...] | list[date] = (),
        owner: User | None = None,
    ) -> Habit:
        owner = owner or user
        with session_factory() as session:
            habit = Habit(user_id=owner.id, title=title)
            session.add(habit)
            session.commit()
            session.refresh(habit)
            for day in days:
                session.add(
                    HabitEntry(
                        habit_id=habit.id,
                        user_id=owner.id,
                        day=day,
                        completed_at=datetime.combine(day, datetime.min.time(), tzinfo=timezone.utc),
                    )
                )
            session.commit()
            session.expunge(habit)
            return habit

    return _create_habit


# =============================================================================
# Fakes
# =============================================================================


class FakeMonotonic:
    """Monotonic seconds counter advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class FakeClock:
    """Wall clock returning an aware datetime advanced by hand."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 5, 12, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingNotifier:
    """Notification scheduler that keeps requests in memory."""

    def __init__(self) -> None:
        self.pending: dict[str, tuple[str, str, datetime | timedelta]] = {}
        self.history: list[tuple[str, str, str, datetime | timedelta]] = []
        self.cancelled: list[str] = []
        self.fail = False

    def schedule(self, identifier, title, body, fire_at):
        if self.fail:
            raise RuntimeError("notifications unavailable")
        self.pending[identifier] = (title, body, fire_at)
        self.history.append((identifier, title, body, fire_at))

    def cancel(self, identifiers):
        if self.fail:
            raise RuntimeError("notifications unavailable")
        for identifier in identifiers:
            self.cancelled.append(identifier)
            self.pending.pop(identifier, None)

    def titles(self) -> list[str]:
        return [title for _, title, _, _ in self.history]


class ManualCountdown:
    """Countdown whose callback only runs when the test fires it."""

    def __init__(self) -> None:
        self.callback = None
        self.interval = None
        self.starts = 0
        self.stale: list = []

    @property
    def active(self) -> bool:
        return self.callback is not None

    def start(self, callback, interval=1.0):
        if self.callback is not None:
            self.stale.append(self.callback)
        self.callback = callback
        self.interval = interval
        self.starts += 1

    def stop(self):
        if self.callback is not None:
            self.stale.append(self.callback)
        self.callback = None

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.callback is None:
                return
            self.callback()


class FakeMetronome:
    def __init__(self) -> None:
        self.playing = False
        self.starts = 0

    def start(self):
        self.playing = True
        self.starts += 1

    def stop(self):
        self.playing = False


class InMemorySettingsStore:
    """Settings store backed by a dict; can simulate storage failures."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values = dict(values or {})
        self.fail_reads = False
        self.fail_writes = False
        self.writes = 0

    def get_value(self, key):
        if self.fail_reads:
            raise SQLAlchemyError("database is locked")
        return self.values.get(key)

    def set_value(self, key, value, description=None):
        if self.fail_writes:
            raise SQLAlchemyError("disk I/O error")
        self.values[key] = value
        self.writes += 1

    def delete(self, key):
        self.values.pop(key, None)


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def countdown() -> ManualCountdown:
    return ManualCountdown()


@pytest.fixture
def metronome() -> FakeMetronome:
    return FakeMetronome()


@pytest.fixture
def settings_store() -> InMemorySettingsStore:
    return InMemorySettingsStore()


@pytest.fixture
def settings_manager(settings_store) -> PomodoroSettingsManager:
    return PomodoroSettingsManager(settings_store)


@pytest.fixture
def pomodoro(settings_manager, notifier, countdown, metronome, clock):
    timer = PomodoroTimer(settings_manager, notifier, countdown, metronome, clock=clock)
    yield timer
    timer.shutdown()


@pytest.fixture
def streak_cache(monotonic) -> StreakCache:
    return StreakCache(freshness_seconds=3.0, clock=monotonic)


@pytest.fixture
def streak_engine(habit_repo, streak_cache, user):
    engine = StreakEngine(habit_repo, streak_cache, user_id=user.id)
    yield engine
    engine.shutdown()


@pytest.fixture(autouse=True)
def _reset_app_logger():
    """Drop handlers installed by setup_logging so streams never outlive a test."""

    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
