"""Application context for dependency injection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from sqlmodel import Session

from .config import BaseConfig
from .infra.audio import Metronome, TerminalBellMetronome
from .infra.countdown import APSchedulerCountdown
from .infra.database import bootstrap_database
from .infra.notifications import APSchedulerNotificationScheduler
from .infra.repositories import (
    SQLModelHabitRepository,
    SQLModelSettingsRepository,
    SQLModelTaskRepository,
)
from .models.user import User
from .scheduler import BackgroundScheduler, create_scheduler
from .services.habits import StreakEngine
from .services.pomodoro import PomodoroTimer
from .services.pomodoro_settings import PomodoroSettingsManager
from .services.quotes import QuoteReminderService
from .services.streak_cache import StreakCache
from .services.users import ensure_local_user

logger = logging.getLogger("pocketfocus.context")


@dataclass
class AppContext:
    """Centralized application context with services and state."""

    # Configuration
    config: BaseConfig

    # Session factory
    session_factory: Callable[[], Session]

    # Repositories
    habit_repo: SQLModelHabitRepository
    task_repo: SQLModelTaskRepository
    settings_repo: SQLModelSettingsRepository

    # Services
    scheduler: BackgroundScheduler
    notifier: APSchedulerNotificationScheduler
    streak_cache: StreakCache
    habits: StreakEngine
    pomodoro_settings: PomodoroSettingsManager
    timer: PomodoroTimer
    quotes: QuoteReminderService

    current_user: Optional[User] = None
    engine: Optional[object] = None

    def require_user_id(self) -> int:
        """Return the current user id or raise if not set."""

        if self.current_user is None or self.current_user.id is None:
            raise RuntimeError("No local user is set")
        return self.current_user.id

    def close(self) -> None:
        """Stop background work and release the database engine."""

        self.timer.shutdown()
        self.habits.shutdown()
        self.scheduler.stop()
        if self.engine is not None:
            self.engine.dispose()


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    start_scheduler: bool = True,
    metronome: Optional[Metronome] = None,
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine, session_factory = bootstrap_database(config)

    user = ensure_local_user(session_factory, config.USERNAME)
    user_id = user.id

    habit_repo = SQLModelHabitRepository(session_factory)
    task_repo = SQLModelTaskRepository(session_factory)
    settings_repo = SQLModelSettingsRepository(session_factory, user_id=user_id)

    scheduler = create_scheduler(auto_start=start_scheduler)
    notifier = APSchedulerNotificationScheduler(scheduler)

    streak_cache = StreakCache(freshness_seconds=config.STREAK_CACHE_TTL)
    habits = StreakEngine(habit_repo, streak_cache, user_id=user_id)

    pomodoro_settings = PomodoroSettingsManager(settings_repo)
    timer = PomodoroTimer(
        pomodoro_settings,
        notifier,
        APSchedulerCountdown(scheduler),
        metronome or TerminalBellMetronome(scheduler),
    )
    quotes = QuoteReminderService(
        notifier,
        settings_repo,
        count=config.QUOTE_REMINDER_COUNT,
        interval_hours=config.QUOTE_REMINDER_HOURS,
    )

    logger.debug("Application context ready", extra={"user_id": user_id})
    return AppContext(
        config=config,
        session_factory=session_factory,
        habit_repo=habit_repo,
        task_repo=task_repo,
        settings_repo=settings_repo,
        scheduler=scheduler,
        notifier=notifier,
        streak_cache=streak_cache,
        habits=habits,
        pomodoro_settings=pomodoro_settings,
        timer=timer,
        quotes=quotes,
        current_user=user,
        engine=engine,
    )
