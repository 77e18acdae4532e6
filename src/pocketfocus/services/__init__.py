"""Service module exports."""

from . import (
    calendar_days,
    habits,
    pomodoro,
    pomodoro_settings,
    quotes,
    streak_cache,
    users,
)

__all__ = [
    "calendar_days",
    "habits",
    "pomodoro",
    "pomodoro_settings",
    "quotes",
    "streak_cache",
    "users",
]
