"""Repository protocol definitions for domain layer."""

from .habit import HabitRepository
from .settings import SettingsRepository
from .task import TaskRepository

__all__ = [
    "HabitRepository",
    "SettingsRepository",
    "TaskRepository",
]
