"""SQLModel table exports and timer value objects."""

from .habit import Habit, HabitEntry
from .pomodoro import TimerMode, TimerPhase, TimerSession, TimerSettings, TimerSnapshot
from .settings import AppSetting
from .task import TaskPriority, TodoTask
from .user import User

__all__ = [
    "AppSetting",
    "Habit",
    "HabitEntry",
    "TaskPriority",
    "TimerMode",
    "TimerPhase",
    "TimerSession",
    "TimerSettings",
    "TimerSnapshot",
    "TodoTask",
    "User",
]
