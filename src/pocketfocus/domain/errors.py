"""Domain-level exceptions."""

from __future__ import annotations


class HabitNotFoundError(LookupError):
    """Raised when a habit id does not exist for the current owner."""

    def __init__(self, habit_id: int) -> None:
        super().__init__(f"Habit {habit_id} not found")
        self.habit_id = habit_id


class TaskNotFoundError(LookupError):
    """Raised when a task id does not exist for the current owner."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id
