"""Task repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ...models.task import TaskPriority, TodoTask


class TaskRepository(Protocol):
    """Record store for to-do tasks, scoped by owner."""

    def get_by_id(self, task_id: int, *, user_id: int) -> Optional[TodoTask]:
        ...

    def create(self, task: TodoTask, *, user_id: int) -> TodoTask:
        ...

    def update(self, task: TodoTask, *, user_id: int) -> TodoTask:
        ...

    def delete(self, task_id: int, *, user_id: int) -> None:
        ...

    def toggle_completion(self, task_id: int, *, user_id: int) -> TodoTask:
        ...

    def filter(
        self,
        *,
        user_id: int,
        is_completed: bool | None = None,
        search: str | None = None,
        priority: TaskPriority | None = None,
        tag: str | None = None,
    ) -> list[TodoTask]:
        """Open tasks first, then by due date, priority (high first), recency."""
        ...

    def count(self, *, user_id: int, is_completed: bool | None = None) -> int:
        ...

    def all_tags(self, *, user_id: int) -> list[str]:
        ...

    def due_between(self, start: date, end: date, *, user_id: int) -> list[TodoTask]:
        """Open tasks due on days in ``[start, end]``."""
        ...

    def overdue(self, today: date, *, user_id: int) -> list[TodoTask]:
        """Open tasks due before ``today``."""
        ...
