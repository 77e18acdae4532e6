"""SQLModel implementation of the task record store."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable, Optional

from sqlalchemy import func, or_
from sqlmodel import Session, col, select

from ...domain.errors import TaskNotFoundError
from ...models.task import TaskPriority, TodoTask


class SQLModelTaskRepository:
    """SQLModel-based task repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    @staticmethod
    def _owned(session: Session, task_id: int, user_id: int) -> TodoTask:
        task = session.exec(
            select(TodoTask).where(TodoTask.id == task_id, TodoTask.user_id == user_id)
        ).first()
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    @staticmethod
    def _ordered(statement):
        return statement.order_by(
            col(TodoTask.is_completed),
            col(TodoTask.due_date).is_(None),
            col(TodoTask.due_date),
            col(TodoTask.priority).desc(),
            col(TodoTask.last_modified).desc(),
        )

    def get_by_id(self, task_id: int, *, user_id: int) -> Optional[TodoTask]:
        with self.session_factory() as session:
            obj = session.exec(
                select(TodoTask).where(TodoTask.id == task_id, TodoTask.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def create(self, task: TodoTask, *, user_id: int) -> TodoTask:
        with self.session_factory() as session:
            task.user_id = user_id
            now = datetime.now(timezone.utc)
            task.created_at = now
            task.last_modified = now
            session.add(task)
            session.commit()
            session.refresh(task)
            session.expunge(task)
            return task

    def update(self, task: TodoTask, *, user_id: int) -> TodoTask:
        if task.id is None:
            raise TaskNotFoundError(-1)
        with self.session_factory() as session:
            stored = self._owned(session, task.id, user_id)
            stored.title = task.title
            stored.description = task.description
            stored.due_date = task.due_date
            stored.is_completed = task.is_completed
            stored.priority = task.priority
            stored.tags = task.tags
            stored.last_modified = datetime.now(timezone.utc)
            session.add(stored)
            session.commit()
            session.refresh(stored)
            session.expunge(stored)
            return stored

    def delete(self, task_id: int, *, user_id: int) -> None:
        with self.session_factory() as session:
            task = session.exec(
                select(TodoTask).where(TodoTask.id == task_id, TodoTask.user_id == user_id)
            ).first()
            if task:
                session.delete(task)
                session.commit()

    def toggle_completion(self, task_id: int, *, user_id: int) -> TodoTask:
        with self.session_factory() as session:
            task = self._owned(session, task_id, user_id)
            task.is_completed = not task.is_completed
            task.last_modified = datetime.now(timezone.utc)
            session.add(task)
            session.commit()
            session.refresh(task)
            session.expunge(task)
            return task

    def filter(
        self,
        *,
        user_id: int,
        is_completed: bool | None = None,
        search: str | None = None,
        priority: TaskPriority | None = None,
        tag: str | None = None,
    ) -> list[TodoTask]:
        """Return tasks matching every given filter."""
        with self.session_factory() as session:
            statement = select(TodoTask).where(TodoTask.user_id == user_id)
            if is_completed is not None:
                statement = statement.where(TodoTask.is_completed == is_completed)
            if search:
                pattern = f"%{search}%"
                statement = statement.where(
                    or_(
                        col(TodoTask.title).ilike(pattern),
                        col(TodoTask.description).ilike(pattern),
                        col(TodoTask.tags).ilike(pattern),
                    )
                )
            if priority is not None:
                statement = statement.where(TodoTask.priority == int(priority))
            if tag:
                statement = statement.where(col(TodoTask.tags).ilike(f"%{tag}%"))
            rows = list(session.exec(self._ordered(statement)).all())
            session.expunge_all()
            return rows

    def count(self, *, user_id: int, is_completed: bool | None = None) -> int:
        with self.session_factory() as session:
            statement = select(func.count()).select_from(TodoTask).where(TodoTask.user_id == user_id)
            if is_completed is not None:
                statement = statement.where(TodoTask.is_completed == is_completed)
            return int(session.exec(statement).one())

    def all_tags(self, *, user_id: int) -> list[str]:
        with self.session_factory() as session:
            rows = session.exec(select(TodoTask.tags).where(TodoTask.user_id == user_id)).all()
        tags = {tag for raw in rows for tag in (raw or "").split(",") if tag}
        return sorted(tags)

    def due_between(self, start: date, end: date, *, user_id: int) -> list[TodoTask]:
        """Open tasks due on a day in [start, end]."""
        with self.session_factory() as session:
            statement = (
                select(TodoTask)
                .where(TodoTask.user_id == user_id)
                .where(TodoTask.is_completed == False)  # noqa: E712
                .where(col(TodoTask.due_date) >= start)
                .where(col(TodoTask.due_date) <= end)
            )
            rows = list(session.exec(self._ordered(statement)).all())
            session.expunge_all()
            return rows

    def overdue(self, today: date, *, user_id: int) -> list[TodoTask]:
        with self.session_factory() as session:
            statement = (
                select(TodoTask)
                .where(TodoTask.user_id == user_id)
                .where(TodoTask.is_completed == False)  # noqa: E712
                .where(col(TodoTask.due_date) < today)
            )
            rows = list(session.exec(self._ordered(statement)).all())
            session.expunge_all()
            return rows


__all__ = ["SQLModelTaskRepository"]
