"""To-do task model."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import IntEnum
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class TaskPriority(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2

    @property
    def label(self) -> str:
        return self.name.capitalize()


class TodoTask(SQLModel, table=True):
    """A single to-do item owned by a user."""

    __tablename__: ClassVar[str] = "todo_task"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    title: str = Field(nullable=False, max_length=200)
    description: str = Field(default="", max_length=2000)
    due_date: Optional[date] = Field(default=None, index=True)
    is_completed: bool = Field(default=False, nullable=False, index=True)
    priority: int = Field(default=int(TaskPriority.MEDIUM), nullable=False)
    tags: str = Field(default="", max_length=500)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), nullable=False
    )
    last_modified: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), nullable=False
    )

    @property
    def tag_list(self) -> list[str]:
        """Tags as a list; stored comma-separated."""
        return [tag for tag in self.tags.split(",") if tag]


def join_tags(values: list[str] | tuple[str, ...]) -> str:
    """Serialize tags into the comma-separated column format."""

    return ",".join(tag.strip() for tag in values if tag.strip())
