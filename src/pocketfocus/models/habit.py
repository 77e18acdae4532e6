"""Habit tracking data structures."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Habit(SQLModel, table=True):
    """A user-defined recurring activity tracked by daily completion."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    title: str = Field(nullable=False, max_length=80, index=True)
    description: str = Field(default="", max_length=255)
    icon_name: str = Field(default="star.fill", max_length=64)
    color_hex: str = Field(default="#4CAF50", max_length=9)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    last_modified: datetime = Field(default_factory=_utcnow, nullable=False)

    entries: list["HabitEntry"] = Relationship(
        back_populates="habit",
        sa_relationship=relationship(
            "HabitEntry", back_populates="habit", cascade="all, delete-orphan"
        ),
    )


class HabitEntry(SQLModel, table=True):
    """Completion record for a habit on one local calendar day."""

    __tablename__: ClassVar[str] = "habit_entry"
    __table_args__ = (UniqueConstraint("habit_id", "day", name="uq_habit_entry_day"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    completed_at: datetime = Field(default_factory=_utcnow, nullable=False)
    # Local calendar day of completed_at; the only semantically meaningful part.
    day: date = Field(nullable=False, index=True)
    notes: Optional[str] = Field(default=None, max_length=500)

    habit: Optional[Habit] = Relationship(
        back_populates="entries",
        sa_relationship=relationship("Habit", back_populates="entries"),
    )
