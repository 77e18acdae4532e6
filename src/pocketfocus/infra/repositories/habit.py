"""SQLModel implementation of the habit record store."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable, Optional

from sqlalchemy import or_
from sqlmodel import Session, col, select

from ...domain.errors import HabitNotFoundError
from ...models.habit import Habit, HabitEntry


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    @staticmethod
    def _owned_habit(session: Session, habit_id: int, user_id: int) -> Habit:
        habit = session.exec(
            select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
        ).first()
        if habit is None:
            raise HabitNotFoundError(habit_id)
        return habit

    @staticmethod
    def _entry_query(habit_id: int, day: date, user_id: int):
        return (
            select(HabitEntry)
            .where(HabitEntry.user_id == user_id)
            .where(HabitEntry.habit_id == habit_id)
            .where(HabitEntry.day == day)
        )

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int, search: str | None = None) -> list[Habit]:
        """List habits, most recently modified first."""
        with self.session_factory() as session:
            statement = select(Habit).where(Habit.user_id == user_id)
            if search:
                pattern = f"%{search}%"
                statement = statement.where(
                    or_(col(Habit.title).ilike(pattern), col(Habit.description).ilike(pattern))
                )
            statement = statement.order_by(col(Habit.last_modified).desc())
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            now = datetime.now(timezone.utc)
            habit.created_at = now
            habit.last_modified = now
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def update(self, habit: Habit, *, user_id: int) -> Habit:
        """Update an existing habit."""
        if habit.id is None:
            raise HabitNotFoundError(-1)
        with self.session_factory() as session:
            stored = self._owned_habit(session, habit.id, user_id)
            stored.title = habit.title
            stored.description = habit.description
            stored.icon_name = habit.icon_name
            stored.color_hex = habit.color_hex
            stored.last_modified = datetime.now(timezone.utc)
            session.add(stored)
            session.commit()
            session.refresh(stored)
            session.expunge(stored)
            return stored

    def delete(self, habit_id: int, *, user_id: int) -> None:
        """Delete a habit by ID; entries go with it."""
        with self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if habit:
                session.delete(habit)
                session.commit()

    # Habit entry operations
    def get_entry(self, habit_id: int, day: date, *, user_id: int) -> Optional[HabitEntry]:
        """Get the entry for a specific day."""
        with self.session_factory() as session:
            obj = session.exec(self._entry_query(habit_id, day, user_id)).first()
            if obj:
                session.expunge(obj)
            return obj

    def has_entry(self, habit_id: int, day: date, *, user_id: int) -> bool:
        with self.session_factory() as session:
            return session.exec(self._entry_query(habit_id, day, user_id)).first() is not None

    def list_entries(
        self,
        habit_id: int,
        *,
        user_id: int,
        start: date | None = None,
        end: date | None = None,
    ) -> list[HabitEntry]:
        """Entries for a habit ordered by day, optionally within [start, end]."""
        with self.session_factory() as session:
            statement = (
                select(HabitEntry)
                .where(HabitEntry.user_id == user_id)
                .where(HabitEntry.habit_id == habit_id)
            )
            if start is not None:
                statement = statement.where(HabitEntry.day >= start)
            if end is not None:
                statement = statement.where(HabitEntry.day <= end)
            statement = statement.order_by(col(HabitEntry.day))
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def add_entry(
        self,
        habit_id: int,
        day: date,
        *,
        user_id: int,
        completed_at: datetime | None = None,
        notes: str | None = None,
    ) -> HabitEntry:
        """Create the entry for ``day``, replacing an existing one."""
        with self.session_factory() as session:
            self._owned_habit(session, habit_id, user_id)
            existing = session.exec(self._entry_query(habit_id, day, user_id)).first()
            if existing:
                session.delete(existing)
                session.flush()
            entry = HabitEntry(
                habit_id=habit_id,
                user_id=user_id,
                day=day,
                completed_at=completed_at or datetime.now(timezone.utc),
                notes=notes,
            )
            session.add(entry)
            session.commit()
            session.refresh(entry)
            session.expunge(entry)
            return entry

    def toggle_entry(
        self, habit_id: int, day: date, *, user_id: int, completed_at: datetime | None = None
    ) -> bool:
        """Flip completion for ``day`` inside one transaction."""
        with self.session_factory() as session:
            self._owned_habit(session, habit_id, user_id)
            existing = session.exec(self._entry_query(habit_id, day, user_id)).first()
            if existing:
                session.delete(existing)
                session.commit()
                return False
            session.add(
                HabitEntry(
                    habit_id=habit_id,
                    user_id=user_id,
                    day=day,
                    completed_at=completed_at or datetime.now(timezone.utc),
                )
            )
            session.commit()
            return True

    def delete_entry(self, entry_id: int, *, user_id: int) -> Optional[int]:
        """Delete an entry by id and report which habit it belonged to."""
        with self.session_factory() as session:
            entry = session.exec(
                select(HabitEntry).where(HabitEntry.id == entry_id, HabitEntry.user_id == user_id)
            ).first()
            if entry is None:
                return None
            habit_id = entry.habit_id
            session.delete(entry)
            session.commit()
            return habit_id

    def delete_entry_for_day(self, habit_id: int, day: date, *, user_id: int) -> bool:
        with self.session_factory() as session:
            entry = session.exec(self._entry_query(habit_id, day, user_id)).first()
            if entry is None:
                return False
            session.delete(entry)
            session.commit()
            return True


__all__ = ["SQLModelHabitRepository"]
