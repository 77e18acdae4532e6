"""Habit repository protocol."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol

from ...models.habit import Habit, HabitEntry


class HabitRepository(Protocol):
    """Record store for habits and their per-day entries, scoped by owner."""

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def list_all(self, *, user_id: int, search: str | None = None) -> list[Habit]:
        """List habits, most recently modified first, optionally filtered by text."""
        ...

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        """Create a new habit."""
        ...

    def update(self, habit: Habit, *, user_id: int) -> Habit:
        """Update an existing habit and touch its last-modified stamp."""
        ...

    def delete(self, habit_id: int, *, user_id: int) -> None:
        """Delete a habit and all its entries."""
        ...

    # Habit entry operations
    def get_entry(self, habit_id: int, day: date, *, user_id: int) -> Optional[HabitEntry]:
        """Get the entry for a habit on a calendar day."""
        ...

    def has_entry(self, habit_id: int, day: date, *, user_id: int) -> bool:
        """Return True when the habit is completed on ``day``."""
        ...

    def list_entries(
        self,
        habit_id: int,
        *,
        user_id: int,
        start: date | None = None,
        end: date | None = None,
    ) -> list[HabitEntry]:
        """Entries for a habit ordered by day ascending, optionally bounded."""
        ...

    def add_entry(
        self,
        habit_id: int,
        day: date,
        *,
        user_id: int,
        completed_at: datetime | None = None,
        notes: str | None = None,
    ) -> HabitEntry:
        """Create the entry for ``day``, replacing any existing one."""
        ...

    def toggle_entry(
        self, habit_id: int, day: date, *, user_id: int, completed_at: datetime | None = None
    ) -> bool:
        """Delete the day's entry if present, otherwise create it. Returns new state."""
        ...

    def delete_entry(self, entry_id: int, *, user_id: int) -> Optional[int]:
        """Delete an entry by id; returns the owning habit id when something was removed."""
        ...

    def delete_entry_for_day(self, habit_id: int, day: date, *, user_id: int) -> bool:
        """Delete the entry for ``day``; returns True if one existed."""
        ...
