"""Habit streak engine: completion toggles, streaks and the activity grid."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Collection, Iterable, Optional

from ..domain.errors import HabitNotFoundError
from ..domain.repositories.habit import HabitRepository
from ..models.habit import Habit, HabitEntry
from .calendar_days import calendar_day, completion_stamp, days_back, start_of_week
from .streak_cache import StreakCache

logger = logging.getLogger("pocketfocus.habits")

DEFAULT_COLOR_HEX = "#4CAF50"
DEFAULT_ICON_NAME = "star.fill"


@dataclass(frozen=True, slots=True)
class HabitStats:
    current_streak: int
    longest_streak: int
    total_entries: int


@dataclass(frozen=True, slots=True)
class GridCell:
    """One day in the activity grid."""

    day: date
    completed: bool
    is_today: bool
    is_future: bool


def compute_current_streak(days: Collection[date], as_of: date) -> int:
    """Consecutive completed days ending at ``as_of``; 0 if ``as_of`` is missing."""

    if as_of not in days:
        return 0
    streak = 0
    cursor = as_of
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def compute_longest_streak(days: Iterable[date]) -> int:
    """Longest run of consecutive days.

    A gap of exactly one day extends the run; anything else starts a new run
    of length 1 with the current day.
    """

    longest = 0
    run = 0
    last_day: date | None = None
    for day in sorted(set(days)):
        if last_day is not None and day - last_day == timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        last_day = day
    return longest


def compute_streaks(days: Collection[date], *, today: date | None = None) -> tuple[int, int]:
    """Return (current_streak, longest_streak) for a collection of completed days."""

    today = today or date.today()
    return compute_current_streak(days, today), compute_longest_streak(days)


class StreakEngine:
    """Habit completion tracking for one owner, fronted by a :class:`StreakCache`.

    Every write path ends by invalidating the cache for the affected habit,
    even when the write raises, so the next read always goes to the store.
    """

    def __init__(
        self,
        repository: HabitRepository,
        cache: StreakCache,
        *,
        user_id: int,
        today: Callable[[], date] = date.today,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.user_id = user_id
        self._today = today
        self._executor = executor
        self._owns_executor = False

    # ------------------------------------------------------------------
    # Habit CRUD
    # ------------------------------------------------------------------

    def create_habit(
        self,
        title: str,
        description: str = "",
        *,
        icon_name: str = DEFAULT_ICON_NAME,
        color_hex: str = DEFAULT_COLOR_HEX,
    ) -> Habit:
        title = title.strip()
        if not title:
            raise ValueError("Habit title must not be empty")
        habit = Habit(
            user_id=self.user_id,
            title=title,
            description=description.strip(),
            icon_name=icon_name,
            color_hex=color_hex,
        )
        created = self.repository.create(habit, user_id=self.user_id)
        logger.info("Created habit", extra={"habit_id": created.id})
        return created

    def get_habit(self, habit_id: int) -> Habit:
        habit = self.repository.get_by_id(habit_id, user_id=self.user_id)
        if habit is None:
            raise HabitNotFoundError(habit_id)
        return habit

    def update_habit(self, habit: Habit) -> Habit:
        if not habit.title or not habit.title.strip():
            raise ValueError("Habit title must not be empty")
        return self.repository.update(habit, user_id=self.user_id)

    def delete_habit(self, habit_id: int) -> None:
        try:
            self.repository.delete(habit_id, user_id=self.user_id)
        finally:
            self.cache.invalidate(habit_id)
        logger.info("Deleted habit", extra={"habit_id": habit_id})

    def list_habits(self, search: str | None = None) -> list[Habit]:
        return self.repository.list_all(user_id=self.user_id, search=(search or "").strip() or None)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def has_entry(self, habit_id: int, day: date | datetime) -> bool:
        """True iff the habit has an entry on ``day``'s local calendar day."""
        day = calendar_day(day)
        cached = self.cache.get_has_entry(habit_id, day)
        if cached is not None:
            return cached
        generation = self.cache.generation(habit_id)
        result = self.repository.has_entry(habit_id, day, user_id=self.user_id)
        self.cache.store_has_entry(habit_id, day, result, generation)
        return result

    def entries_sorted(self, habit_id: int) -> list[HabitEntry]:
        """Entries newest day first."""
        cached = self.cache.get_entries(habit_id)
        if cached is not None:
            return cached
        generation = self.cache.generation(habit_id)
        entries = self.repository.list_entries(habit_id, user_id=self.user_id)
        entries.sort(key=lambda entry: entry.day, reverse=True)
        self.cache.store_entries(habit_id, entries, generation)
        return entries

    def completed_days(self, habit_id: int) -> set[date]:
        return {entry.day for entry in self.entries_sorted(habit_id)}

    def current_streak(self, habit_id: int, as_of: date | datetime | None = None) -> int:
        reference = calendar_day(as_of) if as_of is not None else self._today()
        if not self.has_entry(habit_id, reference):
            return 0
        return compute_current_streak(self.completed_days(habit_id) | {reference}, reference)

    def longest_streak(self, habit_id: int) -> int:
        return compute_longest_streak(self.completed_days(habit_id))

    def stats(self, habit_id: int, as_of: date | datetime | None = None) -> HabitStats:
        return HabitStats(
            current_streak=self.current_streak(habit_id, as_of),
            longest_streak=self.longest_streak(habit_id),
            total_entries=len(self.entries_sorted(habit_id)),
        )

    def recent_days(self, days: int = 7, today: date | None = None) -> list[date]:
        """Dates for the compact week strip, oldest first."""
        return days_back(today or self._today(), days)

    def activity_grid(
        self,
        habit_id: int,
        weeks: int = 52,
        today: date | None = None,
        first_weekday: int = 0,
    ) -> list[list[GridCell]]:
        """Week columns ending with the current week, oldest first."""
        today = today or self._today()
        completed = self.completed_days(habit_id)
        current_week = start_of_week(today, first_weekday)
        grid: list[list[GridCell]] = []
        for week_offset in reversed(range(weeks)):
            week_start = current_week - timedelta(weeks=week_offset)
            column = []
            for offset in range(7):
                day = week_start + timedelta(days=offset)
                column.append(
                    GridCell(
                        day=day,
                        completed=day in completed,
                        is_today=day == today,
                        is_future=day > today,
                    )
                )
            grid.append(column)
        return grid

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def toggle_completion(self, habit_id: int, day: date | datetime) -> bool:
        """Flip completion for a day; returns the new state."""
        reference = self._writable_day(day)
        try:
            completed = self.repository.toggle_entry(
                habit_id,
                reference,
                user_id=self.user_id,
                completed_at=completion_stamp(day),
            )
        finally:
            self.cache.invalidate(habit_id)
        logger.debug(
            "Toggled habit completion",
            extra={"habit_id": habit_id, "day": reference.isoformat(), "completed": completed},
        )
        return completed

    def toggle_completion_async(self, habit_id: int, day: date | datetime) -> Future:
        """Run :meth:`toggle_completion` on the background writer.

        The cache is invalidated inside the write, before the future resolves.
        """
        return self._writer().submit(self.toggle_completion, habit_id, day)

    def set_completion(
        self, habit_id: int, day: date | datetime, completed: bool
    ) -> Optional[HabitEntry]:
        reference = calendar_day(day)
        if completed:
            self._writable_day(reference)
        try:
            if completed:
                return self.repository.add_entry(
                    habit_id, reference, user_id=self.user_id, completed_at=completion_stamp(day)
                )
            self.repository.delete_entry_for_day(habit_id, reference, user_id=self.user_id)
            return None
        finally:
            self.cache.invalidate(habit_id)

    def add_entry(
        self, habit_id: int, day: date | datetime, notes: str | None = None
    ) -> HabitEntry:
        """Record a completion with an optional note, replacing that day's entry."""
        reference = self._writable_day(day)
        try:
            return self.repository.add_entry(
                habit_id,
                reference,
                user_id=self.user_id,
                completed_at=completion_stamp(day),
                notes=notes,
            )
        finally:
            self.cache.invalidate(habit_id)

    def delete_entry(self, entry_id: int) -> bool:
        habit_id = self.repository.delete_entry(entry_id, user_id=self.user_id)
        if habit_id is None:
            return False
        self.cache.invalidate(habit_id)
        return True

    def _writable_day(self, day: date | datetime) -> date:
        reference = calendar_day(day)
        if reference > self._today():
            raise ValueError(f"Cannot record a completion for a future day: {reference.isoformat()}")
        return reference

    # ------------------------------------------------------------------

    def _writer(self) -> ThreadPoolExecutor:
        if self._executor is None:
            # One worker keeps background writes in submission order.
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="habit-writes")
            self._owns_executor = True
        return self._executor

    def shutdown(self) -> None:
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=True)
            self._executor = None
            self._owns_executor = False


__all__ = [
    "GridCell",
    "HabitStats",
    "StreakEngine",
    "compute_current_streak",
    "compute_longest_streak",
    "compute_streaks",
]
