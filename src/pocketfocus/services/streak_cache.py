"""Short-lived cache in front of habit entry lookups."""

from __future__ import annotations

import threading
import time
from datetime import date
from typing import Callable, Optional, Sequence

from ..models.habit import HabitEntry

DEFAULT_FRESHNESS_SECONDS = 3.0


class StreakCache:
    """Per-habit cache of sorted entries and per-day completion flags.

    Values older than the freshness window read as misses. ``invalidate``
    evicts everything for a habit and bumps its generation; a store made with
    a generation captured before that bump is dropped, so a read racing a
    write can never re-populate the cache with pre-write data.
    """

    def __init__(
        self,
        freshness_seconds: float = DEFAULT_FRESHNESS_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.freshness_seconds = freshness_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[int, tuple[tuple[HabitEntry, ...], float]] = {}
        self._days: dict[tuple[int, date], tuple[bool, float]] = {}
        self._generations: dict[int, int] = {}

    def _fresh(self, stamp: float) -> bool:
        return self._clock() - stamp <= self.freshness_seconds

    def generation(self, habit_id: int) -> int:
        with self._lock:
            return self._generations.get(habit_id, 0)

    def get_entries(self, habit_id: int) -> Optional[list[HabitEntry]]:
        with self._lock:
            cached = self._entries.get(habit_id)
            if cached is None:
                return None
            entries, stamp = cached
            if not self._fresh(stamp):
                del self._entries[habit_id]
                return None
            return list(entries)

    def store_entries(
        self, habit_id: int, entries: Sequence[HabitEntry], generation: int
    ) -> bool:
        with self._lock:
            if self._generations.get(habit_id, 0) != generation:
                return False
            self._entries[habit_id] = (tuple(entries), self._clock())
            return True

    def get_has_entry(self, habit_id: int, day: date) -> Optional[bool]:
        key = (habit_id, day)
        with self._lock:
            cached = self._days.get(key)
            if cached is None:
                return None
            value, stamp = cached
            if not self._fresh(stamp):
                del self._days[key]
                return None
            return value

    def store_has_entry(self, habit_id: int, day: date, value: bool, generation: int) -> bool:
        with self._lock:
            if self._generations.get(habit_id, 0) != generation:
                return False
            self._days[(habit_id, day)] = (value, self._clock())
            return True

    def invalidate(self, habit_id: int) -> None:
        """Evict every cached value for ``habit_id``."""
        with self._lock:
            self._generations[habit_id] = self._generations.get(habit_id, 0) + 1
            self._entries.pop(habit_id, None)
            for key in [key for key in self._days if key[0] == habit_id]:
                del self._days[key]

    def clear(self) -> None:
        with self._lock:
            for habit_id in set(self._entries) | {key[0] for key in self._days}:
                self._generations[habit_id] = self._generations.get(habit_id, 0) + 1
            self._entries.clear()
            self._days.clear()
