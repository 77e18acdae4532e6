"""Motivational quote reminders scheduled through the notification scheduler."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Sequence

from ..domain.repositories.settings import SettingsRepository
from ..infra.notifications import NotificationScheduler

logger = logging.getLogger("pocketfocus.quotes")

ENABLED_KEY = "quote_notifications_enabled"
IDENTIFIER_PREFIX = "quoteNotification-"
REMINDER_TITLE = "Motivation Boost"


@dataclass(frozen=True, slots=True)
class Quote:
    content: str
    author: str

    def as_body(self) -> str:
        return f'"{self.content}" - {self.author}'


DEFAULT_QUOTES: tuple[Quote, ...] = (
    Quote("The secret of getting ahead is getting started.", "Mark Twain"),
    Quote("It always seems impossible until it's done.", "Nelson Mandela"),
    Quote("Well done is better than well said.", "Benjamin Franklin"),
    Quote("Small deeds done are better than great deeds planned.", "Peter Marshall"),
    Quote("Action is the foundational key to all success.", "Pablo Picasso"),
    Quote("You don't have to see the whole staircase, just take the first step.", "Martin Luther King Jr."),
    Quote("Quality is not an act, it is a habit.", "Aristotle"),
    Quote("Focus on being productive instead of busy.", "Tim Ferriss"),
)


class QuoteReminderService:
    """Schedules a batch of spaced quote notifications when enabled."""

    def __init__(
        self,
        notifier: NotificationScheduler,
        store: SettingsRepository,
        *,
        count: int = 12,
        interval_hours: float = 2.0,
        quotes: Sequence[Quote] = DEFAULT_QUOTES,
        chooser: Callable[[Sequence[Quote]], Quote] = random.choice,
    ) -> None:
        if count < 1:
            raise ValueError("count must be at least 1")
        if not quotes:
            raise ValueError("at least one quote is required")
        self.notifier = notifier
        self.store = store
        self.count = count
        self.interval = timedelta(hours=interval_hours)
        self.quotes = tuple(quotes)
        self._choose = chooser

    @property
    def identifiers(self) -> list[str]:
        return [f"{IDENTIFIER_PREFIX}{index}" for index in range(1, self.count + 1)]

    @property
    def enabled(self) -> bool:
        value = self.store.get_value(ENABLED_KEY)
        return value is not None and value.strip().lower() in ("true", "1", "yes")

    def schedule(self, quotes: Sequence[Quote] | None = None) -> int:
        """Replace pending reminders; returns how many were scheduled."""
        self.cancel()
        if not self.enabled:
            return 0
        pool = tuple(quotes) if quotes else self.quotes
        scheduled = 0
        for index, identifier in enumerate(self.identifiers, start=1):
            quote = self._choose(pool)
            try:
                self.notifier.schedule(identifier, REMINDER_TITLE, quote.as_body(), self.interval * index)
            except Exception:
                logger.warning("Could not schedule %s", identifier, exc_info=True)
                continue
            scheduled += 1
        logger.info("Scheduled quote reminders", extra={"count": scheduled})
        return scheduled

    def cancel(self) -> None:
        self.notifier.cancel(self.identifiers)

    def set_enabled(self, flag: bool) -> int:
        self.store.set_value(ENABLED_KEY, "true" if flag else "false")
        if flag:
            return self.schedule()
        self.cancel()
        return 0


__all__ = ["DEFAULT_QUOTES", "Quote", "QuoteReminderService"]
