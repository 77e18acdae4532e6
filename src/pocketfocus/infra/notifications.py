"""Local notification scheduling backed by APScheduler date jobs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, Protocol

from ..scheduler import BackgroundScheduler

logger = logging.getLogger("pocketfocus.notifications")

JOB_PREFIX = "notify:"


@dataclass(frozen=True, slots=True)
class Notification:
    identifier: str
    title: str
    body: str
    fire_at: datetime


class NotificationScheduler(Protocol):
    """At most one pending request per identifier; scheduling again replaces it."""

    def schedule(
        self, identifier: str, title: str, body: str, fire_at: datetime | timedelta
    ) -> Notification:
        ...

    def cancel(self, identifiers: Iterable[str]) -> None:
        ...


def log_notification(notification: Notification) -> None:
    """Default delivery: write the notification to the application log."""
    logger.info(
        "%s: %s",
        notification.title,
        notification.body,
        extra={"notification_id": notification.identifier},
    )


class APSchedulerNotificationScheduler:
    """Schedules notifications as one-shot jobs keyed by identifier."""

    def __init__(
        self,
        scheduler: BackgroundScheduler,
        deliver: Callable[[Notification], None] = log_notification,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.deliver = deliver
        self._clock = clock or (lambda: datetime.now().astimezone())

    def schedule(
        self, identifier: str, title: str, body: str, fire_at: datetime | timedelta
    ) -> Notification:
        if isinstance(fire_at, timedelta):
            fire_at = self._clock() + fire_at
        notification = Notification(identifier=identifier, title=title, body=body, fire_at=fire_at)
        self.scheduler.add_job(
            self.deliver,
            "date",
            job_id=f"{JOB_PREFIX}{identifier}",
            name=title,
            args=[notification],
            run_date=fire_at,
        )
        logger.debug("Scheduled notification %s for %s", identifier, fire_at.isoformat())
        return notification

    def cancel(self, identifiers: Iterable[str]) -> None:
        for identifier in identifiers:
            self.scheduler.remove_job(f"{JOB_PREFIX}{identifier}")

    def is_pending(self, identifier: str) -> bool:
        return self.scheduler.has_job(f"{JOB_PREFIX}{identifier}")


__all__ = [
    "APSchedulerNotificationScheduler",
    "Notification",
    "NotificationScheduler",
    "log_notification",
]
