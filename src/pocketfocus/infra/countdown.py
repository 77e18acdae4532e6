"""Repeating countdown callbacks for the pomodoro timer."""

from __future__ import annotations

import uuid
from typing import Callable, Protocol

from ..scheduler import BackgroundScheduler


class Countdown(Protocol):
    """A single repeating callback; starting again replaces the previous one."""

    @property
    def active(self) -> bool:
        ...

    def start(self, callback: Callable[[], None], interval: float = 1.0) -> None:
        ...

    def stop(self) -> None:
        ...


class APSchedulerCountdown:
    """Countdown driven by an APScheduler interval job with a fixed id."""

    def __init__(self, scheduler: BackgroundScheduler, job_id: str | None = None) -> None:
        self.scheduler = scheduler
        self.job_id = job_id or f"timer-tick-{uuid.uuid4().hex[:8]}"

    @property
    def active(self) -> bool:
        return self.scheduler.has_job(self.job_id)

    def start(self, callback: Callable[[], None], interval: float = 1.0) -> None:
        self.scheduler.add_job(callback, "interval", job_id=self.job_id, name="Pomodoro tick", seconds=interval)

    def stop(self) -> None:
        self.scheduler.remove_job(self.job_id)
