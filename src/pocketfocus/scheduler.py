"""Background job scheduler shared by the timer countdown and notifications."""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger("pocketfocus.scheduler")


class BackgroundScheduler:
    """Thin wrapper over APScheduler owned by the application context.

    Jobs may be added before :meth:`start`; APScheduler holds them as pending
    and arms them once the scheduler runs.
    """

    def __init__(self, scheduler: APScheduler | None = None) -> None:
        self.scheduler = scheduler or APScheduler(job_defaults={"coalesce": True, "max_instances": 1})

    @property
    def running(self) -> bool:
        return bool(self.scheduler.running)

    def start(self) -> None:
        """Start the background scheduler."""
        if self.running:
            logger.warning("Scheduler already running")
            return
        self.scheduler.start()
        logger.info("Background scheduler started")

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Background scheduler stopped")

    def add_job(
        self,
        func: Callable,
        trigger: str,
        *,
        job_id: str,
        name: str | None = None,
        args: Sequence[Any] | None = None,
        **trigger_args,
    ) -> None:
        """Add or replace a job.

        Args:
            func: Function to execute
            trigger: Trigger type ('interval' or 'date')
            job_id: Unique job identifier; an existing job with this id is replaced
            name: Human-readable job name
            args: Positional arguments passed to ``func``
            **trigger_args: Additional trigger arguments
        """
        if trigger == "interval":
            trigger_obj = IntervalTrigger(**trigger_args)
        elif trigger == "date":
            trigger_obj = DateTrigger(**trigger_args)
        else:
            raise ValueError(f"Unknown trigger type: {trigger}")

        # Pending jobs are not deduplicated by APScheduler until start().
        if not self.running:
            self.remove_job(job_id)

        self.scheduler.add_job(
            func=func,
            trigger=trigger_obj,
            args=list(args or ()),
            id=job_id,
            name=name or job_id,
            replace_existing=True,
        )
        logger.debug("Added job: %s", job_id)

    def remove_job(self, job_id: str) -> bool:
        """Remove a job; returns False when no such job exists."""
        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            return False
        logger.debug("Removed job: %s", job_id)
        return True

    def has_job(self, job_id: str) -> bool:
        return self.scheduler.get_job(job_id) is not None


def create_scheduler(*, auto_start: bool = False) -> BackgroundScheduler:
    """Create and optionally start a background scheduler."""
    scheduler = BackgroundScheduler()
    if auto_start:
        scheduler.start()
    return scheduler
