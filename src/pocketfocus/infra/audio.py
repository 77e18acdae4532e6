"""Metronome playback used while a focus or break phase runs."""

from __future__ import annotations

import logging
from typing import Protocol

import click

from ..scheduler import BackgroundScheduler

logger = logging.getLogger("pocketfocus.audio")


class Metronome(Protocol):
    @property
    def playing(self) -> bool:
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


class SilentMetronome:
    """Tracks playback state without producing sound (headless use)."""

    def __init__(self) -> None:
        self._playing = False

    @property
    def playing(self) -> bool:
        return self._playing

    def start(self) -> None:
        self._playing = True

    def stop(self) -> None:
        self._playing = False


class TerminalBellMetronome:
    """Rings the terminal bell on every beat until stopped."""

    JOB_ID = "metronome-beat"

    def __init__(self, scheduler: BackgroundScheduler, beats_per_minute: int = 60) -> None:
        if beats_per_minute <= 0:
            raise ValueError("beats_per_minute must be positive")
        self.scheduler = scheduler
        self.interval = 60.0 / beats_per_minute

    @property
    def playing(self) -> bool:
        return self.scheduler.has_job(self.JOB_ID)

    def _beat(self) -> None:
        click.echo("\a", nl=False)

    def start(self) -> None:
        if self.playing:
            return
        self.scheduler.add_job(self._beat, "interval", job_id=self.JOB_ID, name="Metronome", seconds=self.interval)
        logger.debug("Metronome started")

    def stop(self) -> None:
        if self.scheduler.remove_job(self.JOB_ID):
            logger.debug("Metronome stopped")
