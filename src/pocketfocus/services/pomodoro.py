"""Pomodoro timer state machine.

The timer cycles focus -> short/long break -> focus. Phase changes happen in
one place, :meth:`PomodoroTimer._complete_phase`, which is reached by natural
expiry (:meth:`tick`), by :meth:`skip_to_next` and by the background resume
check (:meth:`check_timer_status`).

Side effects (notifications, metronome) are best effort: failures are logged
and never block a transition.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timedelta
from functools import partial
from typing import Callable, Optional

from ..infra.audio import Metronome, SilentMetronome
from ..infra.countdown import Countdown
from ..infra.notifications import NotificationScheduler
from ..models.pomodoro import TimerMode, TimerPhase, TimerSession, TimerSettings, TimerSnapshot
from .calendar_days import local_now
from .pomodoro_settings import PomodoroSettingsManager

logger = logging.getLogger("pocketfocus.pomodoro")

TIMER_END_NOTIFICATION_ID = "pomodoro-timer-end"
COMPLETION_NOTIFICATION_PREFIX = "pomodoro-complete-"
COMPLETION_NOTIFICATION_DELAY = timedelta(seconds=1)
TICK_SECONDS = 1.0

# (title, body) for the notification scheduled at the end of a running phase
END_NOTIFICATIONS = {
    TimerPhase.FOCUS: ("Focus session completed!", "Time for a break."),
    TimerPhase.SHORT_BREAK: ("Short break completed!", "Ready for next focus session?"),
    TimerPhase.LONG_BREAK: ("Long break completed!", "Ready for next focus session?"),
}
FOCUS_DONE = ("Focus session completed!", "Time for a break.")
BREAK_DONE = ("Break completed!", "Ready for next focus session?")

SnapshotListener = Callable[[TimerSnapshot], None]


class PomodoroTimer:
    """Focus/break timer driven by a :class:`Countdown`.

    All state changes happen under a re-entrant lock. Each start arms the
    countdown with a fresh run token; callbacks carrying an older token are
    ignored, so a tick queued before a pause or phase switch cannot decrement
    the new phase.
    """

    def __init__(
        self,
        settings_manager: PomodoroSettingsManager,
        notifier: NotificationScheduler,
        countdown: Countdown,
        metronome: Metronome | None = None,
        *,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.settings_manager = settings_manager
        self.notifier = notifier
        self.countdown = countdown
        self.metronome = metronome or SilentMetronome()
        self._clock = clock
        self._lock = threading.RLock()
        self._run_id = 0
        self._listeners: list[SnapshotListener] = []

        settings = settings_manager.settings
        self.mode = TimerMode.INITIAL
        self.phase = TimerPhase.FOCUS
        self.total: float = settings.focus_duration
        self.remaining: float = self.total
        self.scheduled_end: Optional[datetime] = None

        self._unsubscribe = settings_manager.subscribe(self._on_settings_changed)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def settings(self) -> TimerSettings:
        return self.settings_manager.settings

    @property
    def session(self) -> TimerSession:
        return self.settings_manager.session

    @property
    def current_round(self) -> int:
        """Derived from completed focus sessions on every read."""
        completed = self.settings_manager.session.completed_focus_sessions
        return completed // self.settings.rounds_before_long_break + 1

    @property
    def progress(self) -> float:
        return self.remaining / self.total if self.total > 0 else 0.0

    def snapshot(self) -> TimerSnapshot:
        with self._lock:
            return TimerSnapshot(
                mode=self.mode,
                phase=self.phase,
                remaining=self.remaining,
                total=self.total,
                progress=self.progress,
                current_round=self.current_round,
                scheduled_end=self.scheduled_end,
            )

    def formatted_time(self) -> str:
        """Remaining time as MM:SS."""
        return self.snapshot().formatted_remaining

    def add_listener(self, listener: SnapshotListener) -> Callable[[], None]:
        """Receive a snapshot after every transition and tick."""
        with self._lock:
            self._listeners.append(listener)

        def remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Run the current phase from its remaining time."""
        with self._lock:
            if self.mode not in (TimerMode.INITIAL, TimerMode.PAUSED):
                logger.debug("Ignoring start while %s", self.mode.value)
                return False
            self.mode = TimerMode.RUNNING
            self.scheduled_end = self._clock() + timedelta(seconds=self.remaining)
            title, body = END_NOTIFICATIONS[self.phase]
            self._best_effort(
                "schedule end notification",
                self.notifier.schedule,
                TIMER_END_NOTIFICATION_ID,
                title,
                body,
                self.scheduled_end,
            )
            if self.settings.enable_metronome:
                self._best_effort("start metronome", self.metronome.start)
            self._run_id += 1
            self.countdown.start(partial(self._on_countdown, self._run_id), TICK_SECONDS)
            logger.debug(
                "Timer started",
                extra={"phase": self.phase.value, "remaining": self.remaining},
            )
            self._emit()
            return True

    def tick(self) -> None:
        """Advance the running phase by one second."""
        with self._lock:
            if self.mode is not TimerMode.RUNNING:
                return
            self.remaining = max(0.0, self.remaining - TICK_SECONDS)
            if self.remaining <= 0:
                self.mode = TimerMode.FINISHED
                self._halt()
                self._complete_phase()
            self._emit()

    def pause(self) -> bool:
        with self._lock:
            if self.mode is not TimerMode.RUNNING:
                logger.debug("Ignoring pause while %s", self.mode.value)
                return False
            self._halt()
            self._cancel_end_notification()
            self.mode = TimerMode.PAUSED
            self.scheduled_end = None
            self._emit()
            return True

    def reset(self) -> None:
        """Return the current phase to its full duration."""
        with self._lock:
            self._halt()
            self._cancel_end_notification()
            self.mode = TimerMode.INITIAL
            self.total = self.settings.duration_for(self.phase)
            self.remaining = self.total
            self.scheduled_end = None
            self._emit()

    def skip_to_next(self) -> None:
        """Complete the current phase now, exactly as if it had expired."""
        with self._lock:
            self._halt()
            self._cancel_end_notification()
            self.scheduled_end = None
            self._complete_phase()
            self._emit()

    def check_timer_status(self) -> None:
        """Catch up with wall-clock time after the process was suspended."""
        with self._lock:
            if self.mode is not TimerMode.RUNNING or self.scheduled_end is None:
                return
            now = self._clock()
            if now >= self.scheduled_end:
                logger.info("Phase ended while suspended", extra={"phase": self.phase.value})
                self.remaining = 0.0
                self.mode = TimerMode.FINISHED
                self._halt()
                self._complete_phase()
            else:
                self.remaining = max(0.0, (self.scheduled_end - now).total_seconds())
            self._emit()

    def shutdown(self) -> None:
        """Stop every timer side effect and detach from the settings manager."""
        with self._lock:
            self._halt()
            self._cancel_end_notification()
            self._unsubscribe()
            self._listeners.clear()

    # ------------------------------------------------------------------
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------

    def _on_countdown(self, run_id: int) -> None:
        with self._lock:
            if run_id != self._run_id:
                return
            self.tick()

    def _on_settings_changed(self, settings: TimerSettings) -> None:
        with self._lock:
            if self.mode is TimerMode.INITIAL:
                self.total = settings.duration_for(self.phase)
                self.remaining = self.total
            if settings.enable_metronome and self.mode is TimerMode.RUNNING:
                self._best_effort("start metronome", self.metronome.start)
            else:
                self._best_effort("stop metronome", self.metronome.stop)
            self._emit()

    def _halt(self) -> None:
        self._run_id += 1
        self.countdown.stop()
        self._best_effort("stop metronome", self.metronome.stop)

    def _cancel_end_notification(self) -> None:
        self._best_effort("cancel end notification", self.notifier.cancel, [TIMER_END_NOTIFICATION_ID])

    def _complete_phase(self) -> None:
        settings = self.settings
        finished = self.phase
        if finished is TimerPhase.FOCUS:
            session = self.settings_manager.record_focus_completion(
                settings.focus_duration, self._clock()
            )
            self._notify_completion(*FOCUS_DONE)
            completed = session.completed_focus_sessions
            if completed > 0 and completed % settings.rounds_before_long_break == 0:
                self._switch_to(TimerPhase.LONG_BREAK)
            else:
                self._switch_to(TimerPhase.SHORT_BREAK)
            auto_start = settings.auto_start_breaks
        else:
            self.settings_manager.record_break_completion(finished is TimerPhase.LONG_BREAK)
            self._notify_completion(*BREAK_DONE)
            self._switch_to(TimerPhase.FOCUS)
            auto_start = settings.auto_start_focus

        logger.info(
            "Phase completed",
            extra={"phase": finished.value, "next_phase": self.phase.value, "round": self.current_round},
        )
        if auto_start:
            self.start()

    def _switch_to(self, phase: TimerPhase) -> None:
        self.phase = phase
        self.mode = TimerMode.INITIAL
        self.total = self.settings.duration_for(phase)
        self.remaining = self.total
        self.scheduled_end = None

    def _notify_completion(self, title: str, body: str) -> None:
        self._best_effort(
            "completion notification",
            self.notifier.schedule,
            f"{COMPLETION_NOTIFICATION_PREFIX}{uuid.uuid4().hex}",
            title,
            body,
            COMPLETION_NOTIFICATION_DELAY,
        )

    def _emit(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Timer listener failed")

    @staticmethod
    def _best_effort(action: str, func: Callable, *args) -> None:
        try:
            func(*args)
        except Exception:
            logger.warning("Could not %s", action, exc_info=True)


__all__ = [
    "END_NOTIFICATIONS",
    "PomodoroTimer",
    "TIMER_END_NOTIFICATION_ID",
]
