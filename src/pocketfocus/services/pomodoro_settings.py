"""Persisted pomodoro settings and cumulative session statistics."""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, replace
from datetime import datetime
from typing import Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from ..domain.repositories.settings import SettingsRepository
from ..models.pomodoro import TimerSession, TimerSettings

logger = logging.getLogger("pocketfocus.pomodoro.settings")

SETTINGS_KEY = "pomodoro_settings"
SESSION_KEY = "pomodoro_session"

SettingsListener = Callable[[TimerSettings], None]
_Record = TypeVar("_Record", TimerSettings, TimerSession)


class PomodoroSettingsManager:
    """Owns the current :class:`TimerSettings` and :class:`TimerSession`.

    Both records are loaded once at construction and written back as a single
    serialized value each time they change. Storage failures are logged and the
    in-memory record stays authoritative.
    """

    def __init__(self, store: SettingsRepository) -> None:
        self.store = store
        self._lock = threading.RLock()
        self._listeners: list[SettingsListener] = []
        self.settings: TimerSettings = self._load(SETTINGS_KEY, TimerSettings.from_json, TimerSettings)
        self.session: TimerSession = self._load(SESSION_KEY, TimerSession.from_json, TimerSession)

    def _load(
        self, key: str, decode: Callable[[str], _Record], default: Callable[[], _Record]
    ) -> _Record:
        try:
            raw = self.store.get_value(key)
        except SQLAlchemyError:
            logger.error("Could not read %s; using defaults", key, exc_info=True)
            return default()
        if raw is None:
            return default()
        try:
            return decode(raw)
        except (ValueError, TypeError, KeyError):
            logger.debug("Stored %s is undecodable; using defaults", key)
            return default()

    def _persist(self, key: str, payload: str) -> bool:
        try:
            self.store.set_value(key, payload)
        except SQLAlchemyError:
            logger.error("Could not persist %s", key, exc_info=True)
            return False
        return True

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """Call ``listener`` with the new settings after every change."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def update_settings(self, **changes) -> TimerSettings:
        """Apply field changes, persist, then notify listeners.

        Raises ValueError for invalid values (non-positive durations or rounds)
        and TypeError for unknown fields; nothing is changed in that case.
        """
        with self._lock:
            updated = replace(self.settings, **changes)
            self.settings = updated
            self._persist(SETTINGS_KEY, updated.to_json())
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(updated)
            except Exception:
                logger.exception("Settings listener failed")
        return updated

    def reset_settings(self) -> TimerSettings:
        return self.update_settings(**asdict(TimerSettings()))

    # ------------------------------------------------------------------
    # Session statistics
    # ------------------------------------------------------------------

    def record_focus_completion(self, duration: float, completed_at: datetime) -> TimerSession:
        with self._lock:
            current = self.session
            self.session = replace(
                current,
                completed_focus_sessions=current.completed_focus_sessions + 1,
                total_focus_time=current.total_focus_time + duration,
                last_completed_at=completed_at,
            )
            self._persist(SESSION_KEY, self.session.to_json())
            return self.session

    def record_break_completion(self, is_long_break: bool) -> TimerSession:
        with self._lock:
            current = self.session
            if is_long_break:
                self.session = replace(current, completed_long_breaks=current.completed_long_breaks + 1)
            else:
                self.session = replace(
                    current, completed_short_breaks=current.completed_short_breaks + 1
                )
            self._persist(SESSION_KEY, self.session.to_json())
            return self.session

    def reset_session(self) -> TimerSession:
        with self._lock:
            self.session = TimerSession()
            self._persist(SESSION_KEY, self.session.to_json())
            return self.session


__all__ = ["PomodoroSettingsManager", "SESSION_KEY", "SETTINGS_KEY"]
