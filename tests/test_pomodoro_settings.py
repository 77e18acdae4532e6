"""Tests for persisted pomodoro settings and statistics."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

import pytest

from pocketfocus.infra.repositories import SQLModelSettingsRepository
from pocketfocus.models.pomodoro import TimerPhase, TimerSession, TimerSettings
from pocketfocus.services.pomodoro_settings import SESSION_KEY, SETTINGS_KEY, PomodoroSettingsManager


def test_defaults_when_store_is_empty(settings_manager):
    settings = settings_manager.settings

    assert settings.focus_duration == 1500
    assert settings.short_break_duration == 300
    assert settings.long_break_duration == 900
    assert settings.auto_start_breaks is True
    assert settings.auto_start_focus is False
    assert settings.enable_metronome is False
    assert settings.rounds_before_long_break == 4
    assert settings_manager.session == TimerSession()


def test_undecodable_records_fall_back_to_defaults(settings_store, caplog):
    settings_store.values[SETTINGS_KEY] = "{not json"
    settings_store.values[SESSION_KEY] = json.dumps(["wrong", "shape"])

    with caplog.at_level(logging.DEBUG, logger="pocketfocus.pomodoro.settings"):
        manager = PomodoroSettingsManager(settings_store)

    assert manager.settings == TimerSettings()
    assert manager.session == TimerSession()
    assert "undecodable" in caplog.text


def test_read_failure_falls_back_to_defaults(settings_store, caplog):
    settings_store.fail_reads = True

    with caplog.at_level(logging.ERROR, logger="pocketfocus.pomodoro.settings"):
        manager = PomodoroSettingsManager(settings_store)

    assert manager.settings == TimerSettings()
    assert "Could not read" in caplog.text


def test_unknown_stored_fields_are_ignored(settings_store):
    settings_store.values[SETTINGS_KEY] = json.dumps({"focus_duration": 1200, "theme": "dark"})

    manager = PomodoroSettingsManager(settings_store)

    assert manager.settings.focus_duration == 1200
    assert manager.settings.short_break_duration == 300


def test_update_persists_and_notifies(settings_manager, settings_store):
    received = []
    unsubscribe = settings_manager.subscribe(received.append)

    settings_manager.update_settings(focus_duration=50 * 60, rounds_before_long_break=3)
    unsubscribe()
    settings_manager.update_settings(auto_start_focus=True)

    stored = json.loads(settings_store.values[SETTINGS_KEY])
    assert stored["focus_duration"] == 3000
    assert stored["auto_start_focus"] is True
    assert len(received) == 1
    assert received[0].rounds_before_long_break == 3


@pytest.mark.parametrize(
    "changes",
    [
        {"focus_duration": 0},
        {"short_break_duration": -5},
        {"rounds_before_long_break": 0},
        {"rounds_before_long_break": 2.5},
    ],
)
def test_invalid_settings_are_rejected(settings_manager, settings_store, changes):
    with pytest.raises(ValueError):
        settings_manager.update_settings(**changes)

    assert settings_manager.settings == TimerSettings()
    assert SETTINGS_KEY not in settings_store.values


def test_unknown_setting_is_rejected(settings_manager):
    with pytest.raises(TypeError):
        settings_manager.update_settings(theme="dark")


def test_reset_settings(settings_manager):
    settings_manager.update_settings(focus_duration=60, enable_metronome=True)

    restored = settings_manager.reset_settings()

    assert restored == TimerSettings()


def test_session_counters(settings_manager, settings_store):
    stamp = datetime(2025, 5, 14, 10, 30, tzinfo=timezone.utc)

    settings_manager.record_focus_completion(1500, stamp)
    settings_manager.record_focus_completion(1500, stamp)
    settings_manager.record_break_completion(is_long_break=False)
    settings_manager.record_break_completion(is_long_break=True)

    reloaded = PomodoroSettingsManager(settings_store).session
    assert reloaded.completed_focus_sessions == 2
    assert reloaded.total_focus_time == 3000
    assert reloaded.completed_short_breaks == 1
    assert reloaded.completed_long_breaks == 1
    assert reloaded.last_completed_at == stamp

    settings_manager.reset_session()
    assert PomodoroSettingsManager(settings_store).session == TimerSession()


def test_duration_for_phase():
    settings = TimerSettings(focus_duration=10, short_break_duration=2, long_break_duration=5)

    assert settings.duration_for(TimerPhase.FOCUS) == 10
    assert settings.duration_for(TimerPhase.SHORT_BREAK) == 2
    assert settings.duration_for(TimerPhase.LONG_BREAK) == 5


def test_settings_round_trip_through_database(session_factory, user):
    store = SQLModelSettingsRepository(session_factory, user_id=user.id)
    manager = PomodoroSettingsManager(store)
    manager.update_settings(short_break_duration=420)
    manager.record_focus_completion(1500, datetime(2025, 5, 14, tzinfo=timezone.utc))

    reloaded = PomodoroSettingsManager(SQLModelSettingsRepository(session_factory, user_id=user.id))

    assert reloaded.settings.short_break_duration == 420
    assert reloaded.session.completed_focus_sessions == 1


def test_settings_are_namespaced_per_user(session_factory, user, other_user):
    PomodoroSettingsManager(SQLModelSettingsRepository(session_factory, user_id=user.id)).update_settings(
        focus_duration=900
    )

    other = PomodoroSettingsManager(SQLModelSettingsRepository(session_factory, user_id=other_user.id))

    assert other.settings.focus_duration == 1500
