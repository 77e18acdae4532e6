"""Tests for the pomodoro timer state machine."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from pocketfocus.models.pomodoro import TimerMode, TimerPhase, TimerSession
from pocketfocus.services.pomodoro import TIMER_END_NOTIFICATION_ID, PomodoroTimer
from pocketfocus.services.pomodoro_settings import SESSION_KEY, PomodoroSettingsManager


def test_initial_state(pomodoro):
    snapshot = pomodoro.snapshot()

    assert snapshot.mode is TimerMode.INITIAL
    assert snapshot.phase is TimerPhase.FOCUS
    assert snapshot.remaining == 1500
    assert snapshot.progress == 1.0
    assert snapshot.current_round == 1
    assert snapshot.scheduled_end is None
    assert pomodoro.formatted_time() == "25:00"


def test_start_schedules_end_and_countdown(pomodoro, notifier, countdown, clock):
    assert pomodoro.start() is True

    assert pomodoro.mode is TimerMode.RUNNING
    assert pomodoro.scheduled_end == clock.now + timedelta(seconds=1500)
    assert countdown.active and countdown.interval == 1.0
    title, body, fire_at = notifier.pending[TIMER_END_NOTIFICATION_ID]
    assert (title, body) == ("Focus session completed!", "Time for a break.")
    assert fire_at == pomodoro.scheduled_end


def test_start_while_running_is_ignored(pomodoro, countdown):
    pomodoro.start()

    assert pomodoro.start() is False
    assert countdown.starts == 1


def test_tick_ignored_unless_running(pomodoro):
    pomodoro.tick()

    assert pomodoro.remaining == 1500


def test_ticks_count_down(pomodoro, countdown):
    pomodoro.start()
    countdown.fire(61)

    assert pomodoro.remaining == 1439
    assert pomodoro.formatted_time() == "23:59"
    assert pomodoro.progress == pytest.approx(1439 / 1500)


def test_full_focus_phase_switches_to_running_break(pomodoro, countdown, settings_manager, notifier):
    pomodoro.start()
    countdown.fire(1500)

    session = settings_manager.session
    assert session.completed_focus_sessions == 1
    assert session.total_focus_time == 1500
    assert session.last_completed_at is not None
    assert pomodoro.phase is TimerPhase.SHORT_BREAK
    assert pomodoro.mode is TimerMode.RUNNING  # breaks auto-start by default
    assert pomodoro.remaining == 300
    assert notifier.pending[TIMER_END_NOTIFICATION_ID][0] == "Short break completed!"


def test_full_focus_phase_without_auto_start(pomodoro, countdown, settings_manager):
    settings_manager.update_settings(auto_start_breaks=False)
    pomodoro.start()
    countdown.fire(1500)

    assert pomodoro.phase is TimerPhase.SHORT_BREAK
    assert pomodoro.mode is TimerMode.INITIAL
    assert pomodoro.remaining == 300
    assert not countdown.active


def test_completion_notification_fires_one_second_later(pomodoro, notifier):
    pomodoro.skip_to_next()

    completion = [entry for entry in notifier.history if entry[0] != TIMER_END_NOTIFICATION_ID][0]
    _, title, body, fire_at = completion
    assert (title, body) == ("Focus session completed!", "Time for a break.")
    assert fire_at == timedelta(seconds=1)


def test_long_break_after_configured_rounds(pomodoro, settings_manager):
    phases = []
    rounds = []
    for _ in range(4):
        assert pomodoro.phase is TimerPhase.FOCUS
        pomodoro.skip_to_next()
        phases.append(pomodoro.phase)
        rounds.append(pomodoro.current_round)
        pomodoro.skip_to_next()

    assert phases == [TimerPhase.SHORT_BREAK] * 3 + [TimerPhase.LONG_BREAK]
    assert rounds == [1, 1, 1, 2]
    assert settings_manager.session.completed_short_breaks == 3
    assert settings_manager.session.completed_long_breaks == 1


def test_break_completion_returns_to_focus(pomodoro, settings_manager):
    pomodoro.skip_to_next()
    pomodoro.skip_to_next()

    assert pomodoro.phase is TimerPhase.FOCUS
    assert pomodoro.mode is TimerMode.INITIAL  # focus does not auto-start by default
    assert pomodoro.remaining == 1500
    assert settings_manager.session.completed_short_breaks == 1


def test_auto_start_focus(pomodoro, settings_manager):
    settings_manager.update_settings(auto_start_focus=True)
    pomodoro.skip_to_next()
    pomodoro.skip_to_next()

    assert pomodoro.phase is TimerPhase.FOCUS
    assert pomodoro.mode is TimerMode.RUNNING


def test_pause_then_start_keeps_remaining(pomodoro, countdown, notifier, clock):
    pomodoro.start()
    countdown.fire(100)

    assert pomodoro.pause() is True
    assert pomodoro.mode is TimerMode.PAUSED
    assert pomodoro.remaining == 1400
    assert pomodoro.scheduled_end is None
    assert not countdown.active
    assert TIMER_END_NOTIFICATION_ID not in notifier.pending

    clock.advance(600)
    pomodoro.start()

    assert pomodoro.remaining == 1400
    assert pomodoro.scheduled_end == clock.now + timedelta(seconds=1400)


def test_pause_only_from_running(pomodoro):
    assert pomodoro.pause() is False
    assert pomodoro.mode is TimerMode.INITIAL


def test_stale_countdown_callback_is_ignored(pomodoro, countdown):
    pomodoro.start()
    countdown.fire(5)
    pomodoro.pause()

    countdown.stale[-1]()

    assert pomodoro.remaining == 1495
    assert pomodoro.mode is TimerMode.PAUSED


def test_reset_restores_full_duration(pomodoro, countdown, notifier):
    pomodoro.start()
    countdown.fire(30)

    pomodoro.reset()

    assert pomodoro.mode is TimerMode.INITIAL
    assert pomodoro.remaining == pomodoro.total == 1500
    assert pomodoro.scheduled_end is None
    assert not countdown.active
    assert TIMER_END_NOTIFICATION_ID not in notifier.pending


def test_resume_after_deadline_completes_exactly_once(pomodoro, settings_manager, clock):
    pomodoro.start()
    clock.advance(1510)

    pomodoro.check_timer_status()
    pomodoro.check_timer_status()

    assert settings_manager.session.completed_focus_sessions == 1
    assert pomodoro.phase is TimerPhase.SHORT_BREAK
    assert pomodoro.remaining == 300


def test_resume_before_deadline_recomputes_remaining(pomodoro, clock):
    pomodoro.start()
    deadline = pomodoro.scheduled_end
    clock.advance(90.5)

    pomodoro.check_timer_status()

    assert pomodoro.mode is TimerMode.RUNNING
    assert pomodoro.remaining == pytest.approx(1409.5)
    assert pomodoro.scheduled_end == deadline


def test_resume_ignored_when_not_running(pomodoro, clock, settings_manager):
    clock.advance(5000)
    pomodoro.check_timer_status()

    assert settings_manager.session.completed_focus_sessions == 0


def test_skip_matches_natural_expiry(settings_store, notifier, countdown, metronome, clock):
    natural = PomodoroSettingsManager(settings_store)
    timer = PomodoroTimer(natural, notifier, countdown, metronome, clock=clock)
    timer.start()
    countdown.fire(1500)
    expired = natural.session
    timer.shutdown()

    skipped_manager = PomodoroSettingsManager(type(settings_store)())
    skipped = PomodoroTimer(skipped_manager, notifier, countdown, metronome, clock=clock)
    skipped.start()
    countdown.fire(10)
    skipped.skip_to_next()

    assert skipped_manager.session.completed_focus_sessions == expired.completed_focus_sessions == 1
    assert skipped_manager.session.total_focus_time == expired.total_focus_time
    assert skipped.phase is timer.phase
    skipped.shutdown()


def test_settings_apply_live_only_when_initial(pomodoro, settings_manager, countdown):
    settings_manager.update_settings(focus_duration=600)
    assert pomodoro.remaining == pomodoro.total == 600

    pomodoro.start()
    countdown.fire(10)
    settings_manager.update_settings(focus_duration=1200)

    assert pomodoro.remaining == 590
    assert pomodoro.total == 600


def test_round_recomputed_on_settings_change(settings_store, notifier, countdown, clock):
    settings_store.values[SESSION_KEY] = TimerSession(completed_focus_sessions=5).to_json()
    manager = PomodoroSettingsManager(settings_store)
    timer = PomodoroTimer(manager, notifier, countdown, clock=clock)
    assert timer.current_round == 2

    manager.update_settings(rounds_before_long_break=2)

    assert timer.current_round == 3
    timer.shutdown()


def test_round_follows_session_reset(pomodoro, settings_manager):
    for _ in range(8):
        pomodoro.skip_to_next()
    assert pomodoro.current_round == 2

    settings_manager.reset_session()

    assert pomodoro.current_round == 1
    assert pomodoro.snapshot().current_round == 1


def test_metronome_follows_setting(pomodoro, settings_manager, metronome, countdown):
    settings_manager.update_settings(enable_metronome=True)
    assert metronome.playing is False

    pomodoro.start()
    assert metronome.playing is True

    settings_manager.update_settings(enable_metronome=False)
    assert metronome.playing is False

    settings_manager.update_settings(enable_metronome=True)
    assert metronome.playing is True

    pomodoro.pause()
    assert metronome.playing is False


def test_notification_failures_do_not_block_transitions(pomodoro, notifier, settings_manager, caplog):
    notifier.fail = True

    with caplog.at_level(logging.WARNING, logger="pocketfocus.pomodoro"):
        assert pomodoro.start() is True
        pomodoro.pause()
        pomodoro.skip_to_next()

    assert settings_manager.session.completed_focus_sessions == 1
    assert pomodoro.phase is TimerPhase.SHORT_BREAK
    assert any("notification" in record.getMessage() for record in caplog.records)


def test_persistence_failure_keeps_in_memory_stats(pomodoro, settings_store, settings_manager, caplog):
    settings_store.fail_writes = True

    with caplog.at_level(logging.ERROR, logger="pocketfocus.pomodoro.settings"):
        pomodoro.skip_to_next()

    assert settings_manager.session.completed_focus_sessions == 1
    assert pomodoro.phase is TimerPhase.SHORT_BREAK
    assert any(record.levelno == logging.ERROR for record in caplog.records)


def test_listeners_receive_snapshots(pomodoro, countdown):
    seen = []
    remove = pomodoro.add_listener(seen.append)

    pomodoro.start()
    countdown.fire(2)
    remove()
    countdown.fire(1)

    assert [snapshot.mode for snapshot in seen] == [TimerMode.RUNNING] * 3
    assert [snapshot.remaining for snapshot in seen] == [1500, 1499, 1498]


def test_failing_listener_is_logged(pomodoro, caplog):
    def broken(snapshot):
        raise RuntimeError("render failed")

    pomodoro.add_listener(broken)
    with caplog.at_level(logging.ERROR, logger="pocketfocus.pomodoro"):
        pomodoro.start()

    assert pomodoro.mode is TimerMode.RUNNING
    assert "Timer listener failed" in caplog.text


def test_shutdown_stops_everything(pomodoro, countdown, notifier, metronome, settings_manager):
    settings_manager.update_settings(enable_metronome=True)
    pomodoro.start()

    pomodoro.shutdown()

    assert not countdown.active
    assert not metronome.playing
    assert TIMER_END_NOTIFICATION_ID not in notifier.pending

    settings_manager.update_settings(focus_duration=60)
    assert pomodoro.total == 1500  # detached from settings changes
