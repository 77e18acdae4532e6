"""Command line interface for PocketFocus."""

from __future__ import annotations

import time
from datetime import date

import click

from .config import BaseConfig
from .context import AppContext, create_app_context
from .domain.errors import HabitNotFoundError, TaskNotFoundError
from .logging_config import setup_logging
from .models.pomodoro import TimerMode, TimerSnapshot
from .models.task import TaskPriority, TodoTask, join_tags

PRIORITIES = {priority.name.lower(): priority for priority in TaskPriority}


def _app(ctx: click.Context) -> AppContext:
    """Build the application context on first use and close it with the command."""

    root = ctx.find_root()
    if root.obj is None:
        config = BaseConfig(root.params.get("data_dir"))
        setup_logging(config, console=root.params.get("verbose", False))
        root.obj = create_app_context(config, start_scheduler=False)
        root.call_on_close(root.obj.close)
    return root.obj


def _parse_day(value: str | None) -> date:
    if value is None:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}") from exc


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding the database and logs.",
)
@click.option("-v", "--verbose", is_flag=True, help="Echo log messages to stderr.")
def cli(data_dir: str | None, verbose: bool) -> None:
    """Habits, tasks and a pomodoro timer."""


# ----------------------------------------------------------------------
# Habits
# ----------------------------------------------------------------------


@cli.group()
def habits() -> None:
    """Track daily habits and streaks."""


@habits.command("add")
@click.argument("title")
@click.option("--description", default="", help="Longer description.")
@click.pass_context
def habits_add(ctx: click.Context, title: str, description: str) -> None:
    try:
        habit = _app(ctx).habits.create_habit(title, description)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="TITLE") from exc
    click.echo(f"Created habit {habit.id}: {habit.title}")


@habits.command("list")
@click.option("--search", default=None, help="Filter by title or description.")
@click.pass_context
def habits_list(ctx: click.Context, search: str | None) -> None:
    engine = _app(ctx).habits
    rows = engine.list_habits(search)
    if not rows:
        click.echo("No habits yet.")
        return
    for habit in rows:
        streak = engine.current_streak(habit.id)
        done = "x" if engine.has_entry(habit.id, date.today()) else " "
        click.echo(f"[{done}] {habit.id:>3}  {habit.title}  (streak {streak})")


@habits.command("toggle")
@click.argument("habit_id", type=int)
@click.option("--day", default=None, help="Day to toggle (YYYY-MM-DD), default today.")
@click.pass_context
def habits_toggle(ctx: click.Context, habit_id: int, day: str | None) -> None:
    target = _parse_day(day)
    try:
        completed = _app(ctx).habits.toggle_completion(habit_id, target)
    except HabitNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--day") from exc
    state = "completed" if completed else "not completed"
    click.echo(f"Habit {habit_id} {state} on {target.isoformat()}")


@habits.command("stats")
@click.argument("habit_id", type=int)
@click.pass_context
def habits_stats(ctx: click.Context, habit_id: int) -> None:
    engine = _app(ctx).habits
    try:
        habit = engine.get_habit(habit_id)
    except HabitNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    stats = engine.stats(habit_id)
    click.echo(habit.title)
    click.echo(f"Current streak: {stats.current_streak}")
    click.echo(f"Longest streak: {stats.longest_streak}")
    click.echo(f"Total entries:  {stats.total_entries}")


@habits.command("grid")
@click.argument("habit_id", type=int)
@click.option("--weeks", default=12, show_default=True, type=click.IntRange(1, 52))
@click.pass_context
def habits_grid(ctx: click.Context, habit_id: int, weeks: int) -> None:
    """Print the activity grid, one row per weekday."""
    engine = _app(ctx).habits
    try:
        engine.get_habit(habit_id)
    except HabitNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    columns = engine.activity_grid(habit_id, weeks=weeks)
    for row in range(7):
        label = columns[-1][row].day.strftime("%a")
        marks = []
        for column in columns:
            cell = column[row]
            marks.append(" " if cell.is_future else ("#" if cell.completed else "."))
        click.echo(f"{label} {''.join(marks)}")


# ----------------------------------------------------------------------
# Tasks
# ----------------------------------------------------------------------


@cli.group()
def tasks() -> None:
    """Manage the to-do list."""


@tasks.command("add")
@click.argument("title")
@click.option("--due", default=None, help="Due date (YYYY-MM-DD).")
@click.option(
    "--priority",
    type=click.Choice(sorted(PRIORITIES)),
    default="medium",
    show_default=True,
)
@click.option("--tag", "tags", multiple=True, help="Tag; may be repeated.")
@click.pass_context
def tasks_add(ctx: click.Context, title: str, due: str | None, priority: str, tags: tuple[str, ...]) -> None:
    if not title.strip():
        raise click.BadParameter("title must not be empty", param_hint="TITLE")
    app = _app(ctx)
    task = TodoTask(
        user_id=app.require_user_id(),
        title=title.strip(),
        due_date=_parse_day(due) if due else None,
        priority=int(PRIORITIES[priority]),
        tags=join_tags(tags),
    )
    created = app.task_repo.create(task, user_id=app.require_user_id())
    click.echo(f"Created task {created.id}: {created.title}")


@tasks.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include completed tasks.")
@click.option("--tag", default=None)
@click.pass_context
def tasks_list(ctx: click.Context, show_all: bool, tag: str | None) -> None:
    app = _app(ctx)
    rows = app.task_repo.filter(
        user_id=app.require_user_id(),
        is_completed=None if show_all else False,
        tag=tag,
    )
    if not rows:
        click.echo("No tasks.")
        return
    for task in rows:
        done = "x" if task.is_completed else " "
        due = f"  due {task.due_date.isoformat()}" if task.due_date else ""
        label = TaskPriority(task.priority).label
        click.echo(f"[{done}] {task.id:>3}  {task.title}  ({label}){due}")


@tasks.command("done")
@click.argument("task_id", type=int)
@click.pass_context
def tasks_done(ctx: click.Context, task_id: int) -> None:
    """Toggle a task's completion."""
    app = _app(ctx)
    try:
        task = app.task_repo.toggle_completion(task_id, user_id=app.require_user_id())
    except TaskNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Task {task.id} {'completed' if task.is_completed else 'reopened'}")


@tasks.command("delete")
@click.argument("task_id", type=int)
@click.pass_context
def tasks_delete(ctx: click.Context, task_id: int) -> None:
    app = _app(ctx)
    app.task_repo.delete(task_id, user_id=app.require_user_id())
    click.echo(f"Deleted task {task_id}")


# ----------------------------------------------------------------------
# Timer
# ----------------------------------------------------------------------


@cli.group()
def timer() -> None:
    """Pomodoro timer."""


def _render(snapshot: TimerSnapshot) -> str:
    phase = snapshot.phase.value.replace("_", " ")
    return f"\r{phase:<12} {snapshot.formatted_remaining}  round {snapshot.current_round}  {snapshot.mode.value:<8}"


@timer.command("run")
@click.option("--phases", default=1, show_default=True, type=click.IntRange(1), help="Phases to complete before exiting.")
@click.pass_context
def timer_run(ctx: click.Context, phases: int) -> None:
    """Run the timer in the foreground; Ctrl-C pauses and exits."""
    app = _app(ctx)
    pomodoro = app.timer
    completed = 0
    last_phase = pomodoro.phase

    def on_snapshot(snapshot: TimerSnapshot) -> None:
        click.echo(_render(snapshot), nl=False)

    remove = pomodoro.add_listener(on_snapshot)
    app.scheduler.start()
    if app.quotes.enabled:
        app.quotes.schedule()
    try:
        pomodoro.start()
        while completed < phases:
            time.sleep(0.5)
            pomodoro.check_timer_status()
            if pomodoro.phase is not last_phase:
                completed += 1
                last_phase = pomodoro.phase
                click.echo("")
                if completed < phases and pomodoro.mode is TimerMode.INITIAL:
                    pomodoro.start()
    except KeyboardInterrupt:
        pomodoro.pause()
        click.echo("\nPaused.")
    finally:
        remove()
    session = pomodoro.session
    click.echo(f"Focus sessions completed: {session.completed_focus_sessions}")


@timer.command("stats")
@click.pass_context
def timer_stats(ctx: click.Context) -> None:
    session = _app(ctx).pomodoro_settings.session
    click.echo(f"Focus sessions: {session.completed_focus_sessions}")
    click.echo(f"Short breaks:   {session.completed_short_breaks}")
    click.echo(f"Long breaks:    {session.completed_long_breaks}")
    click.echo(f"Focus minutes:  {int(session.total_focus_time // 60)}")
    if session.last_completed_at is not None:
        click.echo(f"Last completed: {session.last_completed_at.isoformat(timespec='minutes')}")


@timer.command("reset-stats")
@click.confirmation_option(prompt="Reset all pomodoro statistics?")
@click.pass_context
def timer_reset_stats(ctx: click.Context) -> None:
    _app(ctx).pomodoro_settings.reset_session()
    click.echo("Statistics reset.")


@timer.command("settings")
@click.option("--focus", type=click.FloatRange(min=0, min_open=True), help="Focus minutes.")
@click.option("--short-break", type=click.FloatRange(min=0, min_open=True), help="Short break minutes.")
@click.option("--long-break", type=click.FloatRange(min=0, min_open=True), help="Long break minutes.")
@click.option("--rounds", type=click.IntRange(1), help="Focus sessions before a long break.")
@click.option("--auto-breaks/--no-auto-breaks", default=None)
@click.option("--auto-focus/--no-auto-focus", default=None)
@click.option("--metronome/--no-metronome", default=None)
@click.option("--reset", is_flag=True, help="Restore defaults.")
@click.pass_context
def timer_settings(
    ctx: click.Context,
    focus: float | None,
    short_break: float | None,
    long_break: float | None,
    rounds: int | None,
    auto_breaks: bool | None,
    auto_focus: bool | None,
    metronome: bool | None,
    reset: bool,
) -> None:
    """Show or change timer settings."""
    manager = _app(ctx).pomodoro_settings
    if reset:
        manager.reset_settings()
    changes = {
        "focus_duration": focus * 60 if focus is not None else None,
        "short_break_duration": short_break * 60 if short_break is not None else None,
        "long_break_duration": long_break * 60 if long_break is not None else None,
        "rounds_before_long_break": rounds,
        "auto_start_breaks": auto_breaks,
        "auto_start_focus": auto_focus,
        "enable_metronome": metronome,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if changes:
        manager.update_settings(**changes)
    settings = manager.settings
    click.echo(f"Focus:        {settings.focus_duration / 60:g} min")
    click.echo(f"Short break:  {settings.short_break_duration / 60:g} min")
    click.echo(f"Long break:   {settings.long_break_duration / 60:g} min")
    click.echo(f"Rounds:       {settings.rounds_before_long_break}")
    click.echo(f"Auto breaks:  {'on' if settings.auto_start_breaks else 'off'}")
    click.echo(f"Auto focus:   {'on' if settings.auto_start_focus else 'off'}")
    click.echo(f"Metronome:    {'on' if settings.enable_metronome else 'off'}")


# ----------------------------------------------------------------------
# Quotes
# ----------------------------------------------------------------------


@cli.group()
def quotes() -> None:
    """Motivational quote reminders."""


@quotes.command("enable")
@click.pass_context
def quotes_enable(ctx: click.Context) -> None:
    count = _app(ctx).quotes.set_enabled(True)
    click.echo(f"Quote reminders enabled ({count} scheduled).")


@quotes.command("disable")
@click.pass_context
def quotes_disable(ctx: click.Context) -> None:
    _app(ctx).quotes.set_enabled(False)
    click.echo("Quote reminders disabled.")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
