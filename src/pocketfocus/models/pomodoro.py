"""Pomodoro timer value objects: settings, cumulative statistics and snapshots."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class TimerMode(str, Enum):
    INITIAL = "initial"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


class TimerPhase(str, Enum):
    FOCUS = "focus"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def is_break(self) -> bool:
        return self is not TimerPhase.FOCUS


@dataclass(slots=True)
class TimerSettings:
    """User-tunable timer configuration. Durations are in seconds."""

    focus_duration: float = 25 * 60
    short_break_duration: float = 5 * 60
    long_break_duration: float = 15 * 60
    auto_start_breaks: bool = True
    auto_start_focus: bool = False
    enable_metronome: bool = False
    rounds_before_long_break: int = 4

    def __post_init__(self) -> None:
        for name in ("focus_duration", "short_break_duration", "long_break_duration"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if int(self.rounds_before_long_break) != self.rounds_before_long_break:
            raise ValueError("rounds_before_long_break must be an integer")
        if self.rounds_before_long_break < 1:
            raise ValueError("rounds_before_long_break must be at least 1")

    def duration_for(self, phase: TimerPhase) -> float:
        if phase is TimerPhase.FOCUS:
            return self.focus_duration
        if phase is TimerPhase.SHORT_BREAK:
            return self.short_break_duration
        return self.long_break_duration

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "TimerSettings":
        """Decode a stored record; raises ValueError/TypeError on bad data."""
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise TypeError("settings record must be a JSON object")
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass(slots=True)
class TimerSession:
    """Cumulative statistics across all pomodoro phases."""

    completed_focus_sessions: int = 0
    completed_short_breaks: int = 0
    completed_long_breaks: int = 0
    total_focus_time: float = 0.0  # seconds
    last_completed_at: Optional[datetime] = None

    def to_json(self) -> str:
        data: dict[str, Any] = asdict(self)
        if self.last_completed_at is not None:
            data["last_completed_at"] = self.last_completed_at.isoformat()
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> "TimerSession":
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise TypeError("session record must be a JSON object")
        stamp = data.get("last_completed_at")
        return cls(
            completed_focus_sessions=int(data.get("completed_focus_sessions", 0)),
            completed_short_breaks=int(data.get("completed_short_breaks", 0)),
            completed_long_breaks=int(data.get("completed_long_breaks", 0)),
            total_focus_time=float(data.get("total_focus_time", 0.0)),
            last_completed_at=datetime.fromisoformat(stamp) if stamp else None,
        )


@dataclass(frozen=True, slots=True)
class TimerSnapshot:
    """Immutable view of the timer's runtime state for observers."""

    mode: TimerMode
    phase: TimerPhase
    remaining: float
    total: float
    progress: float
    current_round: int
    scheduled_end: Optional[datetime] = None

    @property
    def formatted_remaining(self) -> str:
        seconds = int(self.remaining)
        return f"{seconds // 60:02d}:{seconds % 60:02d}"
