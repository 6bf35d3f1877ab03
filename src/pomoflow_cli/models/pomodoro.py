"""Pomodoro session, settings and history models."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from .cycling import Phase, phase_minutes

SessionStatus = Literal["ready", "running", "paused", "stopped"]
ManagerState = Literal["idle", "ready", "running", "paused", "stopped"]

ACTIVE_STATUSES: frozenset[str] = frozenset({"ready", "running", "paused"})
COUNTING_STATUSES: frozenset[str] = frozenset({"running", "paused"})


class PomodoroSettings(BaseModel):
    """User-configurable Pomodoro durations and toggles."""

    model_config = {"extra": "forbid"}

    work_minutes: int = Field(default=25, ge=1, description="Work phase length")
    short_break_minutes: int = Field(default=5, ge=1, description="Short break length")
    long_break_minutes: int = Field(default=15, ge=1, description="Long break length")
    sessions_until_long_break: int = Field(
        default=4, ge=1, description="Work phases per long break"
    )
    sound_enabled: bool = Field(default=True)
    notifications_enabled: bool = Field(default=True)
    auto_start_breaks: bool = Field(default=False)
    auto_start_work: bool = Field(default=False)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO 8601 timestamp (``Z`` suffix accepted) into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_timestamp(value: datetime | None) -> str | None:
    """Serialize a datetime as ISO 8601, leaving None alone."""
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class PomodoroSession:
    """An active Pomodoro session as persisted in the store.

    Instances are immutable; the session manager produces a new value for
    every transition.
    """

    id: str
    user_id: str
    phase: Phase
    status: SessionStatus
    remaining_seconds: int
    task_id: str | None = None
    task_title: str | None = None
    completed_work_count: int = 0
    completed_break_count: int = 0
    work_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    sessions_until_long_break: int = 4
    # remaining_seconds was measured at this instant while running
    running_since: datetime | None = None
    paused_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        duration = self.duration_seconds
        if not 0 <= self.remaining_seconds <= duration:
            raise ValueError(
                f"remaining_seconds must be within [0, {duration}], "
                f"got {self.remaining_seconds}"
            )
        if self.completed_work_count < 0 or self.completed_break_count < 0:
            raise ValueError("completed counters cannot be negative")

    @property
    def duration_seconds(self) -> int:
        """Full length of the current phase in seconds."""
        return self.phase_seconds(self.phase)

    @property
    def elapsed_seconds(self) -> int:
        """Seconds of the current phase already spent."""
        return self.duration_seconds - self.remaining_seconds

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def phase_seconds(self, phase: Phase) -> int:
        """Full length of ``phase`` using this session's duration snapshot."""
        minutes = phase_minutes(
            phase,
            self.work_minutes,
            self.short_break_minutes,
            self.long_break_minutes,
        )
        return minutes * 60

    def live_remaining(self, now: datetime) -> int:
        """Remaining seconds at ``now``, accounting for time spent running."""
        if self.status != "running" or self.running_since is None:
            return self.remaining_seconds
        elapsed = int((now - self.running_since).total_seconds())
        return max(0, min(self.remaining_seconds, self.remaining_seconds - elapsed))

    def evolve(self, **changes: Any) -> PomodoroSession:
        """Return a copy with ``changes`` applied (validated again)."""
        return replace(self, **changes)

    def to_row(self) -> dict[str, Any]:
        """Convert to a store row."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "task_id": self.task_id,
            "task_title": self.task_title,
            "phase": self.phase,
            "session_status": self.status,
            "remaining_seconds": self.remaining_seconds,
            "completed_work_sessions": self.completed_work_count,
            "completed_break_sessions": self.completed_break_count,
            "work_duration": self.work_minutes,
            "short_break_duration": self.short_break_minutes,
            "long_break_duration": self.long_break_minutes,
            "sessions_until_long_break": self.sessions_until_long_break,
            "running_since": format_timestamp(self.running_since),
            "paused_at": format_timestamp(self.paused_at),
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> PomodoroSession:
        """Create from a store row."""
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            task_id=row.get("task_id"),
            task_title=row.get("task_title"),
            phase=row["phase"],
            status=row["session_status"],
            remaining_seconds=int(row["remaining_seconds"]),
            completed_work_count=int(row.get("completed_work_sessions") or 0),
            completed_break_count=int(row.get("completed_break_sessions") or 0),
            work_minutes=int(row.get("work_duration") or 25),
            short_break_minutes=int(row.get("short_break_duration") or 5),
            long_break_minutes=int(row.get("long_break_duration") or 15),
            sessions_until_long_break=int(row.get("sessions_until_long_break") or 4),
            running_since=parse_timestamp(row.get("running_since")),
            paused_at=parse_timestamp(row.get("paused_at")),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
        )


@dataclass
class SessionRecord:
    """One finished (completed or interrupted) phase in the history table."""

    user_id: str
    phase: Phase
    duration_minutes: int
    completed_at: datetime
    task_id: str | None = None
    session_ref: str | None = None
    interrupted: bool = False
    pomodoro_number: int = 1
    break_number: int = 0
    id: str | None = None

    def to_row(self) -> dict[str, Any]:
        row = {
            "user_id": self.user_id,
            "task_id": self.task_id,
            "session_ref": self.session_ref,
            "session_type": self.phase,
            "duration_minutes": self.duration_minutes,
            "interrupted": self.interrupted,
            "pomodoro_number": self.pomodoro_number,
            "break_number": self.break_number,
            "completed_at": format_timestamp(self.completed_at),
        }
        if self.id is not None:
            row["id"] = self.id
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> SessionRecord:
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            user_id=str(row["user_id"]),
            task_id=row.get("task_id"),
            session_ref=row.get("session_ref"),
            phase=row["session_type"],
            duration_minutes=int(row.get("duration_minutes") or 0),
            interrupted=bool(row.get("interrupted")),
            pomodoro_number=int(row.get("pomodoro_number") or 0),
            break_number=int(row.get("break_number") or 0),
            completed_at=parse_timestamp(row["completed_at"]),
        )


@dataclass
class TickResult:
    """Outcome of a single timer tick."""

    session: PomodoroSession
    completed: bool = False
    completed_phase: Phase | None = None
