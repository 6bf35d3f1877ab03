"""Domain models for Pomoflow."""

from .config_models import APIConfig, AppConfig, Context, OutputConfig, TimerConfig
from .cycling import BreakPhase, Phase, determine_break_type, next_phase
from .exceptions import (
    InvalidTransitionError,
    PomoflowError,
    SessionNotFoundError,
    SessionPersistenceError,
)
from .pomodoro import (
    ManagerState,
    PomodoroSession,
    PomodoroSettings,
    SessionRecord,
    SessionStatus,
    TickResult,
)

__all__ = [
    "APIConfig",
    "AppConfig",
    "BreakPhase",
    "Context",
    "InvalidTransitionError",
    "ManagerState",
    "OutputConfig",
    "Phase",
    "PomodoroSession",
    "PomodoroSettings",
    "PomoflowError",
    "SessionNotFoundError",
    "SessionPersistenceError",
    "SessionRecord",
    "SessionStatus",
    "TickResult",
    "TimerConfig",
    "determine_break_type",
    "next_phase",
]
