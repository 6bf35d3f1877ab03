"""Pomodoro phase rules.

Pure functions shared by the session manager and the CLI: which phase follows
which, and how long each phase lasts.
"""

from __future__ import annotations

from typing import Literal

Phase = Literal["work", "short_break", "long_break"]
BreakPhase = Literal["short_break", "long_break"]

PHASES: tuple[Phase, ...] = ("work", "short_break", "long_break")
BREAK_PHASES: frozenset[str] = frozenset({"short_break", "long_break"})


def is_break(phase: str) -> bool:
    """Return True for short and long breaks."""
    return phase in BREAK_PHASES


def determine_break_type(
    completed_work_count: int, sessions_until_long_break: int
) -> BreakPhase:
    """Pick the break that follows a work phase.

    A count divisible by ``sessions_until_long_break`` earns a long break,
    zero included. Completion passes the count including the phase that just
    ended; skip passes the unchanged count.
    """
    if sessions_until_long_break < 1:
        raise ValueError("sessions_until_long_break must be at least 1")
    if completed_work_count % sessions_until_long_break == 0:
        return "long_break"
    return "short_break"


def next_phase(
    current: Phase, completed_work_count: int, sessions_until_long_break: int
) -> Phase:
    """Return the phase after ``current``.

    Breaks always lead back to work; work leads to a break chosen by
    :func:`determine_break_type`.
    """
    if current == "work":
        return determine_break_type(completed_work_count, sessions_until_long_break)
    return "work"


def phase_minutes(
    phase: Phase, work_minutes: int, short_break_minutes: int, long_break_minutes: int
) -> int:
    """Get the configured length of a phase in minutes."""
    if phase == "work":
        return work_minutes
    if phase == "short_break":
        return short_break_minutes
    if phase == "long_break":
        return long_break_minutes
    raise ValueError(f"Unknown phase: {phase}")


def phase_label(phase: str) -> str:
    """Human label for a phase ("short_break" -> "Short break")."""
    return phase.replace("_", " ").capitalize()
