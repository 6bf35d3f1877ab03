"""Live countdown rendering for the timer commands."""

from __future__ import annotations

from rich.align import Align
from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from pomoflow_cli.models.pomodoro import PomodoroSession
from pomoflow_cli.utils.ui.formatters import (
    STATUS_COLORS,
    format_remaining,
    get_progress_bar,
    phase_title,
)


class TimerDisplay:
    """Builds the session panel shown by ``timer status`` and ``timer watch``."""

    def __init__(self, icons: bool = True):
        self.icons = icons

    def timer_color(self, session: PomodoroSession, remaining: int) -> str:
        if session.status != "running":
            return STATUS_COLORS.get(session.status, "white")
        if remaining < 60:
            return "red"
        if remaining < 300:
            return "yellow"
        return "cyan"

    def render(self, session: PomodoroSession, remaining: int) -> Panel:
        """Render ``session`` with ``remaining`` seconds left."""
        components = []

        if session.task_title or session.task_id:
            task_text = Text(
                (session.task_title or session.task_id or "")[:50],
                style="bold white",
                justify="center",
            )
            if session.task_title and session.task_id:
                task_text.append(f" (#{session.task_id[:8]})", style="dim")
            components.append(task_text)
            components.append(Text(""))

        color = self.timer_color(session, remaining)
        components.append(
            Text(format_remaining(remaining), style=f"bold {color}", justify="center")
        )

        total = session.duration_seconds
        percentage = (total - remaining) / total * 100 if total else 0
        components.append(
            Text(
                f"{get_progress_bar(percentage)}  {int(percentage)}%",
                style="dim",
                justify="center",
            )
        )

        components.append(Text(""))
        components.append(
            Text(
                f"Completed: {session.completed_work_count} work, "
                f"{session.completed_break_count} break",
                style="dim",
                justify="center",
            )
        )

        status_color = STATUS_COLORS.get(session.status, "white")
        return Panel(
            Align.center(Group(*components)),
            title=phase_title(session.phase, self.icons),
            subtitle=f"[{status_color}]{session.status.upper()}[/{status_color}]",
            border_style=status_color,
            padding=(1, 4),
        )
