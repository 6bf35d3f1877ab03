"""Output formatters for Pomoflow CLI."""

from __future__ import annotations

from datetime import datetime

from rich.table import Table

from pomoflow_cli.models.cycling import phase_label
from pomoflow_cli.models.pomodoro import PomodoroSettings, SessionRecord
from pomoflow_cli.utils.ui.console import get_console

console = get_console()

PHASE_ICONS = {
    "work": "🍅",
    "short_break": "☕",
    "long_break": "🌴",
}

STATUS_COLORS = {
    "ready": "cyan",
    "running": "green",
    "paused": "yellow",
    "stopped": "dim",
}


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {message}")


def format_remaining(seconds: int) -> str:
    """Format seconds as MM:SS (HH:MM:SS past an hour)."""
    seconds = max(0, seconds)
    hours, rest = divmod(seconds, 3600)
    mins, secs = divmod(rest, 60)
    if hours:
        return f"{hours:d}:{mins:02d}:{secs:02d}"
    return f"{mins:02d}:{secs:02d}"


def get_progress_bar(percentage: float, width: int = 30) -> str:
    """Get a text progress bar."""
    percentage = max(0.0, min(100.0, percentage))
    filled = int(width * percentage / 100)
    return "█" * filled + "░" * (width - filled)


def phase_title(phase: str, icons: bool = True) -> str:
    """Phase label with its icon."""
    label = phase_label(phase)
    if icons:
        return f"{PHASE_ICONS.get(phase, '')} {label}".strip()
    return label


def format_completion(phase: str, minutes: int) -> str:
    """Completion notice for a finished phase."""
    if phase == "work":
        return (
            "[bold green]Work Session Complete![/bold green] "
            f"Great job! You've completed {minutes} minutes of focused work."
        )
    return (
        "[bold green]Break Complete![/bold green] "
        "Break time is over. Ready to get back to work?"
    )


def format_settings(settings: PomodoroSettings) -> None:
    """Display the Pomodoro settings as a key/value table."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        if isinstance(value, bool):
            shown = "[green]on[/green]" if value else "[dim]off[/dim]"
        else:
            shown = str(value)
        table.add_row(key, shown)
    console.print(table)


def format_history(records: list[SessionRecord]) -> None:
    """Display history records as a table."""
    if not records:
        console.print("[yellow]No Pomodoro sessions found[/yellow]")
        return

    table = Table(title=f"Pomodoro History ({len(records)})", show_header=True)
    table.add_column("Completed", style="cyan")
    table.add_column("Phase")
    table.add_column("Task")
    table.add_column("#", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Status", justify="center")

    for record in records:
        completed: datetime = record.completed_at.astimezone()
        number = record.pomodoro_number if record.phase == "work" else record.break_number
        status = "[yellow]✗[/yellow]" if record.interrupted else "[green]✓[/green]"
        table.add_row(
            completed.strftime("%Y-%m-%d %H:%M"),
            phase_label(record.phase),
            (record.task_id or "—")[:12],
            str(number),
            f"{record.duration_minutes}m",
            status,
        )

    console.print(table)
