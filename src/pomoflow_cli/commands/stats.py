"""Pomodoro statistics commands for Pomoflow CLI."""

from datetime import datetime

import typer

from pomoflow_cli.services.config_service import get_config_service
from pomoflow_cli.services.session_manager import get_session_manager
from pomoflow_cli.services.stats_service import PomodoroStatsService
from pomoflow_cli.utils.ui.console import get_console
from pomoflow_cli.utils.ui.formatters import format_history

from .decorators import command_wrapper

console = get_console()
app = typer.Typer(help="Pomodoro statistics")


def get_stats_service() -> PomodoroStatsService:
    """Stats service over the current context's history repository."""
    storage = get_config_service().storage_strategy_context
    return PomodoroStatsService(storage.history_repository)


@app.command("task")
@command_wrapper
async def task_stats(
    task_id: str = typer.Argument(..., help="Task ID"),
) -> None:
    """Show cumulative Pomodoro statistics for a task."""
    service = get_stats_service()
    user_id = get_config_service().get_user_id()
    stats = await service.get_task_stats(task_id, user_id)

    console.print(f"\n[bold]Pomodoro statistics for task {task_id}[/bold]\n")
    console.print(
        f"Work sessions: [green]{stats.total_work_sessions}[/green] "
        f"({service.format_duration(stats.total_work_minutes)})"
    )
    console.print(
        f"Breaks: [cyan]{stats.total_break_sessions}[/cyan] "
        f"({service.format_duration(stats.total_break_minutes)})"
    )
    if stats.last_session_date is not None:
        last = stats.last_session_date.astimezone().strftime("%Y-%m-%d %H:%M")
        console.print(f"Last session: {last}")

    session = await get_session_manager().restore()
    progress = service.get_current_session_progress(session, task_id)
    if progress:
        console.print(f"In current session: [green]{progress}[/green] completed")
    console.print(f"Next pomodoro: #{stats.total_work_sessions + 1}")
    console.print()


@app.command("today")
@command_wrapper
async def today_stats() -> None:
    """Show how many work phases were completed today."""
    service = get_stats_service()
    count = await service.get_today_work_count(
        get_config_service().get_user_id(), datetime.now()
    )
    console.print(f"🍅 Completed today: [bold green]{count}[/bold green]")


@app.command("history")
@command_wrapper
async def history(
    task_id: str | None = typer.Option(None, "--task-id", help="Filter by task ID"),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of records to show"),
) -> None:
    """Show recent Pomodoro history."""
    service = get_stats_service()
    records = await service.list_history(
        get_config_service().get_user_id(), task_id=task_id, limit=limit
    )
    format_history(records)
