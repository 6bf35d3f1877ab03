"""Pomodoro timer commands for Pomoflow CLI."""

from __future__ import annotations

import asyncio

import typer
from rich.live import Live

from pomoflow_cli.models.pomodoro import TickResult
from pomoflow_cli.services.config_service import get_config_service
from pomoflow_cli.services.session_manager import SessionManager, get_session_manager
from pomoflow_cli.services.ticker import TimerTicker
from pomoflow_cli.utils.ui.console import get_console
from pomoflow_cli.utils.ui.formatters import (
    format_completion,
    format_info,
    format_remaining,
    format_success,
    format_warning,
    phase_title,
)
from pomoflow_cli.utils.ui.timer_display import TimerDisplay

from .decorators import command_wrapper

console = get_console()
app = typer.Typer(help="Pomodoro timer")


async def _load_manager() -> SessionManager:
    """Build the session manager and load the active session from the store."""
    manager = get_session_manager()
    await manager.restore()
    return manager


def _display() -> TimerDisplay:
    return TimerDisplay(icons=get_config_service().config.output.icons)


async def _watch(manager: SessionManager) -> None:
    """Show a live countdown until the phase stops running."""
    session = manager.session
    if session is None or not session.is_active:
        format_info("No active session. Start one with 'pomoflow timer start'.")
        return

    display = _display()
    if session.status != "running":
        console.print(display.render(session, manager.remaining_seconds()))
        return

    interval = get_config_service().config.timer.tick_interval
    settings = manager.settings_store.get()
    errors: list[Exception] = []

    with Live(
        display.render(session, manager.remaining_seconds()),
        console=console,
        refresh_per_second=4,
    ) as live:

        def on_tick(result: TickResult) -> None:
            live.update(display.render(result.session, result.session.remaining_seconds))
            if result.completed:
                if settings.sound_enabled:
                    console.bell()
                if settings.notifications_enabled:
                    minutes = result.session.phase_seconds(result.completed_phase) // 60
                    live.console.print(format_completion(result.completed_phase, minutes))

        ticker = TimerTicker(
            manager, interval=interval, on_tick=on_tick, on_error=errors.append
        )
        ticker.start()
        try:
            while ticker.running and manager.state == "running":
                await asyncio.sleep(interval)
        except asyncio.CancelledError:
            live.console.print("[dim]Detached. The session keeps running.[/dim]")
            raise
        finally:
            await ticker.stop()

    for error in errors:
        format_warning(f"Timer stopped: {error}")

    if manager.state == "ready":
        format_info(
            f"Next up: {phase_title(manager.session.phase)}. "
            "Run 'pomoflow timer start' when you are ready."
        )


@app.command("start")
@command_wrapper
async def start_timer(
    phase: str | None = typer.Option(
        None, "--phase", "-p", help="Phase to start: work, short_break or long_break"
    ),
    task_id: str | None = typer.Option(None, "--task-id", help="Task to track"),
    task_title: str | None = typer.Option(None, "--task-title", help="Task title"),
    replace: bool = typer.Option(
        False, "--replace", help="Replace a running or paused session"
    ),
    watch: bool = typer.Option(False, "--watch", "-w", help="Show a live countdown"),
) -> None:
    """Start a Pomodoro phase."""
    manager = await _load_manager()
    session = await manager.start(
        phase, task_id=task_id, task_title=task_title, replace=replace
    )
    format_success(
        f"Started {phase_title(session.phase)} "
        f"({format_remaining(session.remaining_seconds)})"
    )
    if watch:
        await _watch(manager)


@app.command("pause")
@command_wrapper
async def pause_timer() -> None:
    """Pause the running phase."""
    manager = await _load_manager()
    session = await manager.pause()
    format_success(f"Paused with {format_remaining(session.remaining_seconds)} left")


@app.command("resume")
@command_wrapper
async def resume_timer(
    watch: bool = typer.Option(False, "--watch", "-w", help="Show a live countdown"),
) -> None:
    """Resume a paused phase."""
    manager = await _load_manager()
    session = await manager.resume()
    format_success(
        f"Resumed {phase_title(session.phase)} "
        f"({format_remaining(session.remaining_seconds)} left)"
    )
    if watch:
        await _watch(manager)


@app.command("stop")
@command_wrapper
async def stop_timer() -> None:
    """Stop the session."""
    manager = await _load_manager()
    session = await manager.stop()
    if session is None:
        format_info("No active session")
        return
    format_success("Session stopped")


@app.command("skip")
@command_wrapper
async def skip_phase() -> None:
    """Skip to the next phase."""
    manager = await _load_manager()
    session = await manager.skip()
    format_success(
        f"Skipped to {phase_title(session.phase)} "
        f"({format_remaining(session.remaining_seconds)})"
    )


@app.command("reset")
@command_wrapper
async def reset_phase() -> None:
    """Rewind the current phase to its full duration."""
    manager = await _load_manager()
    session = await manager.reset()
    format_success(
        f"{phase_title(session.phase)} reset to {format_remaining(session.remaining_seconds)}"
    )


@app.command("status")
@command_wrapper
async def timer_status() -> None:
    """Show the active session."""
    manager = await _load_manager()
    session = manager.session
    if session is None:
        format_info("No active session")
        return
    console.print(_display().render(session, manager.remaining_seconds()))


@app.command("watch")
@command_wrapper
async def watch_timer() -> None:
    """Follow the active session with a live countdown (Ctrl+C to detach)."""
    manager = await _load_manager()
    await _watch(manager)
