"""Pomodoro settings commands for Pomoflow CLI."""

import typer

from pomoflow_cli.models.pomodoro import PomodoroSettings
from pomoflow_cli.services.config_service import get_config_service
from pomoflow_cli.services.session_manager import get_session_manager
from pomoflow_cli.services.settings_service import SettingsService
from pomoflow_cli.utils.ui.formatters import format_settings, format_success

from .decorators import command_wrapper

app = typer.Typer(help="Pomodoro durations and toggles")


@app.command("show")
@command_wrapper
def show_settings() -> None:
    """Show the current settings."""
    format_settings(SettingsService(get_config_service()).get())


@app.command("set")
@command_wrapper
async def set_setting(
    key: str = typer.Argument(..., help="Setting name, e.g. work_minutes"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Change one setting; the active session picks up new durations."""
    settings = SettingsService(get_config_service()).merged(**{key: value})
    manager = get_session_manager()
    await manager.restore()
    await manager.update_settings(settings)
    format_success(f"{key} set to {getattr(settings, key)}")


@app.command("reset")
@command_wrapper
async def reset_settings() -> None:
    """Restore the default settings."""
    manager = get_session_manager()
    await manager.restore()
    settings = await manager.update_settings(PomodoroSettings())
    format_success("Settings reset to defaults")
    format_settings(settings)
