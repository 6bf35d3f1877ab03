"""Main entry point for Pomoflow CLI."""

import typer

from pomoflow_cli import __version__
from pomoflow_cli.commands import settings, stats, timer
from pomoflow_cli.utils.ui.console import get_console

app = typer.Typer(
    name="pomoflow",
    help="Pomodoro sessions from the command line",
    no_args_is_help=True,
)

console = get_console(highlight=False)

app.add_typer(timer.app, name="timer", help="Pomodoro timer")
app.add_typer(settings.app, name="settings", help="Pomodoro durations and toggles")
app.add_typer(stats.app, name="stats", help="Pomodoro statistics")


@app.command()
def version() -> None:
    """Show version information"""
    console.print(__version__)


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
