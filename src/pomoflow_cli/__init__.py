"""Pomoflow CLI - Pomodoro sessions backed by a hosted or local store."""

__version__ = "0.3.0"
