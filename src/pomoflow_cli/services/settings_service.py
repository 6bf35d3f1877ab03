"""Settings service - Pomodoro durations and toggles stored in the config file."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from pomoflow_cli.models.pomodoro import PomodoroSettings
from pomoflow_cli.services.config_service import ConfigService
from pomoflow_cli.utils.logger import get_logger


class SettingsService:
    """Read and update the Pomodoro settings of the current profile."""

    def __init__(self, config_service: ConfigService):
        self.config_service = config_service

    def get(self) -> PomodoroSettings:
        """Return a copy of the current settings."""
        return self.config_service.config.pomodoro.model_copy()

    def merged(self, **changes: Any) -> PomodoroSettings:
        """Return the current settings with ``changes`` applied, without saving.

        Raises:
            ValueError: If a key is unknown or a value is out of range
        """
        unknown = sorted(set(changes) - set(PomodoroSettings.model_fields))
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")

        current = self.config_service.config.pomodoro.model_dump()
        try:
            settings = PomodoroSettings.model_validate({**current, **changes})
        except ValidationError as e:
            raise ValueError(f"Invalid settings: {e}") from e
        return settings

    def update(self, **changes: Any) -> PomodoroSettings:
        """Apply ``changes`` to the settings and save them."""
        return self.save(self.merged(**changes))

    def save(self, settings: PomodoroSettings) -> PomodoroSettings:
        """Replace the stored settings with ``settings``."""
        self.config_service.config.pomodoro = settings
        self.config_service.save_config()
        get_logger(__name__).info("settings saved: %s", settings.model_dump())
        return settings.model_copy()

    def reset(self) -> PomodoroSettings:
        """Restore the default settings."""
        return self.save(PomodoroSettings())
