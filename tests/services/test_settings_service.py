"""Tests for SettingsService."""

import pytest

from pomoflow_cli.models import PomodoroSettings
from pomoflow_cli.services.settings_service import SettingsService


class TestSettingsService:
    def test_get_returns_defaults(self, tmp_config):
        settings = SettingsService(tmp_config).get()
        assert settings == PomodoroSettings()

    def test_get_returns_copy(self, tmp_config):
        service = SettingsService(tmp_config)
        settings = service.get()
        settings.work_minutes = 99
        assert service.get().work_minutes == 25

    def test_update_persists_to_config_file(self, tmp_config):
        SettingsService(tmp_config).update(work_minutes=50, auto_start_breaks=True)

        saved = tmp_config.config_path.read_text(encoding="utf-8")
        assert '"work_minutes": 50' in saved
        assert tmp_config.config.pomodoro.auto_start_breaks is True

    def test_update_coerces_strings(self, tmp_config):
        settings = SettingsService(tmp_config).update(
            short_break_minutes="7", sound_enabled="off"
        )
        assert settings.short_break_minutes == 7
        assert settings.sound_enabled is False

    def test_update_rejects_unknown_key(self, tmp_config):
        with pytest.raises(ValueError, match="Unknown setting"):
            SettingsService(tmp_config).update(focus_minutes=30)

    def test_update_rejects_invalid_value(self, tmp_config):
        service = SettingsService(tmp_config)
        with pytest.raises(ValueError, match="Invalid settings"):
            service.update(work_minutes=0)
        assert service.get().work_minutes == 25

    def test_merged_does_not_save(self, tmp_config):
        service = SettingsService(tmp_config)
        merged = service.merged(long_break_minutes=30)
        assert merged.long_break_minutes == 30
        assert service.get().long_break_minutes == 15

    def test_reset(self, tmp_config):
        service = SettingsService(tmp_config)
        service.update(work_minutes=45)
        assert service.reset() == PomodoroSettings()
        assert service.get().work_minutes == 25
