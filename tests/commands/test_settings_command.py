"""Tests for the settings commands."""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from pomoflow_cli.main import app
from pomoflow_cli.services.session_manager import SessionManager
from pomoflow_cli.services.settings_service import SettingsService

runner = CliRunner()


@pytest.fixture()
def cli(tmp_config, active_repo, history_repo, clock):
    manager = SessionManager(
        "user-1",
        active_repo,
        history_repo,
        SettingsService(tmp_config),
        clock=clock,
    )
    with patch("pomoflow_cli.commands.settings.get_config_service", return_value=tmp_config):
        with patch("pomoflow_cli.commands.settings.get_session_manager", return_value=manager):
            yield manager


class TestSettingsCommands:
    def test_show_defaults(self, cli):
        result = runner.invoke(app, ["settings", "show"])

        assert result.exit_code == 0
        assert "work_minutes" in result.output
        assert "25" in result.output
        assert "auto_start_breaks" in result.output

    def test_set_saves_to_config(self, cli, tmp_config):
        result = runner.invoke(app, ["settings", "set", "work_minutes", "50"])

        assert result.exit_code == 0
        assert "work_minutes set to 50" in result.output
        assert tmp_config.config.pomodoro.work_minutes == 50

    def test_set_boolean(self, cli, tmp_config):
        result = runner.invoke(app, ["settings", "set", "sound_enabled", "false"])

        assert result.exit_code == 0
        assert tmp_config.config.pomodoro.sound_enabled is False

    def test_set_updates_active_session(self, cli):
        asyncio.run(cli.start())

        result = runner.invoke(app, ["settings", "set", "work_minutes", "30"])

        assert result.exit_code == 0
        assert cli.session.work_minutes == 30
        assert cli.session.remaining_seconds == 1800

    def test_unknown_key(self, cli):
        result = runner.invoke(app, ["settings", "set", "coffee", "1"])

        assert result.exit_code == 2
        assert "Unknown setting" in result.output

    def test_invalid_value(self, cli, tmp_config):
        result = runner.invoke(app, ["settings", "set", "work_minutes", "0"])

        assert result.exit_code == 2
        assert tmp_config.config.pomodoro.work_minutes == 25

    def test_reset(self, cli, tmp_config):
        runner.invoke(app, ["settings", "set", "work_minutes", "50"])

        result = runner.invoke(app, ["settings", "reset"])

        assert result.exit_code == 0
        assert "Settings reset to defaults" in result.output
        assert tmp_config.config.pomodoro.work_minutes == 25
