"""Unit tests for storage strategy pattern (models/storage_strategy.py)."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from pomoflow_cli.adapters.rest_api import (
    RestActiveSessionRepository,
    RestSessionHistoryRepository,
)
from pomoflow_cli.adapters.sqlite.session_repository import (
    SqliteActiveSessionRepository,
    SqliteSessionHistoryRepository,
)
from pomoflow_cli.models.storage_strategy import (
    LocalStorageStrategy,
    RemoteStorageStrategy,
    StorageStrategy,
    StorageStrategyContext,
)


# ---------------------------------------------------------------------------
# StorageStrategy (abstract)
# ---------------------------------------------------------------------------


class TestStorageStrategyABC:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            StorageStrategy()


# ---------------------------------------------------------------------------
# Concrete strategies
# ---------------------------------------------------------------------------


class TestLocalStorageStrategy:
    def test_repositories_share_db_path(self, tmp_path):
        db_path = str(tmp_path / "vault.db")
        strategy = LocalStorageStrategy(db_path=db_path)

        active = strategy.get_active_session_repository()
        history = strategy.get_history_repository()

        assert isinstance(active, SqliteActiveSessionRepository)
        assert isinstance(history, SqliteSessionHistoryRepository)
        assert active.db_path == history.db_path == db_path
        assert strategy.storage_type == "local"

    def test_no_connection_until_used(self, tmp_path):
        LocalStorageStrategy(db_path=str(tmp_path / "vault.db"))
        assert not (tmp_path / "vault.db").exists()


class TestRemoteStorageStrategy:
    def test_repositories(self):
        strategy = RemoteStorageStrategy()
        assert isinstance(strategy.get_active_session_repository(), RestActiveSessionRepository)
        assert isinstance(strategy.get_history_repository(), RestSessionHistoryRepository)
        assert strategy.storage_type == "remote"


# ---------------------------------------------------------------------------
# StorageStrategyContext
# ---------------------------------------------------------------------------


class TestStorageStrategyContext:
    def test_delegates_to_strategy(self):
        strategy = MagicMock(spec=StorageStrategy)
        strategy.storage_type = "mock"
        context = StorageStrategyContext(strategy)

        assert context.active_session_repository is strategy.get_active_session_repository()
        assert context.history_repository is strategy.get_history_repository()
        assert context.storage_type == "mock"
        assert context.strategy is strategy

    def test_switch_strategy(self, tmp_path):
        context = StorageStrategyContext(LocalStorageStrategy(str(tmp_path / "v.db")))
        remote = RemoteStorageStrategy()

        context.switch_strategy(remote)

        assert context.strategy is remote
        assert context.storage_type == "remote"
