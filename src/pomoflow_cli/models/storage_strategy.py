"""
Strategy Pattern: Storage Strategy Container

The StorageStrategyContext holds the strategy chosen at startup (local vault
or remote store) and hands its repositories to the services.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pomoflow_cli.repositories import ActiveSessionRepository, SessionHistoryRepository


class StorageStrategy(ABC):
    """
    Abstract base class for storage strategies.

    A strategy encapsulates ALL repository implementations for a given
    storage backend (either Local SQLite or Remote API).
    """

    @abstractmethod
    def get_active_session_repository(self) -> ActiveSessionRepository:
        """Get active session repository implementation for this strategy."""

    @abstractmethod
    def get_history_repository(self) -> SessionHistoryRepository:
        """Get session history repository implementation for this strategy."""

    @property
    @abstractmethod
    def storage_type(self) -> str:
        """Get storage type identifier (for logging/debugging)."""


class LocalStorageStrategy(StorageStrategy):
    """
    Local SQLite storage strategy.

    This is instantiated once at startup if the active context is 'local'.
    """

    def __init__(self, db_path: str):
        """
        Initialize local strategy.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

        # Import here to avoid circular dependencies
        from pomoflow_cli.adapters.sqlite.session_repository import (
            SqliteActiveSessionRepository,
            SqliteSessionHistoryRepository,
        )

        self._active_repo = SqliteActiveSessionRepository(db_path=db_path)
        self._history_repo = SqliteSessionHistoryRepository(db_path=db_path)

    def get_active_session_repository(self) -> ActiveSessionRepository:
        return self._active_repo

    def get_history_repository(self) -> SessionHistoryRepository:
        return self._history_repo

    @property
    def storage_type(self) -> str:
        return "local"


class RemoteStorageStrategy(StorageStrategy):
    """
    Remote API storage strategy.

    This is instantiated once at startup if the active context is 'remote'.
    """

    def __init__(self):
        from pomoflow_cli.adapters.rest_api import (
            RestActiveSessionRepository,
            RestSessionHistoryRepository,
        )

        self._active_repo = RestActiveSessionRepository()
        self._history_repo = RestSessionHistoryRepository()

    def get_active_session_repository(self) -> ActiveSessionRepository:
        return self._active_repo

    def get_history_repository(self) -> SessionHistoryRepository:
        return self._history_repo

    @property
    def storage_type(self) -> str:
        return "remote"


class StorageStrategyContext:
    """
    Strategy context that provides access to all repositories.

    Usage:
        strategy = LocalStorageStrategy(db_path="/path/to/db")
        context = StorageStrategyContext(strategy)

        repo = context.active_session_repository
        await repo.list_active(user_id)  # Works regardless of strategy
    """

    def __init__(self, strategy: StorageStrategy):
        self._strategy = strategy

    def switch_strategy(self, new_strategy: StorageStrategy):
        """Switch to a new storage strategy at runtime."""
        self._strategy = new_strategy

    @property
    def active_session_repository(self) -> ActiveSessionRepository:
        """Get active session repository from current strategy."""
        return self._strategy.get_active_session_repository()

    @property
    def history_repository(self) -> SessionHistoryRepository:
        """Get session history repository from current strategy."""
        return self._strategy.get_history_repository()

    @property
    def storage_type(self) -> str:
        """Get storage type (for logging/debugging only)."""
        return self._strategy.storage_type

    @property
    def strategy(self) -> StorageStrategy:
        """Get underlying strategy."""
        return self._strategy
