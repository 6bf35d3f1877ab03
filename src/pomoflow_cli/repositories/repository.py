"""Repository abstraction layer for Pomoflow.

Abstract base classes (ports) for session persistence. The session manager
only talks to these interfaces; adapters for the hosted REST backend and the
local SQLite vault implement them.

Adapters translate their native errors into
:class:`~pomoflow_cli.models.exceptions.SessionPersistenceError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from pomoflow_cli.models import PomodoroSession, SessionRecord


class ActiveSessionRepository(ABC):
    """Persistence for the one-per-user active session row."""

    @abstractmethod
    async def create(self, session: PomodoroSession) -> PomodoroSession:
        """Insert a new session row and return it as stored."""
        raise NotImplementedError(
            "ActiveSessionRepository.create() must be implemented by adapter"
        )

    @abstractmethod
    async def get(self, session_id: str) -> PomodoroSession:
        """Get a session by ID.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        raise NotImplementedError(
            "ActiveSessionRepository.get() must be implemented by adapter"
        )

    @abstractmethod
    async def list_active(
        self, user_id: str, max_age_hours: int | None = None
    ) -> list[PomodoroSession]:
        """List a user's non-stopped sessions, most recently updated first.

        Args:
            user_id: Owner of the sessions
            max_age_hours: Only include sessions updated within this window
        """
        raise NotImplementedError(
            "ActiveSessionRepository.list_active() must be implemented by adapter"
        )

    @abstractmethod
    async def update(self, session: PomodoroSession) -> PomodoroSession:
        """Write the full session state and return it as stored.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        raise NotImplementedError(
            "ActiveSessionRepository.update() must be implemented by adapter"
        )

    @abstractmethod
    async def terminate(self, session_id: str) -> None:
        """Mark a session as stopped and clear its timing fields."""
        raise NotImplementedError(
            "ActiveSessionRepository.terminate() must be implemented by adapter"
        )

    @abstractmethod
    async def cleanup_stale(self, user_id: str, max_age_hours: int) -> int:
        """Stop a user's active sessions not updated within ``max_age_hours``.

        Returns:
            Number of sessions stopped
        """
        raise NotImplementedError(
            "ActiveSessionRepository.cleanup_stale() must be implemented by adapter"
        )


class SessionHistoryRepository(ABC):
    """Persistence for finished phases."""

    @abstractmethod
    async def save(self, record: SessionRecord) -> SessionRecord:
        """Insert a history record and return it with its ID."""
        raise NotImplementedError(
            "SessionHistoryRepository.save() must be implemented by adapter"
        )

    @abstractmethod
    async def list_by_task(self, task_id: str, user_id: str) -> list[SessionRecord]:
        """List a task's records, newest first."""
        raise NotImplementedError(
            "SessionHistoryRepository.list_by_task() must be implemented by adapter"
        )

    @abstractmethod
    async def list_by_user(
        self,
        user_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[SessionRecord]:
        """List a user's records completed within [start, end], newest first."""
        raise NotImplementedError(
            "SessionHistoryRepository.list_by_user() must be implemented by adapter"
        )
