"""SQLite implementations of the session repositories."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from pomoflow_cli.adapters.sqlite.connection import get_connection
from pomoflow_cli.adapters.sqlite.utils import generate_uuid, row_to_dict
from pomoflow_cli.models import (
    PomodoroSession,
    SessionNotFoundError,
    SessionPersistenceError,
    SessionRecord,
)
from pomoflow_cli.models.pomodoro import format_timestamp
from pomoflow_cli.repositories import ActiveSessionRepository, SessionHistoryRepository

_ACTIVE_COLUMNS = (
    "id",
    "user_id",
    "task_id",
    "task_title",
    "phase",
    "session_status",
    "remaining_seconds",
    "completed_work_sessions",
    "completed_break_sessions",
    "work_duration",
    "short_break_duration",
    "long_break_duration",
    "sessions_until_long_break",
    "running_since",
    "paused_at",
    "created_at",
    "updated_at",
)

_HISTORY_COLUMNS = (
    "id",
    "user_id",
    "task_id",
    "session_ref",
    "session_type",
    "duration_minutes",
    "interrupted",
    "pomodoro_number",
    "break_number",
    "completed_at",
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class _SqliteRepository:
    """Shared connection handling for the vault repositories."""

    def __init__(
        self,
        db_path: str | Path | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db_path = db_path
        self._clock = clock
        self._connection: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = get_connection(self.db_path)
        return self._connection

    def _execute(self, query: str, params: tuple | list = ()) -> sqlite3.Cursor:
        try:
            cursor = self.connection.execute(query, params)
            self.connection.commit()
            return cursor
        except sqlite3.Error as e:
            self.connection.rollback()
            raise SessionPersistenceError(f"Local vault error: {e}") from e

    def _fetchall(self, query: str, params: tuple | list = ()) -> list[dict[str, Any]]:
        try:
            rows = self.connection.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise SessionPersistenceError(f"Local vault error: {e}") from e
        return [row_to_dict(row) for row in rows]


class SqliteActiveSessionRepository(_SqliteRepository, ActiveSessionRepository):
    """Active session rows stored in the local vault."""

    def _stamp(self, session: PomodoroSession, *, creating: bool) -> PomodoroSession:
        now = self._clock()
        changes: dict[str, Any] = {"updated_at": session.updated_at or now}
        if creating and session.created_at is None:
            changes["created_at"] = now
        return session.evolve(**changes)

    async def create(self, session: PomodoroSession) -> PomodoroSession:
        session = self._stamp(session, creating=True)
        row = session.to_row()
        placeholders = ", ".join("?" for _ in _ACTIVE_COLUMNS)
        self._execute(
            f"INSERT INTO active_pomodoro_sessions ({', '.join(_ACTIVE_COLUMNS)}) "
            f"VALUES ({placeholders})",
            [row[column] for column in _ACTIVE_COLUMNS],
        )
        return session

    async def get(self, session_id: str) -> PomodoroSession:
        rows = self._fetchall(
            "SELECT * FROM active_pomodoro_sessions WHERE id = ?", (session_id,)
        )
        if not rows:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return PomodoroSession.from_row(rows[0])

    async def list_active(
        self, user_id: str, max_age_hours: int | None = None
    ) -> list[PomodoroSession]:
        query = (
            "SELECT * FROM active_pomodoro_sessions "
            "WHERE user_id = ? AND session_status != 'stopped'"
        )
        params: list[Any] = [user_id]
        if max_age_hours is not None:
            query += " AND updated_at >= ?"
            params.append(format_timestamp(self._clock() - timedelta(hours=max_age_hours)))
        query += " ORDER BY updated_at DESC"
        return [PomodoroSession.from_row(row) for row in self._fetchall(query, params)]

    async def update(self, session: PomodoroSession) -> PomodoroSession:
        session = self._stamp(session, creating=False)
        row = session.to_row()
        columns = [c for c in _ACTIVE_COLUMNS if c not in ("id", "user_id", "created_at")]
        set_clause = ", ".join(f"{column} = ?" for column in columns)
        cursor = self._execute(
            f"UPDATE active_pomodoro_sessions SET {set_clause} WHERE id = ?",
            [row[column] for column in columns] + [session.id],
        )
        if cursor.rowcount == 0:
            raise SessionNotFoundError(f"Session not found: {session.id}")
        return await self.get(session.id)

    async def terminate(self, session_id: str) -> None:
        self._execute(
            """
            UPDATE active_pomodoro_sessions
            SET session_status = 'stopped', running_since = NULL, paused_at = NULL,
                updated_at = ?
            WHERE id = ?
            """,
            (format_timestamp(self._clock()), session_id),
        )

    async def cleanup_stale(self, user_id: str, max_age_hours: int) -> int:
        now = self._clock()
        cursor = self._execute(
            """
            UPDATE active_pomodoro_sessions
            SET session_status = 'stopped', running_since = NULL, paused_at = NULL,
                updated_at = ?
            WHERE user_id = ? AND session_status != 'stopped' AND updated_at < ?
            """,
            (
                format_timestamp(now),
                user_id,
                format_timestamp(now - timedelta(hours=max_age_hours)),
            ),
        )
        return cursor.rowcount


class SqliteSessionHistoryRepository(_SqliteRepository, SessionHistoryRepository):
    """Finished phases stored in the local vault."""

    async def save(self, record: SessionRecord) -> SessionRecord:
        if record.id is None:
            record.id = generate_uuid()
        row = record.to_row()
        row["interrupted"] = 1 if record.interrupted else 0
        placeholders = ", ".join("?" for _ in _HISTORY_COLUMNS)
        self._execute(
            f"INSERT INTO pomodoro_sessions ({', '.join(_HISTORY_COLUMNS)}) "
            f"VALUES ({placeholders})",
            [row[column] for column in _HISTORY_COLUMNS],
        )
        return record

    async def list_by_task(self, task_id: str, user_id: str) -> list[SessionRecord]:
        rows = self._fetchall(
            """
            SELECT * FROM pomodoro_sessions
            WHERE task_id = ? AND user_id = ?
            ORDER BY completed_at DESC
            """,
            (task_id, user_id),
        )
        return [SessionRecord.from_row(row) for row in rows]

    async def list_by_user(
        self,
        user_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[SessionRecord]:
        query = "SELECT * FROM pomodoro_sessions WHERE user_id = ?"
        params: list[Any] = [user_id]
        if start is not None:
            query += " AND completed_at >= ?"
            params.append(format_timestamp(start.astimezone(UTC)))
        if end is not None:
            query += " AND completed_at <= ?"
            params.append(format_timestamp(end.astimezone(UTC)))
        query += " ORDER BY completed_at DESC"
        return [SessionRecord.from_row(row) for row in self._fetchall(query, params)]
