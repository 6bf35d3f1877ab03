"""REST API adapters - Repository implementations over the remote session store.

The backend exposes the session tables through PostgREST, so filters are sent
as ``column=op.value`` query parameters and writes ask for the stored row back.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from pomoflow_cli.models import (
    PomodoroSession,
    SessionNotFoundError,
    SessionPersistenceError,
    SessionRecord,
)
from pomoflow_cli.models.pomodoro import format_timestamp
from pomoflow_cli.repositories.repository import (
    ActiveSessionRepository,
    SessionHistoryRepository,
)
from pomoflow_cli.services.api.client import APIClient

ACTIVE_SESSIONS_PATH = "/active_pomodoro_sessions"
SESSION_HISTORY_PATH = "/pomodoro_sessions"

RETURN_REPRESENTATION = {"Prefer": "return=representation"}


def _utcnow() -> datetime:
    return datetime.now(UTC)


class _RestRepository:
    """Lazy API client plus error translation shared by the REST adapters."""

    def __init__(
        self,
        client: APIClient | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._client = client
        self._clock = clock

    @property
    def client(self) -> APIClient:
        """Get or create the API client."""
        if self._client is None:
            self._client = APIClient()
        return self._client

    async def _call(self, request: Awaitable[httpx.Response]) -> list[dict[str, Any]]:
        try:
            response = await request
        except httpx.HTTPError as e:
            raise SessionPersistenceError(f"Remote store error: {e}") from e
        if not response.content:
            return []
        data = response.json()
        return data if isinstance(data, list) else [data]


class RestActiveSessionRepository(_RestRepository, ActiveSessionRepository):
    """Active session repository backed by the REST API."""

    async def create(self, session: PomodoroSession) -> PomodoroSession:
        now = self._clock()
        session = session.evolve(
            created_at=session.created_at or now,
            updated_at=session.updated_at or now,
        )
        rows = await self._call(
            self.client.post(
                ACTIVE_SESSIONS_PATH,
                json=session.to_row(),
                headers=RETURN_REPRESENTATION,
            )
        )
        return PomodoroSession.from_row(rows[0]) if rows else session

    async def get(self, session_id: str) -> PomodoroSession:
        rows = await self._call(
            self.client.get(
                ACTIVE_SESSIONS_PATH, params={"id": f"eq.{session_id}", "limit": 1}
            )
        )
        if not rows:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return PomodoroSession.from_row(rows[0])

    async def list_active(
        self, user_id: str, max_age_hours: int | None = None
    ) -> list[PomodoroSession]:
        params: dict[str, Any] = {
            "user_id": f"eq.{user_id}",
            "session_status": "neq.stopped",
            "order": "updated_at.desc",
        }
        if max_age_hours is not None:
            cutoff = self._clock() - timedelta(hours=max_age_hours)
            params["updated_at"] = f"gte.{format_timestamp(cutoff)}"
        rows = await self._call(self.client.get(ACTIVE_SESSIONS_PATH, params=params))
        return [PomodoroSession.from_row(row) for row in rows]

    async def update(self, session: PomodoroSession) -> PomodoroSession:
        session = session.evolve(updated_at=session.updated_at or self._clock())
        payload = session.to_row()
        for key in ("id", "user_id", "created_at"):
            payload.pop(key, None)
        rows = await self._call(
            self.client.patch(
                ACTIVE_SESSIONS_PATH,
                json=payload,
                params={"id": f"eq.{session.id}"},
                headers=RETURN_REPRESENTATION,
            )
        )
        if not rows:
            raise SessionNotFoundError(f"Session not found: {session.id}")
        return PomodoroSession.from_row(rows[0])

    async def terminate(self, session_id: str) -> None:
        await self._call(
            self.client.patch(
                ACTIVE_SESSIONS_PATH,
                json={
                    "session_status": "stopped",
                    "running_since": None,
                    "paused_at": None,
                    "updated_at": format_timestamp(self._clock()),
                },
                params={"id": f"eq.{session_id}"},
            )
        )

    async def cleanup_stale(self, user_id: str, max_age_hours: int) -> int:
        now = self._clock()
        cutoff = now - timedelta(hours=max_age_hours)
        rows = await self._call(
            self.client.patch(
                ACTIVE_SESSIONS_PATH,
                json={
                    "session_status": "stopped",
                    "running_since": None,
                    "paused_at": None,
                    "updated_at": format_timestamp(now),
                },
                params={
                    "user_id": f"eq.{user_id}",
                    "session_status": "neq.stopped",
                    "updated_at": f"lt.{format_timestamp(cutoff)}",
                },
                headers=RETURN_REPRESENTATION,
            )
        )
        return len(rows)


class RestSessionHistoryRepository(_RestRepository, SessionHistoryRepository):
    """Session history repository backed by the REST API."""

    async def save(self, record: SessionRecord) -> SessionRecord:
        rows = await self._call(
            self.client.post(
                SESSION_HISTORY_PATH,
                json=record.to_row(),
                headers=RETURN_REPRESENTATION,
            )
        )
        return SessionRecord.from_row(rows[0]) if rows else record

    async def list_by_task(self, task_id: str, user_id: str) -> list[SessionRecord]:
        rows = await self._call(
            self.client.get(
                SESSION_HISTORY_PATH,
                params={
                    "task_id": f"eq.{task_id}",
                    "user_id": f"eq.{user_id}",
                    "order": "completed_at.desc",
                },
            )
        )
        return [SessionRecord.from_row(row) for row in rows]

    async def list_by_user(
        self,
        user_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[SessionRecord]:
        params: dict[str, Any] = {
            "user_id": f"eq.{user_id}",
            "order": "completed_at.desc",
        }
        bounds = []
        if start is not None:
            bounds.append(f"completed_at.gte.{format_timestamp(start.astimezone(UTC))}")
        if end is not None:
            bounds.append(f"completed_at.lte.{format_timestamp(end.astimezone(UTC))}")
        if bounds:
            params["and"] = f"({','.join(bounds)})"
        rows = await self._call(self.client.get(SESSION_HISTORY_PATH, params=params))
        return [SessionRecord.from_row(row) for row in rows]
