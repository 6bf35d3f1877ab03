"""Unit tests for abstract repository base classes in repository.py.

Concrete subclasses delegate straight back to ``super()`` so the
``NotImplementedError`` bodies are exercised.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pomoflow_cli.models import SessionRecord
from pomoflow_cli.repositories.repository import (
    ActiveSessionRepository,
    SessionHistoryRepository,
)


# ---------------------------------------------------------------------------
# Concrete pass-through implementations
# ---------------------------------------------------------------------------


class _PassThroughActive(ActiveSessionRepository):
    async def create(self, session):
        return await super().create(session)

    async def get(self, session_id):
        return await super().get(session_id)

    async def list_active(self, user_id, max_age_hours=None):
        return await super().list_active(user_id, max_age_hours)

    async def update(self, session):
        return await super().update(session)

    async def terminate(self, session_id):
        return await super().terminate(session_id)

    async def cleanup_stale(self, user_id, max_age_hours):
        return await super().cleanup_stale(user_id, max_age_hours)


class _PassThroughHistory(SessionHistoryRepository):
    async def save(self, record):
        return await super().save(record)

    async def list_by_task(self, task_id, user_id):
        return await super().list_by_task(task_id, user_id)

    async def list_by_user(self, user_id, start=None, end=None):
        return await super().list_by_user(user_id, start, end)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestAbstractPorts:
    def test_cannot_instantiate_ports(self):
        with pytest.raises(TypeError):
            ActiveSessionRepository()
        with pytest.raises(TypeError):
            SessionHistoryRepository()

    @pytest.mark.asyncio
    async def test_active_methods_raise(self, make_session):
        repo = _PassThroughActive()
        session = make_session()
        calls = [
            repo.create(session),
            repo.get("seed-1"),
            repo.list_active("user-1"),
            repo.update(session),
            repo.terminate("seed-1"),
            repo.cleanup_stale("user-1", 24),
        ]
        for call in calls:
            with pytest.raises(NotImplementedError, match="must be implemented by adapter"):
                await call

    @pytest.mark.asyncio
    async def test_history_methods_raise(self):
        repo = _PassThroughHistory()
        record = SessionRecord(
            user_id="user-1",
            phase="work",
            duration_minutes=25,
            completed_at=datetime(2025, 1, 6, tzinfo=UTC),
        )
        calls = [
            repo.save(record),
            repo.list_by_task("task-1", "user-1"),
            repo.list_by_user("user-1"),
        ]
        for call in calls:
            with pytest.raises(NotImplementedError, match="must be implemented by adapter"):
                await call
