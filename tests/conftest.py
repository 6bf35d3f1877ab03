"""Shared test fixtures and configuration.

Provides in-memory repositories, a controllable clock and config isolation so
tests never touch the real filesystem or network.
"""

from __future__ import annotations

import itertools
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from pomoflow_cli.models import (
    PomodoroSession,
    PomodoroSettings,
    SessionNotFoundError,
    SessionPersistenceError,
    SessionRecord,
)
from pomoflow_cli.repositories import ActiveSessionRepository, SessionHistoryRepository
from pomoflow_cli.services.session_manager import SessionManager

T0 = datetime(2025, 1, 6, 9, 0, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Log isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True, scope="session")
def isolate_logs(tmp_path_factory):
    """Keep the rotating log file out of the real user log dir."""
    log_dir = str(tmp_path_factory.mktemp("logs"))
    with patch("pomoflow_cli.utils.logger.user_log_dir", return_value=log_dir):
        yield log_dir


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# In-memory repositories
# ---------------------------------------------------------------------------


class InMemoryActiveSessionRepository(ActiveSessionRepository):
    """Dict-backed active session store with failure injection.

    Add method names to ``fail_on`` to make them raise SessionPersistenceError.
    """

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.sessions: dict[str, PomodoroSession] = {}
        self.writes: list[tuple[str, PomodoroSession | str]] = []
        self.fail_on: set[str] = set()

    def _check(self, method: str) -> None:
        if method in self.fail_on:
            raise SessionPersistenceError(f"{method} failed")

    async def create(self, session):
        self._check("create")
        self.sessions[session.id] = session
        self.writes.append(("create", session))
        return session

    async def get(self, session_id):
        self._check("get")
        if session_id not in self.sessions:
            raise SessionNotFoundError(session_id)
        return self.sessions[session_id]

    async def list_active(self, user_id, max_age_hours=None):
        self._check("list_active")
        cutoff = (
            self.clock() - timedelta(hours=max_age_hours)
            if max_age_hours is not None
            else None
        )
        found = [
            s
            for s in self.sessions.values()
            if s.user_id == user_id
            and s.status != "stopped"
            and (cutoff is None or s.updated_at >= cutoff)
        ]
        return sorted(found, key=lambda s: s.updated_at, reverse=True)

    async def update(self, session):
        self._check("update")
        if session.id not in self.sessions:
            raise SessionNotFoundError(session.id)
        self.sessions[session.id] = session
        self.writes.append(("update", session))
        return session

    async def terminate(self, session_id):
        self._check("terminate")
        session = self.sessions[session_id]
        self.sessions[session_id] = session.evolve(
            status="stopped", running_since=None, paused_at=None, updated_at=self.clock()
        )
        self.writes.append(("terminate", session_id))

    async def cleanup_stale(self, user_id, max_age_hours):
        self._check("cleanup_stale")
        cutoff = self.clock() - timedelta(hours=max_age_hours)
        stale = [
            s.id
            for s in self.sessions.values()
            if s.user_id == user_id and s.status != "stopped" and s.updated_at < cutoff
        ]
        for session_id in stale:
            await self.terminate(session_id)
        return len(stale)


class InMemorySessionHistoryRepository(SessionHistoryRepository):
    """List-backed history store with failure injection."""

    def __init__(self):
        self.records: list[SessionRecord] = []
        self.fail_on: set[str] = set()
        self._ids = itertools.count(1)

    async def save(self, record):
        if "save" in self.fail_on:
            raise SessionPersistenceError("save failed")
        record.id = f"record-{next(self._ids)}"
        self.records.append(record)
        return record

    async def list_by_task(self, task_id, user_id):
        found = [r for r in self.records if r.task_id == task_id and r.user_id == user_id]
        return sorted(found, key=lambda r: r.completed_at, reverse=True)

    async def list_by_user(self, user_id, start=None, end=None):
        found = [
            r
            for r in self.records
            if r.user_id == user_id
            and (start is None or r.completed_at >= start)
            and (end is None or r.completed_at <= end)
        ]
        return sorted(found, key=lambda r: r.completed_at, reverse=True)


class InMemorySettingsStore:
    def __init__(self, settings: PomodoroSettings | None = None):
        self.settings = settings or PomodoroSettings()
        self.saved: list[PomodoroSettings] = []

    def get(self) -> PomodoroSettings:
        return self.settings.model_copy()

    def save(self, settings: PomodoroSettings) -> PomodoroSettings:
        self.settings = settings
        self.saved.append(settings)
        return settings.model_copy()


@pytest.fixture()
def active_repo(clock) -> InMemoryActiveSessionRepository:
    return InMemoryActiveSessionRepository(clock)


@pytest.fixture()
def history_repo() -> InMemorySessionHistoryRepository:
    return InMemorySessionHistoryRepository()


@pytest.fixture()
def settings_store() -> InMemorySettingsStore:
    return InMemorySettingsStore()


@pytest.fixture()
def manager(active_repo, history_repo, settings_store, clock) -> SessionManager:
    """SessionManager for ``user-1`` with deterministic ids and clock."""
    ids = itertools.count(1)
    return SessionManager(
        "user-1",
        active_repo,
        history_repo,
        settings_store,
        clock=clock,
        id_factory=lambda: f"session-{next(ids)}",
    )


def _make_session(**overrides) -> PomodoroSession:
    values = {
        "id": "seed-1",
        "user_id": "user-1",
        "phase": "work",
        "status": "running",
        "remaining_seconds": 1500,
        "running_since": T0,
        "created_at": T0,
        "updated_at": T0,
    }
    values.update(overrides)
    return PomodoroSession(**values)


@pytest.fixture()
def make_session():
    """Factory for a running work session anchored at T0."""
    return _make_session


# ---------------------------------------------------------------------------
# Config isolation helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def tmp_config(tmp_path):
    """Provide a real ConfigService backed by a temporary directory.

    Patches platform dirs so config/data files land in *tmp_path* only.
    Also clears the lru_cache so each test gets a fresh service instance.
    """
    from pomoflow_cli.services.config_service import get_config_service

    tmpdir = str(tmp_path)
    get_config_service.cache_clear()
    with patch("pomoflow_cli.services.config_service.user_config_dir", return_value=tmpdir):
        with patch("pomoflow_cli.services.config_service.user_data_dir", return_value=tmpdir):
            from pomoflow_cli.services.config_service import ConfigService

            svc = ConfigService()
            yield svc
    get_config_service.cache_clear()
