"""Pomodoro statistics computed from the session history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pomoflow_cli.models.cycling import is_break
from pomoflow_cli.models.pomodoro import PomodoroSession, SessionRecord
from pomoflow_cli.repositories import SessionHistoryRepository


@dataclass
class TaskPomodoroStats:
    """Cumulative statistics for one task."""

    total_work_sessions: int = 0
    total_work_minutes: int = 0
    total_break_sessions: int = 0
    total_break_minutes: int = 0
    last_session_date: datetime | None = None


def _completed(records: list[SessionRecord]) -> list[SessionRecord]:
    return [record for record in records if not record.interrupted]


class PomodoroStatsService:
    """Statistics over completed (non-interrupted) history records."""

    def __init__(self, history_repository: SessionHistoryRepository):
        self.repository = history_repository

    async def get_task_stats(self, task_id: str, user_id: str) -> TaskPomodoroStats:
        """Get cumulative statistics for a task."""
        records = await self.repository.list_by_task(task_id, user_id)
        completed = _completed(records)
        work = [r for r in completed if r.phase == "work"]
        breaks = [r for r in completed if is_break(r.phase)]

        return TaskPomodoroStats(
            total_work_sessions=len(work),
            total_work_minutes=sum(r.duration_minutes for r in work),
            total_break_sessions=len(breaks),
            total_break_minutes=sum(r.duration_minutes for r in breaks),
            # newest first
            last_session_date=records[0].completed_at if records else None,
        )

    async def get_next_pomodoro_number(self, task_id: str, user_id: str) -> int:
        """Number the next work phase of ``task_id`` will carry."""
        stats = await self.get_task_stats(task_id, user_id)
        return stats.total_work_sessions + 1

    async def get_today_work_count(
        self, user_id: str, now: datetime | None = None
    ) -> int:
        """Completed work phases since local midnight."""
        now = (now or datetime.now()).astimezone()
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        records = await self.repository.list_by_user(user_id, start=midnight, end=now)
        return sum(1 for r in _completed(records) if r.phase == "work")

    async def list_history(
        self,
        user_id: str,
        task_id: str | None = None,
        limit: int | None = None,
    ) -> list[SessionRecord]:
        """History records, newest first, optionally for one task."""
        if task_id is not None:
            records = await self.repository.list_by_task(task_id, user_id)
        else:
            records = await self.repository.list_by_user(user_id)
        return records[:limit] if limit is not None else records

    @staticmethod
    def get_current_session_progress(
        session: PomodoroSession | None, task_id: str
    ) -> int:
        """Work phases completed in the active session for ``task_id``."""
        if session is None or session.task_id != task_id:
            return 0
        return session.completed_work_count

    @staticmethod
    def format_duration(minutes: int) -> str:
        """Format minutes as ``0m``, ``45m``, ``2h`` or ``1h 30m``."""
        hours, mins = divmod(minutes, 60)
        if hours == 0:
            return f"{mins}m"
        if mins == 0:
            return f"{hours}h"
        return f"{hours}h {mins}m"
