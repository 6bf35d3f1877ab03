"""Session manager - owns the Pomodoro session lifecycle of one user.

Every transition computes the next immutable session value, writes it to the
active session repository, and only then replaces the in-memory session. A
failed write therefore leaves the timer exactly where it was.

States: ``idle`` (nothing loaded), ``ready``, ``running``, ``paused`` and
``stopped``.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from pomoflow_cli.models.cycling import (
    PHASES,
    Phase,
    determine_break_type,
    next_phase,
    phase_minutes,
)
from pomoflow_cli.models.exceptions import (
    InvalidTransitionError,
    PomoflowError,
    SessionPersistenceError,
)
from pomoflow_cli.models.pomodoro import (
    COUNTING_STATUSES,
    ManagerState,
    PomodoroSession,
    PomodoroSettings,
    SessionRecord,
    TickResult,
)
from pomoflow_cli.repositories import ActiveSessionRepository, SessionHistoryRepository
from pomoflow_cli.services.events import PomodoroEventEmitter
from pomoflow_cli.services.stats_service import PomodoroStatsService
from pomoflow_cli.utils.logger import get_logger

# Interrupted phases shorter than this are not written to the history
MIN_INTERRUPTED_SECONDS = 60

SessionListener = Callable[[PomodoroSession | None], Any]


class SettingsStore(Protocol):
    def get(self) -> PomodoroSettings: ...

    def save(self, settings: PomodoroSettings) -> PomodoroSettings: ...


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


class SessionManager:
    """Owns at most one active Pomodoro session for ``user_id``."""

    def __init__(
        self,
        user_id: str,
        active_repository: ActiveSessionRepository,
        history_repository: SessionHistoryRepository,
        settings_store: SettingsStore,
        *,
        events: PomodoroEventEmitter | None = None,
        stats: PomodoroStatsService | None = None,
        clock: Callable[[], datetime] = _utcnow,
        logger: logging.Logger | None = None,
        id_factory: Callable[[], str] = _new_id,
        stale_after_hours: int = 24,
        restore_window_hours: int = 48,
    ):
        self.user_id = user_id
        self.active_repository = active_repository
        self.history_repository = history_repository
        self.settings_store = settings_store
        self.events = events or PomodoroEventEmitter()
        self.stats = stats or PomodoroStatsService(history_repository)
        self._clock = clock
        self._logger = logger or get_logger(__name__)
        self._id_factory = id_factory
        self.stale_after_hours = stale_after_hours
        self.restore_window_hours = restore_window_hours

        self._session: PomodoroSession | None = None
        self._listeners: list[SessionListener] = []
        # Keys of history records already written for sessions still open
        self._saved_records: set[tuple] = set()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def session(self) -> PomodoroSession | None:
        """The current session value (None when idle)."""
        return self._session

    @property
    def state(self) -> ManagerState:
        if self._session is None:
            return "idle"
        return self._session.status

    def remaining_seconds(self) -> int:
        """Live remaining time of the current phase (0 when idle)."""
        if self._session is None:
            return 0
        return self._session.live_remaining(self._clock())

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call ``listener`` with the new session after every change.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, session: PomodoroSession | None) -> None:
        self._session = session
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception:
                self._logger.exception("session listener failed")

    def _require(self, action: str, *statuses: str) -> PomodoroSession:
        if self._session is None or self._session.status not in statuses:
            raise InvalidTransitionError(
                f"Cannot {action}: session is {self.state} "
                f"(expected {' or '.join(statuses)})"
            )
        return self._session

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    async def _write(
        self, session: PomodoroSession, *, create: bool = False
    ) -> PomodoroSession:
        try:
            if create:
                await self.active_repository.create(session)
            else:
                await self.active_repository.update(session)
        except PomoflowError as e:
            self._logger.error("failed to write session %s: %s", session.id, e)
            raise
        return session

    async def _terminate_in_store(self, session: PomodoroSession) -> None:
        try:
            await self.active_repository.terminate(session.id)
        except PomoflowError as e:
            self._logger.error("failed to terminate session %s: %s", session.id, e)
            raise

    async def _record_numbers(self, session: PomodoroSession) -> tuple[int, int]:
        """Pomodoro and break numbers for a record of the current phase."""
        if session.task_id is not None:
            stats = await self.stats.get_task_stats(session.task_id, self.user_id)
            work_done, breaks_done = stats.total_work_sessions, stats.total_break_sessions
        else:
            work_done = session.completed_work_count
            breaks_done = session.completed_break_count

        if session.phase == "work":
            return work_done + 1, breaks_done
        return work_done, breaks_done + 1

    async def _save_record(
        self, session: PomodoroSession, duration_minutes: int, *, interrupted: bool
    ) -> None:
        key = (
            session.id,
            session.phase,
            session.completed_work_count + session.completed_break_count,
            interrupted,
            # an interrupted phase can be reset and interrupted again
            session.updated_at if interrupted else None,
        )
        if key in self._saved_records:
            self._logger.debug("history record %s already saved", key)
            return

        pomodoro_number, break_number = await self._record_numbers(session)
        record = SessionRecord(
            user_id=self.user_id,
            task_id=session.task_id,
            session_ref=session.id,
            phase=session.phase,
            duration_minutes=duration_minutes,
            interrupted=interrupted,
            pomodoro_number=pomodoro_number,
            break_number=break_number,
            completed_at=self._clock(),
        )
        try:
            await self.history_repository.save(record)
        except SessionPersistenceError as e:
            self._logger.error("failed to save history for %s: %s", session.id, e)
            raise
        self._saved_records.add(key)

    def _forget_records(self, session_id: str) -> None:
        self._saved_records = {k for k in self._saved_records if k[0] != session_id}

    async def _record_interruption(self, session: PomodoroSession) -> None:
        """Write an interrupted record when at least a minute of the phase ran."""
        if session.status not in COUNTING_STATUSES:
            return
        elapsed = session.duration_seconds - session.live_remaining(self._clock())
        if elapsed < MIN_INTERRUPTED_SECONDS:
            return
        await self._save_record(session, elapsed // 60, interrupted=True)

    def _emit(self, event: str, session: PomodoroSession, **data: Any) -> None:
        self.events.emit(
            event,
            session_id=session.id,
            phase=session.phase,
            task_id=session.task_id,
            **data,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def restore(self) -> PomodoroSession | None:
        """Load the user's most relevant active session from the store.

        Stale sessions are terminated first. A running session is preferred
        over a paused one, and a paused one over a ready one.
        """
        cleaned = await self.active_repository.cleanup_stale(
            self.user_id, self.stale_after_hours
        )
        if cleaned:
            self._logger.info("terminated %d stale session(s)", cleaned)

        sessions = await self.active_repository.list_active(
            self.user_id, max_age_hours=self.restore_window_hours
        )
        chosen: PomodoroSession | None = None
        for status in ("running", "paused", "ready"):
            chosen = next((s for s in sessions if s.status == status), None)
            if chosen is not None:
                break

        if chosen is not None and chosen.status == "running":
            now = self._clock()
            chosen = chosen.evolve(
                remaining_seconds=chosen.live_remaining(now), running_since=now
            )

        self._commit(chosen)
        if chosen is not None:
            self._logger.info(
                "restored session %s (%s, %s, %ds left)",
                chosen.id,
                chosen.phase,
                chosen.status,
                chosen.remaining_seconds,
            )
        return chosen

    async def start(
        self,
        phase: Phase | None = None,
        *,
        task_id: str | None = None,
        task_title: str | None = None,
        replace: bool = False,
    ) -> PomodoroSession:
        """Start a phase.

        From ``idle`` or ``stopped`` a fresh session is created; from
        ``ready`` the given (or queued) phase starts at full duration.

        Raises:
            InvalidTransitionError: If a phase is already counting and
                ``replace`` is False
        """
        if phase is not None and phase not in PHASES:
            raise ValueError(f"Unknown phase: {phase}")

        current = self._session
        if current is not None and current.status in COUNTING_STATUSES and not replace:
            raise InvalidTransitionError(
                f"Cannot start: session is {current.status}; "
                "stop it first or start with replace"
            )

        now = self._clock()
        if current is not None and current.status == "ready":
            target = phase or current.phase
            session = current.evolve(
                phase=target,
                status="running",
                remaining_seconds=current.phase_seconds(target),
                task_id=task_id if task_id is not None else current.task_id,
                task_title=task_title if task_title is not None else current.task_title,
                running_since=now,
                paused_at=None,
                updated_at=now,
            )
            await self._write(session)
        else:
            session = await self._create_fresh(
                phase or "work",
                previous=current,
                task_id=task_id,
                task_title=task_title,
                now=now,
            )

        self._commit(session)
        self._logger.info(
            "started %s phase of session %s (%ds)",
            session.phase,
            session.id,
            session.remaining_seconds,
        )
        self._emit("session_started", session)
        return session

    async def _create_fresh(
        self,
        phase: Phase,
        *,
        previous: PomodoroSession | None,
        task_id: str | None,
        task_title: str | None,
        now: datetime,
    ) -> PomodoroSession:
        # One active session per user: end whatever else is still open
        open_sessions = {
            s.id: s for s in await self.active_repository.list_active(self.user_id)
        }
        if previous is not None and previous.is_active:
            open_sessions[previous.id] = previous
        for other in open_sessions.values():
            await self._record_interruption(other)
            await self._terminate_in_store(other)
            self._forget_records(other.id)
            self._logger.info("terminated previous session %s", other.id)

        settings = self.settings_store.get()
        session = PomodoroSession(
            id=self._id_factory(),
            user_id=self.user_id,
            phase=phase,
            status="running",
            remaining_seconds=60
            * phase_minutes(
                phase,
                settings.work_minutes,
                settings.short_break_minutes,
                settings.long_break_minutes,
            ),
            task_id=task_id,
            task_title=task_title,
            work_minutes=settings.work_minutes,
            short_break_minutes=settings.short_break_minutes,
            long_break_minutes=settings.long_break_minutes,
            sessions_until_long_break=settings.sessions_until_long_break,
            running_since=now,
            created_at=now,
            updated_at=now,
        )
        return await self._write(session, create=True)

    async def pause(self) -> PomodoroSession:
        """Pause the running phase, keeping the remaining time."""
        current = self._require("pause", "running")
        now = self._clock()
        session = current.evolve(
            status="paused",
            remaining_seconds=current.live_remaining(now),
            running_since=None,
            paused_at=now,
            updated_at=now,
        )
        await self._write(session)
        self._commit(session)
        self._logger.info(
            "paused session %s with %ds left", session.id, session.remaining_seconds
        )
        return session

    async def resume(self) -> PomodoroSession:
        """Resume a paused phase from where it stopped."""
        current = self._require("resume", "paused")
        now = self._clock()
        session = current.evolve(
            status="running", running_since=now, paused_at=None, updated_at=now
        )
        await self._write(session)
        self._commit(session)
        self._logger.info("resumed session %s", session.id)
        return session

    async def tick(self, seconds: int = 1) -> TickResult | None:
        """Advance a running phase by ``seconds``.

        The decrement stays in memory; only a phase completion is written.
        Returns None when no phase is running.
        """
        current = self._session
        if current is None or current.status != "running":
            return None

        remaining = max(0, current.remaining_seconds - seconds)
        if remaining > 0:
            # keep remaining_seconds measured at running_since
            anchor = (
                current.running_since + timedelta(seconds=seconds)
                if current.running_since is not None
                else None
            )
            session = current.evolve(remaining_seconds=remaining, running_since=anchor)
            self._commit(session)
            return TickResult(session=session)

        session = await self._complete(current)
        return TickResult(session=session, completed=True, completed_phase=current.phase)

    async def _complete(self, current: PomodoroSession) -> PomodoroSession:
        now = self._clock()
        await self._save_record(current, current.duration_seconds // 60, interrupted=False)

        work_count = current.completed_work_count
        break_count = current.completed_break_count
        if current.phase == "work":
            work_count += 1
        else:
            break_count += 1

        upcoming = next_phase(current.phase, work_count, current.sessions_until_long_break)
        settings = self.settings_store.get()
        auto_start = (
            settings.auto_start_breaks
            if current.phase == "work"
            else settings.auto_start_work
        )

        session = current.evolve(
            phase=upcoming,
            status="running" if auto_start else "ready",
            remaining_seconds=current.phase_seconds(upcoming),
            completed_work_count=work_count,
            completed_break_count=break_count,
            running_since=now if auto_start else None,
            paused_at=None,
            updated_at=now,
        )
        await self._write(session)
        self._commit(session)
        self._logger.info(
            "completed %s phase of session %s; next %s (%s)",
            current.phase,
            session.id,
            upcoming,
            session.status,
        )
        self._emit(
            "session_completed",
            current,
            next_phase=upcoming,
            completed_work_count=work_count,
            completed_break_count=break_count,
        )
        if auto_start:
            self._emit("session_started", session)
        return session

    async def skip(self) -> PomodoroSession:
        """Jump to the next phase without completing the current one.

        Counters are unchanged, and the break after a skipped work phase is
        chosen from the unchanged work count.
        """
        current = self._require("skip", "running", "paused", "ready")
        await self._record_interruption(current)

        if current.phase == "work":
            upcoming: Phase = determine_break_type(
                current.completed_work_count, current.sessions_until_long_break
            )
        else:
            upcoming = "work"

        now = self._clock()
        session = current.evolve(
            phase=upcoming,
            status="running",
            remaining_seconds=current.phase_seconds(upcoming),
            running_since=now,
            paused_at=None,
            updated_at=now,
        )
        await self._write(session)
        self._commit(session)
        self._logger.info(
            "skipped %s phase of session %s; now %s", current.phase, session.id, upcoming
        )
        self._emit("session_started", session)
        return session

    async def reset(self) -> PomodoroSession:
        """Rewind the current phase to its full duration and wait in ``ready``."""
        current = self._require("reset", "running", "paused")
        await self._record_interruption(current)

        now = self._clock()
        session = current.evolve(
            status="ready",
            remaining_seconds=current.duration_seconds,
            running_since=None,
            paused_at=None,
            updated_at=now,
        )
        await self._write(session)
        self._commit(session)
        self._logger.info("reset %s phase of session %s", session.phase, session.id)
        return session

    async def terminate(self) -> PomodoroSession | None:
        """End the session. ``stopped`` is terminal until the next ``start()``.

        Returns None when no session is loaded.
        """
        current = self._session
        if current is None:
            return None
        if current.status == "stopped":
            return current

        await self._record_interruption(current)
        await self._terminate_in_store(current)
        self._forget_records(current.id)

        now = self._clock()
        session = current.evolve(
            status="stopped",
            remaining_seconds=current.live_remaining(now),
            running_since=None,
            paused_at=None,
            updated_at=now,
        )
        self._commit(session)
        self._logger.info("terminated session %s", session.id)
        self._emit("session_terminated", session)
        return session

    async def stop(self) -> PomodoroSession | None:
        """Stop the session (same as :meth:`terminate`)."""
        return await self.terminate()

    async def update_settings(self, settings: PomodoroSettings) -> PomodoroSettings:
        """Save new settings and resize the loaded session to match.

        A counting phase whose duration changed keeps its elapsed time: the
        remaining time moves by the difference, never below 1 second and
        never above the new duration. A ready phase restarts at the new
        full duration.
        """
        saved = self.settings_store.save(settings)

        current = self._session
        if current is None or not current.is_active:
            return saved

        now = self._clock()
        resized = current.evolve(
            remaining_seconds=0,
            work_minutes=saved.work_minutes,
            short_break_minutes=saved.short_break_minutes,
            long_break_minutes=saved.long_break_minutes,
            sessions_until_long_break=saved.sessions_until_long_break,
        )
        new_duration = resized.duration_seconds

        if current.status == "ready":
            remaining = new_duration
        else:
            remaining = current.live_remaining(now)
            difference = new_duration - current.duration_seconds
            if difference:
                remaining += difference
                if remaining <= 0:
                    remaining = 1
                remaining = min(remaining, new_duration)

        session = resized.evolve(
            remaining_seconds=remaining,
            running_since=now if current.status == "running" else None,
            updated_at=now,
        )
        await self._write(session)
        self._commit(session)
        self._logger.info(
            "applied new settings to session %s (%ds left)", session.id, remaining
        )
        return saved


def get_session_manager(config_service=None) -> SessionManager:
    """Build a SessionManager wired to the current context's storage."""
    from pomoflow_cli.services.config_service import get_config_service
    from pomoflow_cli.services.settings_service import SettingsService

    config_service = config_service or get_config_service()
    storage = config_service.storage_strategy_context
    timer_config = config_service.config.timer
    return SessionManager(
        user_id=config_service.get_user_id(),
        active_repository=storage.active_session_repository,
        history_repository=storage.history_repository,
        settings_store=SettingsService(config_service),
        stale_after_hours=timer_config.stale_after_hours,
        restore_window_hours=timer_config.restore_window_hours,
    )
