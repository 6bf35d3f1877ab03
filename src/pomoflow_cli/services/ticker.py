"""Periodic tick source that drives a SessionManager."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from pomoflow_cli.models.exceptions import PomoflowError
from pomoflow_cli.models.pomodoro import TickResult
from pomoflow_cli.services.events import PomodoroEvent
from pomoflow_cli.services.session_manager import SessionManager
from pomoflow_cli.utils.logger import get_logger


class TimerTicker:
    """Wakes every ``interval`` seconds and ticks the manager by the whole
    seconds of wall time elapsed since the last tick.

    The ticker stops itself when the session is terminated or when a tick
    or ``on_tick`` fails; the error is handed to ``on_error``.
    """

    def __init__(
        self,
        manager: SessionManager,
        *,
        interval: float = 1.0,
        on_tick: Callable[[TickResult], Any] | None = None,
        on_error: Callable[[Exception], Any] | None = None,
        logger: logging.Logger | None = None,
        monotonic: Callable[[], float] | None = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.manager = manager
        self.interval = interval
        self.on_tick = on_tick
        self.on_error = on_error
        self._logger = logger or get_logger(__name__)
        # defaults to the running loop's clock
        self._monotonic = monotonic
        self._task: asyncio.Task | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self.error: Exception | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. Must be called with an event loop running."""
        if self.running:
            return
        self.error = None
        self._unsubscribe = self.manager.events.on(
            "session_terminated", self._on_terminated
        )
        self._task = asyncio.get_running_loop().create_task(self._run())
        self._logger.debug("ticker started (interval=%.2fs)", self.interval)

    async def stop(self) -> None:
        """Cancel the tick task and wait for it to finish."""
        task = self._task
        self._detach()
        if task is None:
            return
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._logger.debug("ticker stopped")

    async def wait(self) -> None:
        """Wait until the ticker stops on its own."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    def _detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_terminated(self, event: PomodoroEvent) -> None:
        if self._task is not None and not self._task.done():
            self._logger.debug("session %s terminated; cancelling ticker", event.session_id)
            self._task.cancel()
        self._detach()

    async def _run(self) -> None:
        monotonic = self._monotonic or asyncio.get_running_loop().time
        last = monotonic()
        pending = 0.0
        while True:
            await asyncio.sleep(self.interval)
            now = monotonic()
            pending += now - last
            last = now
            # tick by whole elapsed seconds; the fraction carries over
            seconds = int(pending)
            if seconds < 1:
                continue
            pending -= seconds

            try:
                result = await self.manager.tick(seconds)
                if result is not None and self.on_tick is not None:
                    self.on_tick(result)
            except PomoflowError as e:
                self._logger.error("tick failed, stopping ticker: %s", e)
                self._fail(e)
                return
            except Exception as e:
                self._logger.exception("tick callback failed, stopping ticker")
                self._fail(e)
                return

    def _fail(self, error: Exception) -> None:
        self.error = error
        self._detach()
        if self.on_error is not None:
            self.on_error(error)
