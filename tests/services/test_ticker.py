"""Tests for TimerTicker."""

from __future__ import annotations

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from pomoflow_cli.models import SessionPersistenceError
from pomoflow_cli.services.events import PomodoroEventEmitter
from pomoflow_cli.services.ticker import TimerTicker


class SteppingMonotonic:
    """Monotonic clock that moves ``step`` seconds on every read."""

    def __init__(self, step: float):
        self.step = step
        self.now = 0.0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value

    @property
    def elapsed(self) -> float:
        # the last read is the latest instant the ticker has seen
        return self.now - self.step


def _mock_manager(tick) -> MagicMock:
    manager = MagicMock()
    manager.events = PomodoroEventEmitter()
    manager.tick = tick
    return manager


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


# ---------------------------------------------------------------------------
# Construction and lifecycle
# ---------------------------------------------------------------------------


class TestTickerLifecycle:
    def test_interval_must_be_positive(self, manager):
        with pytest.raises(ValueError):
            TimerTicker(manager, interval=0)

    @pytest.mark.asyncio
    async def test_stop_without_start(self, manager):
        await TimerTicker(manager).stop()

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_task(self, manager):
        ticker = TimerTicker(manager, interval=0.01)
        ticker.start()
        task = ticker._task
        ticker.start()
        assert ticker._task is task
        await ticker.stop()
        assert not ticker.running

    @pytest.mark.asyncio
    async def test_cancelled_when_session_terminated(self, manager):
        await manager.start()
        ticker = TimerTicker(manager, interval=0.01)
        ticker.start()
        await asyncio.sleep(0.02)

        await manager.stop()
        await asyncio.wait_for(ticker.wait(), timeout=1)

        assert not ticker.running


# ---------------------------------------------------------------------------
# Elapsed time accounting
# ---------------------------------------------------------------------------


class TestElapsedTime:
    @pytest.mark.asyncio
    async def test_fast_wakeups_consume_only_elapsed_seconds(self, manager):
        await manager.start()
        monotonic = SteppingMonotonic(0.25)
        results = []
        ticker = TimerTicker(
            manager, interval=0.001, on_tick=results.append, monotonic=monotonic
        )

        ticker.start()
        await _wait_for(lambda: len(results) >= 3)
        await ticker.stop()

        consumed = 1500 - manager.session.remaining_seconds
        assert consumed == int(monotonic.elapsed)
        assert [r.session.remaining_seconds for r in results[:3]] == [1499, 1498, 1497]

    @pytest.mark.asyncio
    async def test_slow_wakeups_catch_up(self, manager):
        await manager.start()
        results = []
        ticker = TimerTicker(
            manager,
            interval=0.001,
            on_tick=results.append,
            monotonic=SteppingMonotonic(2.5),
        )

        ticker.start()
        await _wait_for(lambda: len(results) >= 3)
        await ticker.stop()

        # 2.5 s per wakeup: 2 s, then 3 s with the carried half second, then 2 s
        assert [r.session.remaining_seconds for r in results[:3]] == [1498, 1495, 1493]

    @pytest.mark.asyncio
    async def test_wall_clock_pace_with_short_interval(self, manager):
        await manager.start()
        ticker = TimerTicker(manager, interval=0.25)

        started = time.monotonic()
        ticker.start()
        await asyncio.sleep(1.3)
        await ticker.stop()
        wall = time.monotonic() - started

        consumed = 1500 - manager.session.remaining_seconds
        assert 1 <= consumed <= wall

    @pytest.mark.asyncio
    async def test_idle_ticks_are_not_forwarded(self, manager):
        on_tick = MagicMock()
        monotonic = SteppingMonotonic(1.0)
        ticker = TimerTicker(manager, interval=0.001, on_tick=on_tick, monotonic=monotonic)

        ticker.start()
        await _wait_for(lambda: monotonic.now > 5)
        await ticker.stop()

        on_tick.assert_not_called()


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestTickerFailures:
    @pytest.mark.asyncio
    async def test_persistence_error_stops_ticker(self):
        error = SessionPersistenceError("store down")
        manager = _mock_manager(AsyncMock(side_effect=error))
        on_error = MagicMock()
        ticker = TimerTicker(
            manager, interval=0.001, on_error=on_error, monotonic=SteppingMonotonic(1.0)
        )

        ticker.start()
        await asyncio.wait_for(ticker.wait(), timeout=1)

        on_error.assert_called_once_with(error)
        assert ticker.error is error
        manager.tick.assert_awaited_once_with(1)
        assert not ticker.running

    @pytest.mark.asyncio
    async def test_callback_error_is_forwarded(self, manager):
        await manager.start()
        error = RuntimeError("display gone")
        on_error = MagicMock()
        ticker = TimerTicker(
            manager,
            interval=0.001,
            on_tick=MagicMock(side_effect=error),
            on_error=on_error,
            monotonic=SteppingMonotonic(1.0),
        )

        ticker.start()
        await asyncio.wait_for(ticker.wait(), timeout=1)

        on_error.assert_called_once_with(error)
        assert ticker.error is error
        assert not ticker.running
        # stop() after a failure does not raise
        await ticker.stop()
