"""In-process event emitter for Pomodoro session lifecycle events."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from pomoflow_cli.utils.logger import get_logger

EventName = Literal["session_started", "session_completed", "session_terminated"]

EVENT_NAMES: tuple[str, ...] = (
    "session_started",
    "session_completed",
    "session_terminated",
)


@dataclass
class PomodoroEvent:
    """Payload delivered to event listeners."""

    name: EventName
    session_id: str
    phase: str
    task_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


EventCallback = Callable[[PomodoroEvent], Any]


class PomodoroEventEmitter:
    """Minimal publish/subscribe hub.

    A listener that raises is logged and skipped; the remaining listeners
    still run.
    """

    def __init__(self, logger=None):
        self._listeners: dict[str, list[EventCallback]] = defaultdict(list)
        self._logger = logger or get_logger(__name__)

    def on(self, event: EventName, callback: EventCallback) -> Callable[[], None]:
        """Register ``callback`` for ``event`` and return an unsubscribe callable."""
        if event not in EVENT_NAMES:
            raise ValueError(f"Unknown event: {event}")
        self._listeners[event].append(callback)
        return lambda: self.off(event, callback)

    def off(self, event: EventName, callback: EventCallback) -> None:
        """Remove ``callback``; unknown callbacks are ignored."""
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(
        self,
        event: EventName,
        *,
        session_id: str,
        phase: str,
        task_id: str | None = None,
        **data: Any,
    ) -> PomodoroEvent:
        payload = PomodoroEvent(
            name=event, session_id=session_id, phase=phase, task_id=task_id, data=data
        )
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(payload)
            except Exception:
                self._logger.exception("listener for %s failed", event)
        return payload
