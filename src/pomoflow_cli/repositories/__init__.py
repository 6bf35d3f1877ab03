"""Repository ports for Pomoflow."""

from .repository import ActiveSessionRepository, SessionHistoryRepository

__all__ = [
    "ActiveSessionRepository",
    "SessionHistoryRepository",
]
