"""Custom exceptions for Pomoflow."""


class PomoflowError(Exception):
    """Base exception for all Pomoflow errors."""


class InvalidTransitionError(PomoflowError, ValueError):
    """Raised when a timer action is not allowed in the session's current state."""


class SessionPersistenceError(PomoflowError):
    """Raised when reading or writing session state to the store fails."""


class SessionNotFoundError(PomoflowError):
    """Raised when a session row does not exist in the store."""
