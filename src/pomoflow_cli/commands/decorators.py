"""Decorators for command functions."""

import asyncio
import functools
import inspect
import time
import traceback
from collections.abc import Callable

import typer

from pomoflow_cli.models.exceptions import (
    PomoflowError,
    SessionNotFoundError,
    SessionPersistenceError,
)
from pomoflow_cli.utils.exit_codes import (
    ERROR_GENERAL,
    ERROR_INVALID_ARGS,
    ERROR_NETWORK,
    ERROR_NOT_FOUND,
    SUCCESS,
)
from pomoflow_cli.utils.logger import get_logger
from pomoflow_cli.utils.ui.formatters import format_error


class AppError(Exception):
    """Custom application error with exit code."""

    def __init__(self, message: str, exit_code: int = ERROR_GENERAL):
        super().__init__(message)
        self.exit_code = exit_code


def exit_code_for(error: Exception) -> int:
    """Map a domain error to a semantic exit code."""
    if isinstance(error, AppError):
        return error.exit_code
    if isinstance(error, SessionNotFoundError):
        return ERROR_NOT_FOUND
    if isinstance(error, SessionPersistenceError):
        return ERROR_NETWORK
    # InvalidTransitionError is a ValueError too
    if isinstance(error, ValueError):
        return ERROR_INVALID_ARGS
    return ERROR_GENERAL


def command_wrapper(_func: Callable | None = None):
    """Decorator to wrap command functions with common functionality."""

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger()
            cmd = func.__name__
            start = time.monotonic()
            logger.info("command started: %s", cmd)
            try:
                if inspect.iscoroutinefunction(func):
                    result = asyncio.run(func(*args, **kwargs))
                else:
                    result = func(*args, **kwargs)

                elapsed = time.monotonic() - start
                logger.info("command completed: %s (%.3fs)", cmd, elapsed)
                return result

            except (AppError, PomoflowError, ValueError) as e:
                elapsed = time.monotonic() - start
                logger.error(
                    "command failed: %s (%.3fs) - %s",
                    cmd,
                    elapsed,
                    str(e),
                )
                format_error(str(e))
                raise typer.Exit(code=exit_code_for(e)) from e

            except typer.Exit:
                # Re-raise Typer's own exits (like --help or explicit Exit(0))
                raise

            except KeyboardInterrupt as e:
                # Ctrl+C detaches from the live countdown
                logger.info("command interrupted: %s", cmd)
                raise typer.Exit(code=SUCCESS) from e

            except Exception as e:
                elapsed = time.monotonic() - start
                logger.error(
                    "command failed: %s (%.3fs) - %s\n%s",
                    cmd,
                    elapsed,
                    str(e),
                    traceback.format_exc(),
                )
                # Generic fallback for unexpected crashes
                format_error(f"An unexpected error occurred: {str(e)}")
                raise typer.Exit(code=ERROR_GENERAL) from e

        return wrapper

    if _func is None:
        return decorator
    return decorator(_func)
