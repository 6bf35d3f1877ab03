"""Database connection management for the SQLite local vault.

One connection per database path per process, with WAL mode, foreign keys,
owner-only file permissions and migrations applied on open.
"""

from __future__ import annotations

import atexit
import os
import sqlite3
from pathlib import Path

from platformdirs import user_data_dir

from pomoflow_cli.adapters.sqlite.migrations import ALL_MIGRATIONS, MigrationRunner


class DatabaseConnection:
    """Process-wide registry of vault connections keyed by path."""

    _connections: dict[Path, sqlite3.Connection] = {}
    _cleanup_registered: bool = False

    @classmethod
    def get_connection(cls, db_path: str | Path | None = None) -> sqlite3.Connection:
        """Get or create the connection for ``db_path``.

        Args:
            db_path: Path to database file. If None, uses default location.
        """
        if db_path is None:
            db_path = Path(user_data_dir("pomoflow_cli")) / "vault.db"
        else:
            db_path = Path(db_path)

        existing = cls._connections.get(db_path)
        if existing is not None:
            return existing

        db_path.parent.mkdir(parents=True, exist_ok=True)
        is_new_database = not db_path.exists()

        connection = sqlite3.connect(str(db_path), timeout=30.0)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        connection.execute("PRAGMA journal_mode = WAL")

        if is_new_database:
            os.chmod(db_path, 0o600)

        MigrationRunner(connection).run_migrations(ALL_MIGRATIONS)

        cls._connections[db_path] = connection
        if not cls._cleanup_registered:
            atexit.register(cls.close_all)
            cls._cleanup_registered = True

        return connection

    @classmethod
    def close_connection(cls, db_path: str | Path) -> None:
        """Close the connection for one path, if open."""
        connection = cls._connections.pop(Path(db_path), None)
        if connection is not None:
            connection.close()

    @classmethod
    def close_all(cls) -> None:
        """Close every open connection."""
        for path in list(cls._connections):
            cls.close_connection(path)


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """Get the vault connection for ``db_path``."""
    return DatabaseConnection.get_connection(db_path)
