"""Initial database schema migration.

Creates the active session table and the session history table.
"""

import sqlite3

from pomoflow_cli.adapters.sqlite import schema

from .runner import Migration


class InitialSchemaMigration(Migration):
    """Migration 001: Create initial database schema."""

    @property
    def version(self) -> int:
        return 1

    @property
    def description(self) -> str:
        return "Initial Pomodoro schema"

    def up(self, connection: sqlite3.Connection) -> None:
        """Create all initial tables."""
        connection.execute(schema.CREATE_ACTIVE_SESSIONS_TABLE)
        connection.execute(schema.CREATE_SESSION_HISTORY_TABLE)

        for index_sql in schema.ALL_INDEXES:
            connection.execute(index_sql)


initial_migration = InitialSchemaMigration()
