"""Schema migrations for the local vault."""

from .m001_initial_schema import initial_migration
from .runner import Migration, MigrationRunner, get_current_version, run_migrations

ALL_MIGRATIONS = [initial_migration]

__all__ = [
    "ALL_MIGRATIONS",
    "Migration",
    "MigrationRunner",
    "get_current_version",
    "run_migrations",
]
