"""Configuration service for managing Pomoflow CLI configuration.

This module provides the ConfigService class, which is the single source of truth
for all configuration management in Pomoflow CLI. It handles:

- Loading and saving config.json
- Context management (list, add, remove, switch)
- The per-context user id that owns Pomodoro sessions
- Config file initialization with sensible defaults
"""

from __future__ import annotations

import uuid
from functools import lru_cache
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

from pomoflow_cli.models.config_models import AppConfig, Context
from pomoflow_cli.models.storage_strategy import (
    LocalStorageStrategy,
    RemoteStorageStrategy,
    StorageStrategy,
    StorageStrategyContext,
)

DEFAULT_REMOTE_SOURCE = "https://pomoflow.example.com/rest/v1"


class ConfigService:
    """Service for managing application configuration.

    Loads and saves the JSON config file and builds the storage strategy
    for the current context on first use.
    """

    def __init__(self):
        """Initialize the config service."""

        self.config_dir = Path(user_config_dir("pomoflow_cli"))
        self.config_path = self.config_dir / "config.json"
        self.data_dir = Path(user_data_dir("pomoflow_cli"))

        # Ensure directories exist
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None
        self._storage_strategy_context: StorageStrategyContext | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    @property
    def storage_strategy_context(self) -> StorageStrategyContext:
        """Get a StorageStrategyContext based on the current configuration."""
        if self._storage_strategy_context is None:
            self._storage_strategy_context = StorageStrategyContext(
                self._build_strategy()
            )
        return self._storage_strategy_context

    def _build_strategy(self) -> StorageStrategy:
        context = self.get_current_context()
        if context.type == "remote":
            return RemoteStorageStrategy()
        return LocalStorageStrategy(db_path=context.source)

    def load_config(self) -> AppConfig:
        """Load configuration from storage."""
        if self._config is not None:
            return self._config  # Return cached config if already loaded

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # First run
            self._config = self.create_default_config()
        except Exception as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        return self._config

    def save_config(self):
        """Save the current configuration to storage."""
        if self._config is None:
            raise RuntimeError("No configuration to save")

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self._config.model_dump_json(indent=4))

            # Set file permissions
            self.config_path.chmod(0o600)
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def reset_config(self):
        """Reset configuration to defaults."""
        self._config = None
        self._storage_strategy_context = None
        if self.config_path.exists():
            self.config_path.unlink()
        self.create_default_config()

    def create_default_config(self) -> AppConfig:
        """Create a default configuration with a local context.

        A remote ``cloud`` context is added as well for easy switching later.
        """
        local_context = Context(
            name="local",
            type="local",
            source=str(self.data_dir / "vault.db"),
            description="Local SQLite storage",
        )
        cloud_context = Context(
            name="cloud",
            type="remote",
            source=DEFAULT_REMOTE_SOURCE,
            description="Hosted session store (requires an API key)",
        )

        self._config = AppConfig(
            current_context_name=local_context.name,
            contexts=[local_context, cloud_context],
        )
        self.save_config()
        return self._config

    def list_contexts(self) -> list[Context]:
        """List all available contexts."""
        return self.config.contexts

    def get_current_context(self) -> Context:
        """Get the currently active context.

        Raises:
            ValueError: If the current context is not found
        """
        return self.config.get_current_context()

    def use_context(self, name: str) -> Context:
        """Set the current context by name."""
        context = self.config.get_context(name)
        self.config.current_context_name = context.name
        self.save_config()
        if self._storage_strategy_context is not None:
            self._storage_strategy_context.switch_strategy(self._build_strategy())
        return context

    def add_context(self, context: Context):
        """Add a new context to the configuration."""
        self.config.add_context(context)
        self.save_config()

    def remove_context(self, name: str):
        """Remove a context from the configuration."""
        if name == self.config.current_context_name:
            raise ValueError(f"Cannot remove the active context '{name}'")
        self.config.remove_context(name)
        self.save_config()

    def get_user_id(self) -> str:
        """Return the user id owning sessions in the current context.

        A random id is generated and saved the first time it is needed.
        """
        context = self.get_current_context()
        if context.user_id is None:
            context.user_id = str(uuid.uuid4())
            self.save_config()
        return context.user_id


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service

